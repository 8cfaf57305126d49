"""
Service layer orchestrators for repository ingestion.
"""

from .ingestor import IngestionResult, RepositoryIngestionService, ServiceResponse

__all__ = ["IngestionResult", "RepositoryIngestionService", "ServiceResponse"]
