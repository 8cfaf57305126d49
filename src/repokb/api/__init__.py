"""
HTTP interface for repository ingestion.
"""
