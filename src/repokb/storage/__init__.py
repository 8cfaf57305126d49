"""
Persistence for tagged chunks and the knowledge-base tag registry.
"""

from .milvus_store import MilvusVectorStore, VectorIndex
from .registry import TagRegistry

__all__ = ["MilvusVectorStore", "TagRegistry", "VectorIndex"]
