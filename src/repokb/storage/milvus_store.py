"""
Milvus-backed vector index for tagged document chunks.

Chunks are embedded in batches and upserted with their ``knowledge_tag`` as
a dedicated scalar field so retrieval can be scoped to one knowledge base.
"""

from __future__ import annotations

import hashlib
from typing import Any, List, Optional, Protocol, Sequence

from langchain_core.documents import Document
from pymilvus import (  # type: ignore
    Collection,
    CollectionSchema,
    DataType,
    FieldSchema,
    connections,
    utility,
)

from ..embeddings import EmbeddingAdapter, EmbeddingProviderFactory
from ..errors import StorageError
from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)


class VectorIndex(Protocol):
    """Sink for chunks carrying ``knowledge_tag`` and ``file_name`` metadata."""

    def add(self, chunks: Sequence[Document]) -> None:
        ...


def chunk_id(chunk: Document) -> str:
    """Stable id so re-ingesting unchanged content overwrites instead of duplicating."""
    meta = chunk.metadata
    key = "{}:{}:{}:{}".format(
        meta.get("knowledge_tag", ""),
        meta.get("file_path", meta.get("file_name", "")),
        meta.get("chunk_index", 0),
        hashlib.sha1(chunk.page_content.encode("utf-8")).hexdigest(),
    )
    return hashlib.md5(key.encode("utf-8")).hexdigest()


class MilvusVectorStore:
    """Thin wrapper around PyMilvus for tagged chunk storage."""

    def __init__(
        self,
        collection_name: Optional[str] = None,
        dim: Optional[int] = None,
        embedding_client: Optional[EmbeddingAdapter] = None,
    ) -> None:
        self.collection_name = collection_name or settings.milvus_collection
        self.dim = dim or settings.embedding_dimension
        self._embedding_client = embedding_client
        self._collection: Optional[Collection] = None

    @property
    def embedding_client(self) -> EmbeddingAdapter:
        if self._embedding_client is None:
            self._embedding_client = EmbeddingProviderFactory.create()
        return self._embedding_client

    def connect(self) -> None:
        """Establish connection to Milvus using configured URI."""
        log.info("connecting_milvus", uri=settings.milvus_uri)
        connections.connect(
            alias="default",
            uri=settings.milvus_uri,
            user=settings.milvus_username,
            password=settings.milvus_password,
        )
        self._collection = self._ensure_collection()

    def _ensure_collection(self) -> Collection:
        if utility.has_collection(self.collection_name):
            collection = Collection(self.collection_name)
            collection.load()
            return collection

        log.info(
            "creating_milvus_collection", collection=self.collection_name, dim=self.dim
        )
        schema = CollectionSchema(
            fields=[
                FieldSchema(
                    name="id", dtype=DataType.VARCHAR, is_primary=True, max_length=64
                ),
                FieldSchema(name="knowledge_tag", dtype=DataType.VARCHAR, max_length=256),
                FieldSchema(name="file_name", dtype=DataType.VARCHAR, max_length=512),
                FieldSchema(name="text", dtype=DataType.VARCHAR, max_length=65535),
                FieldSchema(
                    name="embedding", dtype=DataType.FLOAT_VECTOR, dim=self.dim
                ),
                FieldSchema(name="metadata", dtype=DataType.JSON),
            ],
            description="Tagged repository chunks",
        )
        collection = Collection(name=self.collection_name, schema=schema)
        collection.create_index(
            field_name="embedding",
            index_params={
                "metric_type": "IP",
                "index_type": "IVF_FLAT",
                "params": {"nlist": 128},
            },
        )
        collection.load()
        return collection

    def add(self, chunks: Sequence[Document]) -> None:
        """Embed and upsert chunks; any failure surfaces as ``StorageError``."""
        chunk_list: List[Document] = list(chunks)
        if not chunk_list:
            return
        try:
            if self._collection is None:
                self.connect()
            vectors = self._embed([chunk.page_content for chunk in chunk_list])
            self._upsert(chunk_list, vectors)
        except StorageError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to store {len(chunk_list)} chunks: {exc}") from exc

    def _embed(self, texts: List[str]) -> List[List[float]]:
        batch_size = max(1, settings.embedding_batch_size)
        vectors: List[List[float]] = []
        for start in range(0, len(texts), batch_size):
            vectors.extend(self.embedding_client.embed_documents(texts[start : start + batch_size]))
        if len(vectors) != len(texts):
            raise StorageError(
                f"Embedding provider returned {len(vectors)} vectors for {len(texts)} chunks"
            )
        return vectors

    def _upsert(self, chunks: List[Document], vectors: List[List[float]]) -> None:
        if self._collection is None:
            raise RuntimeError("Milvus collection is not initialized. Call connect() first.")
        batch_size = max(1, settings.milvus_upsert_batch_size)
        log.debug("upserting_chunks", count=len(chunks), collection=self.collection_name)
        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            ids, tags, names, texts, metadata = [], [], [], [], []
            for chunk in batch:
                meta: dict[str, Any] = dict(chunk.metadata)
                ids.append(chunk_id(chunk))
                tags.append(meta.get("knowledge_tag", ""))
                names.append(meta.get("file_name", ""))
                texts.append(chunk.page_content)
                metadata.append(meta)
            self._collection.upsert(
                [ids, tags, names, texts, vectors[start : start + batch_size], metadata]
            )
