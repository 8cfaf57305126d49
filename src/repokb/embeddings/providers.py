"""
Embedding client construction.

LangChain embedding wrappers are selected by configuration so the vector
index can be backed by a hosted API or a local model.
"""
from __future__ import annotations

from typing import Any, Iterable, List, Protocol

from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)


class EmbeddingAdapter(Protocol):
    """Protocol representing a pluggable embeddings client."""

    def embed_documents(self, texts: Iterable[str]) -> List[List[float]]:
        ...

    def embed_query(self, text: str) -> List[float]:
        ...


class EmbeddingProviderFactory:
    """Factory that returns embedding clients based on configuration."""

    @staticmethod
    def create(provider: str | None = None, model: str | None = None) -> EmbeddingAdapter:
        provider_name = (provider or settings.embedding_provider).lower()
        embed_model = model or settings.embedding_model

        if provider_name == "openai":
            from langchain_openai import OpenAIEmbeddings  # type: ignore

            log.info("initializing_openai_embeddings", model=embed_model)
            kwargs: dict[str, Any] = {"model": embed_model}
            if settings.embedding_api_base:
                kwargs["base_url"] = settings.embedding_api_base
            if settings.embedding_api_key:
                kwargs["api_key"] = settings.embedding_api_key
            return OpenAIEmbeddings(**kwargs)

        if provider_name == "ollama":
            from langchain_community.embeddings import OllamaEmbeddings  # type: ignore

            log.info("initializing_ollama_embeddings", model=embed_model)
            kwargs = {"model": embed_model}
            if settings.embedding_api_base:
                kwargs["base_url"] = settings.embedding_api_base
            return OllamaEmbeddings(**kwargs)

        raise NotImplementedError(f"Embedding provider not yet supported: {provider_name}")
