"""
Embedding providers for the vector index.

The default implementation delegates to LangChain embedding wrappers so the
provider (OpenAI or a local Ollama server) is chosen via configuration.
"""

from .providers import EmbeddingAdapter, EmbeddingProviderFactory

__all__ = ["EmbeddingAdapter", "EmbeddingProviderFactory"]
