"""
Token-bounded chunking of extracted text units.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from langchain_core.documents import Document
from langchain_text_splitters import TokenTextSplitter

from ..settings import settings


class Chunker(Protocol):
    """Protocol for splitting text units into bounded chunks."""

    def split(self, units: Sequence[Document]) -> List[Document]:
        ...


class TokenChunker:
    """Wraps LangChain's ``TokenTextSplitter`` with configured budgets."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        encoding_name: str = "cl100k_base",
    ) -> None:
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        self._splitter = TokenTextSplitter(
            encoding_name=encoding_name,
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
        )

    def split(self, units: Sequence[Document]) -> List[Document]:
        chunks = self._splitter.split_documents(list(units))
        return [chunk for chunk in chunks if chunk.page_content.strip()]
