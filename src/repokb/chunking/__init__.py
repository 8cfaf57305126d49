"""
Extraction and chunking utilities for repository ingestion.

Files are read into LangChain ``Document`` text units and split into
token-bounded chunks ready to be tagged and embedded.
"""

from .extractors import FileTextExtractor, TextExtractor
from .splitter import Chunker, TokenChunker

__all__ = ["Chunker", "FileTextExtractor", "TextExtractor", "TokenChunker"]
