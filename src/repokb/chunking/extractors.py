"""
Text extraction for repository files.

Each reader turns one file into LangChain ``Document`` text units. PDFs yield
one unit per non-blank page; every other supported format yields at most one
unit. Blank content yields nothing, which the walker reports as an empty
file rather than a failure.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Callable, Dict, List, Protocol

from bs4 import BeautifulSoup
from docx import Document as DocxDocument
from langchain_core.documents import Document
from pypdf import PdfReader

from ..errors import ExtractionError
from ..logger import get_logger

log = get_logger(__name__)


class TextExtractor(Protocol):
    """Protocol for file-to-text readers used by the ingestion walker."""

    def read(self, path: Path) -> List[Document]:
        ...


def _single(text: str, path: Path) -> List[Document]:
    if not text.strip():
        return []
    return [Document(page_content=text, metadata={"source": str(path)})]


def read_plain_text(path: Path) -> List[Document]:
    return _single(path.read_text(encoding="utf-8", errors="replace"), path)


def read_pdf(path: Path) -> List[Document]:
    reader = PdfReader(str(path))
    units: List[Document] = []
    for index, page in enumerate(reader.pages):
        text = page.extract_text() or ""
        if text.strip():
            units.append(
                Document(page_content=text, metadata={"source": str(path), "page": index + 1})
            )
    return units


def read_docx(path: Path) -> List[Document]:
    document = DocxDocument(str(path))
    return _single("\n".join(p.text for p in document.paragraphs if p.text), path)


def read_html(path: Path) -> List[Document]:
    soup = BeautifulSoup(path.read_text(encoding="utf-8", errors="replace"), "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()
    text = re.sub(r"\n{3,}", "\n\n", soup.get_text("\n"))
    return _single(text.strip(), path)


def read_legacy_doc(path: Path) -> List[Document]:
    raise ExtractionError(f"Legacy Word format is not supported: {path.name}")


class FileTextExtractor:
    """Dispatches on file extension; unknown extensions are read as UTF-8."""

    def __init__(self, readers: Dict[str, Callable[[Path], List[Document]]] | None = None) -> None:
        self.readers: Dict[str, Callable[[Path], List[Document]]] = {
            ".pdf": read_pdf,
            ".docx": read_docx,
            ".doc": read_legacy_doc,
            ".html": read_html,
        }
        if readers:
            self.readers.update(readers)

    def read(self, path: Path) -> List[Document]:
        reader = self.readers.get(path.suffix.lower(), read_plain_text)
        try:
            return reader(path)
        except ExtractionError:
            raise
        except Exception as exc:
            raise ExtractionError(f"Failed to extract {path.name}: {exc}") from exc
