from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import pytest
from langchain_core.documents import Document

from repokb.errors import ExtractionError


class DummyExtractor:
    """Reads files as text; ``corrupt`` in the name raises, ``blank`` yields nothing."""

    def read(self, path: Path) -> List[Document]:
        if "corrupt" in path.name:
            raise ExtractionError(f"cannot parse {path.name}")
        if "blank" in path.name:
            return []
        return [Document(page_content=path.read_text(), metadata={"source": str(path)})]


class LineChunker:
    """One chunk per non-empty line."""

    def split(self, units: Sequence[Document]) -> List[Document]:
        chunks = []
        for unit in units:
            for line in unit.page_content.splitlines():
                if line.strip():
                    chunks.append(Document(page_content=line, metadata=dict(unit.metadata)))
        return chunks


class RecordingIndex:
    def __init__(self) -> None:
        self.chunks: List[Document] = []

    def add(self, chunks: Sequence[Document]) -> None:
        self.chunks.extend(chunks)


def write_tree(root: Path, files: Dict[str, str | bytes]) -> None:
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content)


SAMPLE_REPO: Dict[str, str | bytes] = {
    "README.md": "# Widgets\nA sample project\n",
    "src/app.py": "def main():\n    return 42\n",
    "src/util.js": "export const x = 1;\n",
    "src/image.png": b"\x89PNG\r\n",
    "docs/empty.txt": "",
    "docs/blank_notes.md": "nothing to see\n",
    "docs/corrupt_spec.json": "{not json}\n",
    ".git/config": "[core]\n",
    "node_modules/lib/index.js": "module.exports = 1;\n",
    "web/build/bundle.js": "var a = 1;\n",
    "target/classes/App.java": "class App {}\n",
    ".idea/workspace.xml": "<project/>\n",
}


@pytest.fixture
def fake_clone():
    """Clone function that materialises SAMPLE_REPO instead of calling git."""
    calls: List[str] = []

    def _clone(url: str, destination: Path, env: dict) -> None:
        calls.append(url)
        destination.mkdir(parents=True)
        write_tree(destination, SAMPLE_REPO)

    _clone.calls = calls  # type: ignore[attr-defined]
    return _clone
