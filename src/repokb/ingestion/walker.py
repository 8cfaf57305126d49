"""
Traversal of a cloned workspace and per-file ingestion.

Candidates come from an explicit worklist so traversal order stays separate
from policy. Each candidate produces one tagged outcome (processed, failed,
or skipped with a reason) and the outcomes are folded into :class:`RunStats`.
A failing file is logged and counted, and the walk moves on.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Union

from langchain_core.documents import Document

from ..chunking import Chunker, TextExtractor
from ..logger import get_logger
from ..storage import VectorIndex
from .policy import PathPolicy

log = get_logger(__name__)


class SkipReason(str, Enum):
    POLICY_EXCLUDED = "policy_excluded"
    EMPTY_CONTENT = "empty_content"


@dataclass(frozen=True)
class FileCandidate:
    """A file entry met during traversal; ``size_bytes`` is None if stat failed."""

    path: Path
    size_bytes: Optional[int]
    extension: str
    error: Optional[OSError] = None
    symlink: bool = False


@dataclass(frozen=True)
class Processed:
    candidate: FileCandidate
    chunks: int


@dataclass(frozen=True)
class Failed:
    candidate: FileCandidate
    cause: BaseException


@dataclass(frozen=True)
class Skipped:
    candidate: FileCandidate
    reason: SkipReason


FileOutcome = Union[Processed, Failed, Skipped]


@dataclass
class RunStats:
    """Counters for one ingestion run."""

    total_files: int = 0
    processed_files: int = 0
    failed_files: int = 0
    total_chunks: int = 0
    skipped: Dict[SkipReason, int] = field(
        default_factory=lambda: {reason: 0 for reason in SkipReason}
    )

    @property
    def skipped_files(self) -> int:
        return self.total_files - self.processed_files - self.failed_files

    def record(self, outcome: FileOutcome) -> None:
        self.total_files += 1
        if isinstance(outcome, Processed):
            self.processed_files += 1
            self.total_chunks += outcome.chunks
        elif isinstance(outcome, Failed):
            self.failed_files += 1
        else:
            self.skipped[outcome.reason] += 1

    def as_dict(self) -> Dict[str, object]:
        return {
            "total_files": self.total_files,
            "processed_files": self.processed_files,
            "failed_files": self.failed_files,
            "skipped_files": self.skipped_files,
            "total_chunks": self.total_chunks,
            "skipped": {reason.value: count for reason, count in self.skipped.items()},
        }


def iter_candidates(root: Path, policy: PathPolicy) -> Iterator[FileCandidate]:
    """Yield every file under *root*, never entering pruned directories.

    Symbolic links are never followed: linked directories are not entered
    and linked files are yielded with ``symlink`` set and their own size.
    Unreadable directories are logged and skipped; their contents are never
    seen, so they do not count.
    """
    pending: List[Path] = [root]
    while pending:
        directory = pending.pop()
        try:
            with os.scandir(directory) as entries:
                children = list(entries)
        except OSError as exc:
            log.error("directory_unreadable", path=str(directory), error=str(exc))
            continue
        for entry in children:
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_link = entry.is_symlink()
            except OSError:
                is_dir, is_link = False, False
            path = Path(entry.path)
            if is_dir:
                if policy.directory_allowed(entry.name):
                    pending.append(path)
                else:
                    log.info("directory_pruned", path=str(path))
                continue
            try:
                size: Optional[int] = entry.stat(follow_symlinks=False).st_size
                error: Optional[OSError] = None
            except OSError as exc:
                size, error = None, exc
            yield FileCandidate(
                path=path,
                size_bytes=size,
                extension=path.suffix.lower(),
                error=error,
                symlink=is_link,
            )


class IngestionWalker:
    """Drives extract, chunk, tag and store for every eligible file."""

    def __init__(
        self,
        extractor: TextExtractor,
        chunker: Chunker,
        index: VectorIndex,
        policy: Optional[PathPolicy] = None,
        progress: Optional[Callable[[FileOutcome], None]] = None,
    ) -> None:
        self.extractor = extractor
        self.chunker = chunker
        self.index = index
        self.policy = policy or PathPolicy.from_settings()
        self.progress = progress

    def walk(self, workspace: Path, tag: str) -> RunStats:
        stats = RunStats()
        log.info("walk_started", root=str(workspace), knowledge_tag=tag)
        for candidate in iter_candidates(workspace, self.policy):
            outcome = self.ingest_file(candidate, workspace, tag)
            stats.record(outcome)
            if self.progress:
                self.progress(outcome)
        log.info("walk_completed", knowledge_tag=tag, **stats.as_dict())
        return stats

    def ingest_file(self, candidate: FileCandidate, root: Path, tag: str) -> FileOutcome:
        if candidate.error is not None or candidate.size_bytes is None:
            log.error("file_unreadable", path=str(candidate.path), error=str(candidate.error))
            return Failed(candidate, candidate.error or OSError("stat failed"))
        if candidate.symlink:
            log.warning("file_symlink_skipped", path=str(candidate.path))
            return Skipped(candidate, SkipReason.POLICY_EXCLUDED)
        if not self.policy.file_eligible(candidate.path, candidate.size_bytes):
            log.debug("file_skipped", path=str(candidate.path), size=candidate.size_bytes)
            return Skipped(candidate, SkipReason.POLICY_EXCLUDED)

        try:
            units = self.extractor.read(candidate.path)
            if not units:
                log.warning("file_empty", path=str(candidate.path))
                return Skipped(candidate, SkipReason.EMPTY_CONTENT)
            chunks = self.chunker.split(units)
            tagged = self._tag(chunks, candidate, root, tag)
            self.index.add(tagged)
        except Exception as exc:
            log.error("file_failed", path=str(candidate.path), error=str(exc), exc_info=True)
            return Failed(candidate, exc)

        log.info("file_processed", path=str(candidate.path), chunks=len(tagged))
        return Processed(candidate, len(tagged))

    @staticmethod
    def _tag(chunks: List[Document], candidate: FileCandidate, root: Path, tag: str) -> List[Document]:
        relative = candidate.path.relative_to(root).as_posix()
        tagged: List[Document] = []
        for index, chunk in enumerate(chunks):
            metadata = dict(chunk.metadata)
            metadata.update(
                {
                    "source": relative,
                    "knowledge_tag": tag,
                    "file_name": candidate.path.name,
                    "file_path": relative,
                    "chunk_index": index,
                }
            )
            tagged.append(Document(page_content=chunk.page_content, metadata=metadata))
        return tagged
