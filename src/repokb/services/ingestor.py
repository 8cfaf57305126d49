"""
Repository ingestion workflow orchestration.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel

from ..chunking import Chunker, FileTextExtractor, TextExtractor, TokenChunker
from ..errors import RepoKBError, ValidationError
from ..ingestion import IngestionWalker, PathPolicy, RepoAcquirer, RunStats, resolve_project_name
from ..ingestion.walker import FileOutcome
from ..logger import get_logger
from ..storage import MilvusVectorStore, TagRegistry, VectorIndex

log = get_logger(__name__)


class ServiceResponse(BaseModel):
    """The ``{code, info, data}`` envelope returned to every caller."""

    code: str
    info: str
    data: Optional[Any] = None

    @property
    def ok(self) -> bool:
        return self.code == "200"


@dataclass
class IngestionResult:
    project: str
    stats: RunStats
    tag_created: bool

    def summary(self) -> str:
        skipped = ", ".join(
            f"{reason.value}={count}" for reason, count in self.stats.skipped.items()
        )
        return (
            f"project: {self.project}, processed: {self.stats.processed_files}, "
            f"failed: {self.stats.failed_files}, chunks: {self.stats.total_chunks}, "
            f"skipped: {self.stats.skipped_files} ({skipped})"
        )


def _require(value: Optional[str], label: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{label} must not be blank")
    return value.strip()


class RepositoryIngestionService:
    """Chains naming, cloning, walking, tagging and cleanup for one repository."""

    def __init__(
        self,
        acquirer: Optional[RepoAcquirer] = None,
        registry: Optional[TagRegistry] = None,
        extractor: Optional[TextExtractor] = None,
        chunker: Optional[Chunker] = None,
        index: Optional[VectorIndex] = None,
        policy: Optional[PathPolicy] = None,
    ) -> None:
        self.acquirer = acquirer or RepoAcquirer()
        self.registry = registry or TagRegistry()
        self.policy = policy or PathPolicy.from_settings()
        self._extractor = extractor
        self._chunker = chunker
        self._index = index

    def build_walker(
        self, progress: Optional[Callable[[FileOutcome], None]] = None
    ) -> IngestionWalker:
        # Chunker and index are built on first use; both touch external services.
        if self._extractor is None:
            self._extractor = FileTextExtractor()
        if self._chunker is None:
            self._chunker = TokenChunker()
        if self._index is None:
            self._index = MilvusVectorStore()
        return IngestionWalker(
            extractor=self._extractor,
            chunker=self._chunker,
            index=self._index,
            policy=self.policy,
            progress=progress,
        )

    def ingest(
        self,
        repo_url: Optional[str],
        token: Optional[str],
        progress: Optional[Callable[[FileOutcome], None]] = None,
    ) -> IngestionResult:
        """Clone, walk and tag one repository.

        Raises:
            ValidationError: If *repo_url* or *token* is blank.
            InvalidURLError: If no project name can be derived.
            AuthenticationError: If the credential is rejected.
            CloneError: On other clone failures.
        """
        url = _require(repo_url, "Repository URL")
        credential = _require(token, "Access token")
        project = resolve_project_name(url)

        with self.acquirer.workspace(url, credential) as handle:
            log.info("ingestion_started", project=project, workspace=str(handle.path))
            stats = self.build_walker(progress).walk(handle.path, project)
            tag_created = self.registry.add(project)

        log.info("ingestion_completed", project=project, tag_created=tag_created, **stats.as_dict())
        return IngestionResult(project=project, stats=stats, tag_created=tag_created)

    def analyze(
        self,
        repo_url: Optional[str],
        token: Optional[str],
        progress: Optional[Callable[[FileOutcome], None]] = None,
    ) -> ServiceResponse:
        """Run :meth:`ingest` and translate every outcome into a response."""
        try:
            result = self.ingest(repo_url, token, progress=progress)
        except RepoKBError as exc:
            log.error("ingestion_failed", kind=type(exc).__name__, code=exc.code, error=str(exc))
            return ServiceResponse(code=exc.code, info=str(exc))
        except Exception as exc:
            log.exception("ingestion_crashed")
            return ServiceResponse(code="500", info=f"System error: {exc}")
        return ServiceResponse(code="200", info="Analysis complete", data=result.summary())

    def list_tags(self) -> ServiceResponse:
        try:
            tags = self.registry.list()
        except RepoKBError as exc:
            log.error("knowledge_tags_unavailable", code=exc.code, error=str(exc))
            return ServiceResponse(code=exc.code, info=str(exc))
        log.info("knowledge_tags_listed", count=len(tags))
        return ServiceResponse(code="200", info="Knowledge tags listed", data=tags)
