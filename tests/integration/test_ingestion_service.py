from pathlib import Path

import pytest
from git import GitCommandError

from repokb.errors import StorageError
from repokb.ingestion import PathPolicy, RepoAcquirer
from repokb.services import RepositoryIngestionService
from repokb.storage import TagRegistry

from conftest import DummyExtractor, LineChunker, RecordingIndex

URL = "https://github.com/acme/widgets.git"


@pytest.fixture
def build_service(tmp_path: Path, fake_clone):
    def _build(clone=fake_clone, index=None, registry=None) -> RepositoryIngestionService:
        return RepositoryIngestionService(
            acquirer=RepoAcquirer(workspace_root=tmp_path / "clones", clone=clone),
            registry=registry or TagRegistry(registry_path=tmp_path / "tags.json"),
            extractor=DummyExtractor(),
            chunker=LineChunker(),
            index=index or RecordingIndex(),
            policy=PathPolicy(),
        )

    return _build


def _workspaces(tmp_path: Path) -> list:
    root = tmp_path / "clones"
    return list(root.iterdir()) if root.exists() else []


def test_successful_run_reports_summary_and_cleans_up(tmp_path: Path, build_service) -> None:
    index = RecordingIndex()
    service = build_service(index=index)

    response = service.analyze(URL, "tok")

    assert response.code == "200"
    assert response.info == "Analysis complete"
    assert response.data == (
        "project: widgets, processed: 3, failed: 1, chunks: 5, "
        "skipped: 3 (policy_excluded=2, empty_content=1)"
    )
    assert len(index.chunks) == 5
    assert {c.metadata["knowledge_tag"] for c in index.chunks} == {"widgets"}
    assert service.list_tags().data == ["widgets"]
    assert _workspaces(tmp_path) == []


def test_repeated_ingestion_registers_tag_once(tmp_path: Path, build_service) -> None:
    service = build_service()
    first = service.ingest(URL, "tok")
    second = service.ingest(URL, "tok")

    assert first.tag_created is True
    assert second.tag_created is False
    assert service.list_tags().data == ["widgets"]
    assert _workspaces(tmp_path) == []


@pytest.mark.parametrize(
    "repo_url, token",
    [(None, "tok"), ("   ", "tok"), (URL, None), (URL, "")],
)
def test_blank_inputs_are_rejected_before_cloning(
    tmp_path: Path, build_service, fake_clone, repo_url, token
) -> None:
    service = build_service()
    response = service.analyze(repo_url, token)

    assert response.code == "400"
    assert "must not be blank" in response.info
    assert fake_clone.calls == []
    assert not (tmp_path / "clones").exists()
    assert service.list_tags().data == []


def test_unparseable_url_is_a_client_error(tmp_path: Path, build_service, fake_clone) -> None:
    response = build_service().analyze("https://github.com/", "tok")
    assert response.code == "400"
    assert fake_clone.calls == []


def test_rejected_credentials_map_to_401(tmp_path: Path, build_service) -> None:
    def _clone(url: str, destination: Path, env: dict) -> None:
        destination.mkdir(parents=True)
        raise GitCommandError(["git", "clone"], 128, stderr="fatal: Authentication failed")

    service = build_service(clone=_clone)
    response = service.analyze(URL, "bad-token")

    assert response.code == "401"
    assert "bad-token" not in response.info
    assert service.list_tags().data == []
    assert _workspaces(tmp_path) == []


def test_network_failure_maps_to_500(tmp_path: Path, build_service) -> None:
    def _clone(url: str, destination: Path, env: dict) -> None:
        raise GitCommandError(
            ["git", "clone"], 128, stderr="fatal: unable to access: Could not resolve host"
        )

    response = build_service(clone=_clone).analyze(URL, "tok")
    assert response.code == "500"
    assert "Could not resolve host" in response.info


def test_unexpected_fault_after_clone_still_removes_workspace(tmp_path: Path, build_service) -> None:
    class ExplodingRegistry(TagRegistry):
        def add(self, tag: str) -> bool:
            raise RuntimeError("disk on fire")

    service = build_service(registry=ExplodingRegistry(registry_path=tmp_path / "tags.json"))
    response = service.analyze(URL, "tok")

    assert response.code == "500"
    assert response.info == "System error: disk on fire"
    assert _workspaces(tmp_path) == []


def test_registry_storage_failure_keeps_its_code(tmp_path: Path, build_service) -> None:
    class ReadOnlyRegistry(TagRegistry):
        def add(self, tag: str) -> bool:
            raise StorageError("registry is read-only")

    service = build_service(registry=ReadOnlyRegistry(registry_path=tmp_path / "tags.json"))
    response = service.analyze(URL, "tok")

    assert response.code == "500"
    assert response.info == "registry is read-only"
    assert _workspaces(tmp_path) == []


def test_index_failures_are_counted_not_fatal(tmp_path: Path, build_service) -> None:
    class BrokenIndex(RecordingIndex):
        def add(self, chunks):
            raise StorageError("milvus down")

    service = build_service(index=BrokenIndex())
    result = service.ingest(URL, "tok")

    assert result.stats.processed_files == 0
    assert result.stats.failed_files == 4
    assert result.stats.total_chunks == 0
    assert result.tag_created is True
