from typer.testing import CliRunner

from repokb import cli
from repokb.services import ServiceResponse

runner = CliRunner()


class StubService:
    last_call = None

    def analyze(self, repo_url, token, progress=None):
        StubService.last_call = (repo_url, token)
        if token == "bad":
            return ServiceResponse(code="401", info="Authentication failed")
        return ServiceResponse(code="200", info="Analysis complete", data="project: widgets")

    def list_tags(self):
        return ServiceResponse(code="200", info="Knowledge tags listed", data=["gadgets", "widgets"])


def test_ingest_success(monkeypatch) -> None:
    monkeypatch.setattr(cli, "RepositoryIngestionService", StubService)
    result = runner.invoke(
        cli.app, ["ingest", "https://github.com/acme/widgets.git", "--token", "tok"]
    )
    assert result.exit_code == 0
    assert "Analysis complete: project: widgets" in result.output
    assert StubService.last_call == ("https://github.com/acme/widgets.git", "tok")


def test_ingest_reads_token_from_env(monkeypatch) -> None:
    monkeypatch.setattr(cli, "RepositoryIngestionService", StubService)
    monkeypatch.setenv("REPOKB_GIT_TOKEN", "env-tok")
    result = runner.invoke(cli.app, ["ingest", "https://github.com/acme/widgets.git"])
    assert result.exit_code == 0
    assert StubService.last_call[1] == "env-tok"


def test_ingest_failure_exits_nonzero(monkeypatch) -> None:
    monkeypatch.setattr(cli, "RepositoryIngestionService", StubService)
    result = runner.invoke(
        cli.app, ["ingest", "https://github.com/acme/widgets.git", "-t", "bad"]
    )
    assert result.exit_code == 1
    assert "[401] Authentication failed" in result.output


def test_tags_lists_registry(monkeypatch) -> None:
    monkeypatch.setattr(cli, "RepositoryIngestionService", StubService)
    result = runner.invoke(cli.app, ["tags"])
    assert result.exit_code == 0
    assert "gadgets" in result.output
    assert "widgets" in result.output


def test_workspace_shows_paths() -> None:
    result = runner.invoke(cli.app, ["workspace"])
    assert result.exit_code == 0
    assert "Workspace root:" in result.output
    assert "Tag registry:" in result.output
