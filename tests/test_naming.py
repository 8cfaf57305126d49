import pytest

from repokb.errors import InvalidURLError
from repokb.ingestion import resolve_project_name
from repokb.ingestion.naming import sanitize_workspace_name


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/acme/widgets.git",
        "https://github.com/acme/widgets",
        "https://github.com/acme/widgets/",
        "git@github.com:acme/widgets",
        "git@github.com:acme/widgets.git",
        "https://gitlab.example.com/group/subgroup/widgets.git",
        "  https://github.com/acme/widgets.git  ",
    ],
)
def test_resolves_final_segment(url: str) -> None:
    assert resolve_project_name(url) == "widgets"


def test_dotted_names_keep_inner_dots() -> None:
    assert resolve_project_name("https://github.com/acme/my.lib.git") == "my.lib"


@pytest.mark.parametrize(
    "url",
    [
        "not a url",
        "",
        "https://github.com/",
        "widgets",
        "ftp//broken",
        "https://github.com/acme/.git",
        "https://github.com/acme/.git/",
        "git@github.com:acme/.GIT",
    ],
)
def test_invalid_urls_raise(url: str) -> None:
    with pytest.raises(InvalidURLError):
        resolve_project_name(url)


def test_same_final_segment_collides() -> None:
    first = resolve_project_name("https://github.com/acme/widgets")
    second = resolve_project_name("https://gitlab.com/other/widgets")
    assert first == second


def test_sanitize_workspace_name() -> None:
    assert sanitize_workspace_name("widgets") == "widgets"
    assert sanitize_workspace_name("we ird/name") == "we_ird_name"
    assert sanitize_workspace_name("..") == "repo"
