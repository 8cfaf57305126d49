"""Project-name derivation from repository URLs.

The project name doubles as the knowledge-base tag and the workspace suffix.
Only the final path segment is kept, so ``https://github.com/a/widgets`` and
``https://gitlab.com/b/widgets`` share one tag. That collision is a known
limitation of the tagging scheme and is intentionally left alone.
"""

from __future__ import annotations

import re

from ..errors import InvalidURLError

__all__ = ["resolve_project_name", "sanitize_workspace_name"]

# https://host/group/sub/repo(.git) and git@host:group/repo(.git)
_URL_PATTERN = re.compile(
    r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*://[^/\s]+/|[^@\s/]+@[^:\s/]+:)"
    r"(?:[^/\s]+/)*"
    r"(?P<name>[^/\s]+?)"
    r"(?:\.git)?/*$"
)
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def resolve_project_name(url: str) -> str:
    """Return the path segment preceding an optional trailing ``.git``.

    Raises:
        InvalidURLError: If *url* is neither an ``https://`` style URL nor an
            scp-style ``git@host:path`` reference with a final segment.
    """
    candidate = (url or "").strip()
    match = _URL_PATTERN.match(candidate)
    if match is None:
        raise InvalidURLError(f"Invalid repository URL: {url!r}")
    name = match.group("name")
    if name in {"", ".", ".."} or name.lower() == ".git":
        raise InvalidURLError(f"Invalid repository URL: {url!r}")
    return name


def sanitize_workspace_name(name: str) -> str:
    """Map a project name onto a filesystem-safe directory stem."""
    cleaned = _UNSAFE_CHARS.sub("_", name).strip("._")
    return cleaned or "repo"
