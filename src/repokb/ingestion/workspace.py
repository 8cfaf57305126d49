"""
Workspace lifecycle for cloned repositories.

Every ingestion run clones into its own directory under the workspace root,
named ``<project>-<epoch millis>-<random hex>`` so concurrent runs never
share a tree, even for the same repository within one millisecond.
The directory is removed when the run ends, whatever the outcome.
"""
from __future__ import annotations

import os
import re
import shutil
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, Optional
from urllib.parse import quote, urlsplit, urlunsplit

from git import GitCommandError, Repo

from ..errors import AuthenticationError, CleanupError, CloneError
from ..logger import get_logger
from ..settings import settings
from .naming import resolve_project_name, sanitize_workspace_name

log = get_logger(__name__)

CloneFunction = Callable[[str, Path, dict], object]

_AUTH_FAILURE_MARKERS = (
    "authentication failed",
    "could not read username",
    "could not read password",
    "invalid username or password",
    "permission denied",
    "access denied",
    "http basic: access denied",
    "the requested url returned error: 401",
    "the requested url returned error: 403",
    "bad credentials",
)


@dataclass
class WorkspaceHandle:
    """A cloned working copy owned by exactly one ingestion run."""

    path: Path
    created_at: float = field(default_factory=time.time)


def authenticated_url(url: str, token: str) -> str:
    """Embed *token* as basic-auth userinfo for http(s) clone URLs.

    scp-style and ssh URLs are returned unchanged; they authenticate through
    the ssh agent rather than a password.
    """
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.hostname:
        return url
    host = parts.hostname
    if parts.port:
        host = f"{host}:{parts.port}"
    netloc = f"x-access-token:{quote(token, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def redact_token(text: str, token: Optional[str] = None) -> str:
    """Strip credentials from URLs (and the raw token) before logging."""
    redacted = re.sub(r"(https?://)[^/@\s]+@", r"\1***@", text)
    if token:
        redacted = redacted.replace(token, "***")
        quoted = quote(token, safe="")
        if quoted != token:
            redacted = redacted.replace(quoted, "***")
    return redacted


def git_noninteractive_env() -> dict[str, str]:
    """Environment with interactive credential prompts disabled."""
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    env["GCM_INTERACTIVE"] = "never"
    return env


def _gitpython_clone(url: str, destination: Path, env: dict) -> Repo:
    return Repo.clone_from(url, destination, env=env)


def _is_auth_failure(message: str) -> bool:
    lowered = message.lower()
    return any(marker in lowered for marker in _AUTH_FAILURE_MARKERS)


class RepoAcquirer:
    """Clones repositories into isolated workspaces and removes them afterwards."""

    def __init__(
        self,
        workspace_root: Optional[Path] = None,
        clone: Optional[CloneFunction] = None,
    ) -> None:
        self.workspace_root = Path(workspace_root or settings.workspace_root)
        self._clone = clone or _gitpython_clone

    def workspace_path(self, project_name: str) -> Path:
        stamp = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:8]
        return self.workspace_root / f"{sanitize_workspace_name(project_name)}-{stamp}-{suffix}"

    def acquire(self, url: str, token: str) -> WorkspaceHandle:
        """Clone *url* into a fresh workspace directory.

        Raises:
            InvalidURLError: If no project name can be derived from *url*.
            AuthenticationError: If the remote rejects *token*.
            CloneError: On any other clone or local I/O failure.
        """
        project = resolve_project_name(url)
        target = self.workspace_path(project)
        safe_url = redact_token(url, token)

        try:
            if target.exists():
                log.warning("workspace_preexisting_removed", path=str(target))
                shutil.rmtree(target)
            self.workspace_root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise CloneError(f"Cannot prepare workspace {target}: {exc}") from exc

        handle = WorkspaceHandle(path=target)
        log.info("clone_started", url=safe_url, path=str(target.resolve()))
        try:
            self._clone(authenticated_url(url, token), target, git_noninteractive_env())
        except GitCommandError as exc:
            self.release(handle)
            detail = redact_token(f"{exc.stderr or ''} {exc}", token)
            if _is_auth_failure(detail):
                log.error("clone_auth_failed", url=safe_url)
                raise AuthenticationError(
                    f"Authentication failed for {safe_url}; check the access token."
                ) from None
            log.error("clone_failed", url=safe_url, error=detail.strip())
            raise CloneError(f"Git clone failed for {safe_url}: {detail.strip()}") from None
        except OSError as exc:
            self.release(handle)
            log.error("clone_io_failed", url=safe_url, error=str(exc))
            raise CloneError(f"File operation failed while cloning {safe_url}: {exc}") from exc
        except Exception:
            self.release(handle)
            raise

        log.info("clone_completed", url=safe_url, path=str(target))
        return handle

    def release(self, handle: WorkspaceHandle) -> None:
        """Recursively delete the workspace; failures are logged, never raised."""
        try:
            self._remove(handle.path)
        except CleanupError as exc:
            log.warning("workspace_cleanup_failed", path=str(handle.path), error=str(exc))
        else:
            log.info("workspace_removed", path=str(handle.path))

    @staticmethod
    def _remove(path: Path) -> None:
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise CleanupError(str(exc)) from exc

    @contextmanager
    def workspace(self, url: str, token: str) -> Iterator[WorkspaceHandle]:
        """Acquire a workspace for the duration of the ``with`` block."""
        handle = self.acquire(url, token)
        try:
            yield handle
        finally:
            self.release(handle)
