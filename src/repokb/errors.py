"""
Error taxonomy for repository ingestion.

Each error carries the response ``code`` it maps to at the service boundary.
Per-file and cleanup errors never reach a caller: the walker counts the
former and the workspace layer logs the latter.
"""

from __future__ import annotations


class RepoKBError(Exception):
    """Base class for all ingestion errors."""

    code = "500"


class ValidationError(RepoKBError):
    """A required request field is missing or blank."""

    code = "400"


class InvalidURLError(RepoKBError):
    """No project name can be extracted from the repository URL."""

    code = "400"


class AuthenticationError(RepoKBError):
    """The remote rejected the supplied credential during clone."""

    code = "401"


class CloneError(RepoKBError):
    """Network, protocol or local I/O failure while cloning."""

    code = "500"


class ExtractionError(RepoKBError):
    """A single file could not be turned into text."""


class StorageError(RepoKBError):
    """The vector index refused or failed to persist chunks."""


class CleanupError(RepoKBError):
    """The workspace could not be removed from disk."""


__all__ = [
    "AuthenticationError",
    "CleanupError",
    "CloneError",
    "ExtractionError",
    "InvalidURLError",
    "RepoKBError",
    "StorageError",
    "ValidationError",
]
