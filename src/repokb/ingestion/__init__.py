"""
Repository ingestion package.

This package contains the logic for naming, cloning, and walking code
repositories before their files are chunked, tagged and stored.
"""
from .naming import resolve_project_name
from .policy import PathPolicy
from .walker import IngestionWalker, RunStats, SkipReason
from .workspace import RepoAcquirer, WorkspaceHandle

__all__ = [
    "IngestionWalker",
    "PathPolicy",
    "RepoAcquirer",
    "RunStats",
    "SkipReason",
    "WorkspaceHandle",
    "resolve_project_name",
]
