"""
Inclusion/exclusion rules applied while walking a cloned repository.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from ..settings import (
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_MAX_FILE_BYTES,
    DEFAULT_PRUNED_DIRS,
    AppSettings,
    settings,
)


def _normalize_extensions(extensions: Iterable[str]) -> FrozenSet[str]:
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        normalized.add(ext if ext.startswith(".") else f".{ext}")
    return frozenset(normalized)


@dataclass(frozen=True)
class PathPolicy:
    """Decides which directories are entered and which files are ingested.

    Directory pruning is an exact name match at any depth; there is no
    globbing. File eligibility looks only at size and extension.
    """

    pruned_dirs: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_PRUNED_DIRS))
    allowed_extensions: FrozenSet[str] = field(
        default_factory=lambda: _normalize_extensions(DEFAULT_ALLOWED_EXTENSIONS)
    )
    max_file_bytes: int = DEFAULT_MAX_FILE_BYTES

    @classmethod
    def from_settings(cls, config: Optional[AppSettings] = None) -> PathPolicy:
        if config is None:
            config = settings
        return cls(
            pruned_dirs=frozenset(config.pruned_dirs),
            allowed_extensions=_normalize_extensions(config.allowed_extensions),
            max_file_bytes=config.max_file_bytes,
        )

    def directory_allowed(self, name: str) -> bool:
        return name not in self.pruned_dirs

    def file_eligible(self, path: Path, size_bytes: int) -> bool:
        if size_bytes == 0 or size_bytes > self.max_file_bytes:
            return False
        return Path(path).suffix.lower() in self.allowed_extensions
