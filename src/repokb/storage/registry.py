"""
Registry of knowledge-base tags.

Persists a JSON list of tags so the API can enumerate the knowledge bases
that exist in the vector index without querying Milvus. The CLI and the API
server are separate processes sharing one file, so every read goes to disk
and every add re-reads the file under an inter-process lock before writing.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import List, Optional, Set

from filelock import FileLock, Timeout

from ..errors import StorageError
from ..logger import get_logger
from ..settings import settings

log = get_logger(__name__)

_LOCK_TIMEOUT_SECONDS = 30.0


class TagRegistry:
    """JSON-backed set of knowledge-base tags."""

    def __init__(self, registry_path: Optional[Path] = None) -> None:
        self.registry_path = Path(registry_path or settings.resolved_registry_path())
        self._lock = threading.Lock()
        self._file_lock = FileLock(
            str(self.registry_path.with_name(f"{self.registry_path.name}.lock")),
            timeout=_LOCK_TIMEOUT_SECONDS,
        )
        log.debug("tag_registry_opened", path=str(self.registry_path))

    def _read(self, quarantine: bool = False) -> Set[str]:
        """Current tags on disk; a malformed file reads as empty.

        With *quarantine* set, a malformed file is moved aside to
        ``<name>.corrupt`` so the next write does not destroy it.
        """
        if not self.registry_path.exists():
            return set()
        try:
            data = json.loads(self.registry_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"Cannot read tag registry {self.registry_path}: {exc}") from exc
        except ValueError:
            data = None
        tags = data.get("tags") if isinstance(data, dict) else None
        if isinstance(tags, list):
            return {str(tag) for tag in tags}

        log.warning("tag_registry_malformed", path=str(self.registry_path))
        if quarantine:
            backup = self.registry_path.with_name(f"{self.registry_path.name}.corrupt")
            try:
                self.registry_path.replace(backup)
            except OSError as exc:
                raise StorageError(f"Cannot move aside malformed registry: {exc}") from exc
            log.warning("tag_registry_quarantined", backup=str(backup))
        return set()

    def _persist(self, tags: Set[str]) -> None:
        payload = {"tags": sorted(tags)}
        tmp_path = self.registry_path.with_name(f"{self.registry_path.name}.tmp")
        try:
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.registry_path)
        except OSError as exc:
            raise StorageError(f"Cannot write tag registry {self.registry_path}: {exc}") from exc
        log.debug("tag_registry_persisted", count=len(tags))

    def add(self, tag: str) -> bool:
        """Register *tag*; returns True only if no process had added it before."""
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Cannot create registry directory: {exc}") from exc
        try:
            with self._lock, self._file_lock:
                tags = self._read(quarantine=True)
                if tag in tags:
                    log.info("knowledge_tag_exists", tag=tag)
                    return False
                tags.add(tag)
                self._persist(tags)
        except Timeout as exc:
            raise StorageError(f"Timed out waiting for registry lock {exc.lock_file}") from exc
        log.info("knowledge_tag_added", tag=tag)
        return True

    def list(self) -> List[str]:
        return sorted(self._read())

    def __contains__(self, tag: object) -> bool:
        return tag in self._read()
