"""
Lightweight in-memory telemetry for ingestion requests.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, TypedDict


@dataclass
class TelemetryEvent:
    code: str
    duration_ms: float
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return self.code == "200"


@dataclass
class IngestStats:
    count: int = 0
    failures: int = 0
    total_duration_ms: float = 0.0
    last_timestamp: Optional[float] = None

    def average_duration_ms(self) -> float:
        return self.total_duration_ms / self.count if self.count else 0.0


class RecentEvent(TypedDict):
    code: str
    ok: bool
    duration_ms: float
    metadata: Dict[str, Any]
    timestamp: float


class IngestSnapshot(TypedDict):
    count: int
    failures: int
    total_duration_ms: float
    last_timestamp: Optional[float]
    average_duration_ms: float


class TelemetrySnapshot(TypedDict):
    ingest: IngestSnapshot
    recent_events: List[RecentEvent]


class Telemetry:
    """In-memory stats tracker exposed via the `/telemetry` endpoint."""

    def __init__(self, history_size: int = 50) -> None:
        self._lock = threading.Lock()
        self._history: Deque[TelemetryEvent] = deque(maxlen=history_size)
        self._ingest = IngestStats()

    def record_ingest(
        self,
        duration_ms: float,
        code: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        event = TelemetryEvent(
            code=code, duration_ms=duration_ms, metadata=dict(metadata or {})
        )
        with self._lock:
            self._history.appendleft(event)
            self._ingest.count += 1
            self._ingest.total_duration_ms += duration_ms
            self._ingest.last_timestamp = event.timestamp
            if not event.ok:
                self._ingest.failures += 1

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            stats = self._ingest
            history: List[RecentEvent] = [
                {
                    "code": event.code,
                    "ok": event.ok,
                    "duration_ms": event.duration_ms,
                    "metadata": dict(event.metadata),
                    "timestamp": event.timestamp,
                }
                for event in self._history
            ]
            return {
                "ingest": {
                    "count": stats.count,
                    "failures": stats.failures,
                    "total_duration_ms": stats.total_duration_ms,
                    "last_timestamp": stats.last_timestamp,
                    "average_duration_ms": stats.average_duration_ms(),
                },
                "recent_events": history,
            }
