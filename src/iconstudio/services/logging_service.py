"""Ring-buffer capture of engine log records.

A ``logging.Handler`` that keeps the most recent records in a bounded deque
and republishes each one as ``EngineEvent.LOG_RECORD_ADDED`` on the session's
event bus, so a host can show engine diagnostics next to the editor.

The bus is handed in by the caller; there is no process-wide instance.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass
from threading import RLock
from typing import Any, Deque, Dict, List, Optional

from config.settings import LOG_BUFFER_CAPACITY

from .event_bus import EngineEvent, EventBus

__all__ = ["LogEntry", "LoggingService"]


@dataclass(frozen=True)
class LogEntry:
    level: str
    name: str
    message: str
    created: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class _RingBufferHandler(logging.Handler):
    def __init__(self, svc: "LoggingService") -> None:
        super().__init__()
        self._svc = svc

    def emit(self, record: logging.LogRecord) -> None:
        self._svc._ingest_record(record)


class LoggingService:
    def __init__(
        self,
        bus: Optional[EventBus] = None,
        capacity: int = LOG_BUFFER_CAPACITY,
        level: int = logging.DEBUG,
    ) -> None:
        self._bus = bus
        self._lock = RLock()
        self._entries: Deque[LogEntry] = deque(maxlen=capacity)
        self._handler = _RingBufferHandler(self)
        self._handler.setLevel(level)
        self._level = level
        self._logger_name = ""
        self._previous_level: Optional[int] = None
        self._attached = False

    @property
    def attached(self) -> bool:
        return self._attached

    def attach_root(self, logger_name: str = "") -> None:
        """Start capturing records of ``logger_name`` (root logger by default)."""
        if self._attached:
            return
        target = logging.getLogger(logger_name)
        target.addHandler(self._handler)
        self._previous_level = None
        if target.getEffectiveLevel() > self._level:
            self._previous_level = target.level
            target.setLevel(self._level)
        self._logger_name = logger_name
        self._attached = True

    def detach_root(self) -> None:
        if not self._attached:
            return
        target = logging.getLogger(self._logger_name)
        target.removeHandler(self._handler)
        if self._previous_level is not None:
            target.setLevel(self._previous_level)
            self._previous_level = None
        self._attached = False

    def _ingest_record(self, record: logging.LogRecord) -> None:
        entry = LogEntry(
            level=record.levelname,
            name=record.name,
            message=record.getMessage(),
            created=record.created,
        )
        with self._lock:
            self._entries.append(entry)
        if self._bus is not None:
            payload = entry.to_dict()
            payload["message"] = entry.message[:120]
            self._bus.publish(EngineEvent.LOG_RECORD_ADDED, payload)

    def recent(self, limit: Optional[int] = None) -> List[LogEntry]:
        with self._lock:
            data = list(self._entries)
        return data[-limit:] if limit is not None else data

    def filter(self, *, level: str | None = None, name_contains: str | None = None) -> List[LogEntry]:
        out: List[LogEntry] = []
        for e in self.recent():
            if level and e.level != level:
                continue
            if name_contains and name_contains not in e.name:
                continue
            out.append(e)
        return out

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
