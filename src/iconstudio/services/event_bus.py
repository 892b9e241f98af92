"""Synchronous publish/subscribe for engine events.

Each editor session owns one bus; the embedding host subscribes to learn about
markup updates, variant changes and captured log records without the engine
knowing anything about the host.

Behaviour:
 - handlers run synchronously, in subscription order
 - a failing handler is recorded in ``errors`` (and logged) and does not stop
   the remaining handlers
 - ``once`` subscriptions are dropped after their first successful call
 - optional tracing keeps a bounded ring of recent event summaries
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Deque, Dict, List, Protocol, Tuple

__all__ = [
    "EngineEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
    "TraceEntry",
]

_log = logging.getLogger(__name__)


class EngineEvent(str, Enum):
    PREVIEW_UPDATED = "preview_updated"
    MARKUP_UPDATED = "markup_updated"
    COLORS_UPDATED = "colors_updated"
    FILTER_PREVIEWED = "filter_previewed"
    VARIANTS_CHANGED = "variants_changed"
    DEFAULT_VARIANT_CHANGED = "default_variant_changed"
    STATE_CHANGED = "state_changed"
    PROFILES_FLUSHED = "profiles_flushed"
    LOG_RECORD_ADDED = "log_record_added"


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float


class EventHandler(Protocol):
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


@dataclass(frozen=True)
class TraceEntry:
    name: str
    timestamp: float
    summary: str


def _key(name: str | EngineEvent) -> str:
    return name.value if isinstance(name, EngineEvent) else name


class EventBus:
    """Event dispatcher with handler error isolation.

    Handlers are called with the lock released (subscribers are snapshotted
    first) so a handler may subscribe or unsubscribe re-entrantly.
    """

    DEFAULT_TRACE_CAPACITY = 50

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[Tuple[Event, Exception]] = []
        self._tracing_enabled = False
        self._traces: Deque[TraceEntry] = deque(maxlen=self.DEFAULT_TRACE_CAPACITY)

    def subscribe(
        self, name: str | EngineEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event, [])
            remaining = [s for s in bucket if s is not sub]
            if remaining:
                self._subs[sub.event] = remaining
            else:
                self._subs.pop(sub.event, None)
        sub.active = False

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()

    def publish(self, name: str | EngineEvent, payload: Any = None) -> Event:
        evt = Event(name=_key(name), payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(evt.name, ()))
            if self._tracing_enabled:
                text = "-" if payload is None else str(payload)
                summary = text if len(text) <= 40 else text[:37] + "..."
                self._traces.append(TraceEntry(evt.name, evt.timestamp, summary))
        finished: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                with self._lock:
                    self._errors.append((evt, exc))
                # Log records are republished as events; avoid feeding back into the bus
                if evt.name != EngineEvent.LOG_RECORD_ADDED.value:
                    _log.warning("handler for %s failed: %s", evt.name, exc)
            else:
                if sub.once:
                    finished.append(sub)
        for sub in finished:
            self.unsubscribe(sub)
        return evt

    def subscriber_count(self, name: str | EngineEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    def list_events(self) -> List[str]:
        with self._lock:
            return list(self._subs)

    @property
    def errors(self) -> List[Tuple[Event, Exception]]:
        with self._lock:
            return list(self._errors)

    def enable_tracing(self, enabled: bool = True, *, capacity: int | None = None) -> None:
        with self._lock:
            self._tracing_enabled = enabled
            if capacity is not None and capacity != self._traces.maxlen:
                self._traces = deque(self._traces, maxlen=capacity)

    @property
    def tracing_enabled(self) -> bool:
        with self._lock:
            return self._tracing_enabled

    def recent_traces(self) -> List[TraceEntry]:
        with self._lock:
            return list(self._traces)

    def clear_traces(self) -> None:
        with self._lock:
            self._traces.clear()
