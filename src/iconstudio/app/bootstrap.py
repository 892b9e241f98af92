"""Per-session construction of the engine services.

``create_session`` builds one event bus, one logging service and one variant
store bound to a profile document, and returns them in an
:class:`EngineContext`. Nothing is registered globally: callers hand the
context (or its members) to whatever needs it, so two sessions in the same
process never share state.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from config.settings import DATA_DIR, LOG_BUFFER_CAPACITY, VARIANTS_FILENAME
from iconstudio.services.editor_session import IconEditorSession
from iconstudio.services.event_bus import EventBus
from iconstudio.services.logging_service import LoggingService
from iconstudio.services.profile_persistence import ProfileDocumentStore
from iconstudio.services.variant_store import VariantStore

__all__ = ["EngineContext", "create_session"]

_log = logging.getLogger(__name__)


@dataclass
class EngineContext:
    """References created for one editing session.

    Attributes
    ----------
    bus: Session event bus
    logging_service: Ring-buffer log capture publishing onto ``bus``
    store: Variant store backed by ``persistence``
    persistence: JSON document store (``variants_path``)
    started_at: perf_counter timestamp when construction began
    duration_s: Seconds spent constructing the session
    metadata: Free-form values (data dir, capture flag)
    """

    bus: EventBus
    logging_service: LoggingService
    store: VariantStore
    persistence: ProfileDocumentStore
    started_at: float
    duration_s: float
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def variants_path(self) -> Path:
        return self.persistence.path

    def open_editor(self, icon_name: str, markup: str) -> IconEditorSession:
        return IconEditorSession(icon_name, markup, self.store, self.bus)

    def close(self, *, flush: bool = False) -> None:
        """Detach log capture; optionally flush pending profile changes first."""
        if flush and self.store.has_unsaved_changes:
            self.store.flush()
        self.logging_service.detach_root()


def create_session(
    data_dir: str | Path | None = None,
    *,
    variants_file: str | None = None,
    capture_logs: bool = False,
    log_capacity: int = LOG_BUFFER_CAPACITY,
) -> EngineContext:
    """Build the services for one session.

    Parameters
    ----------
    data_dir: Directory holding the profile document (defaults to ``DATA_DIR``).
    variants_file: File name inside ``data_dir`` (defaults to ``VARIANTS_FILENAME``).
    capture_logs: Attach the logging service to the ``iconstudio`` logger tree.
    """
    started = time.perf_counter()
    base = Path(data_dir) if data_dir is not None else Path(DATA_DIR)
    bus = EventBus()
    logging_service = LoggingService(bus, capacity=log_capacity)
    if capture_logs:
        logging_service.attach_root("iconstudio")
    persistence = ProfileDocumentStore(base / (variants_file or VARIANTS_FILENAME))
    store = VariantStore(persistence, bus)
    duration = time.perf_counter() - started
    _log.debug("Session created for %s in %.4fs", persistence.path, duration)
    return EngineContext(
        bus=bus,
        logging_service=logging_service,
        store=store,
        persistence=persistence,
        started_at=started,
        duration_s=duration,
        metadata={"data_dir": str(base), "capture_logs": capture_logs},
    )
