"""Service layer exports.

Responsibilities:
 - EventBus publish/subscribe core
 - LoggingService ring buffer capture
 - Profile persistence and the in-memory VariantStore
 - IconEditorSession (editor-surface handlers)
"""

from .event_bus import EngineEvent, EventBus  # noqa: F401
from .logging_service import LoggingService  # noqa: F401
from .profile_persistence import ProfileDocumentStore  # noqa: F401
from .variant_store import VariantStore  # noqa: F401
from .editor_session import EditResult, IconEditorSession  # noqa: F401

__all__ = [
    "EngineEvent",
    "EventBus",
    "LoggingService",
    "ProfileDocumentStore",
    "VariantStore",
    "EditResult",
    "IconEditorSession",
]
