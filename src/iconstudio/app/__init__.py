"""Session wiring."""

from .bootstrap import EngineContext, create_session  # noqa: F401

__all__ = ["EngineContext", "create_session"]
