"""FastAPI dependency injection."""

from __future__ import annotations

import threading

from rauzy.config import settings
from rauzy.engine.config import EngineConfig
from rauzy.engine.context import ComputationContext, create_context

_context: ComputationContext | None = None
_context_lock = threading.Lock()


def get_settings():
    return settings


def get_context() -> ComputationContext:
    """Process-wide context shared by all requests."""
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = create_context(EngineConfig.from_settings(settings))
    return _context
