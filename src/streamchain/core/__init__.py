# src/streamchain/core/__init__.py
"""Core infrastructure: event emitter, configuration, logging."""

from streamchain.core.config import DEFAULT_MAX_DATA_SIZE, SessionSettings, load_settings
from streamchain.core.events import EventEmitter
from streamchain.core.logging import configure_logging, get_logger

__all__ = [
    "DEFAULT_MAX_DATA_SIZE",
    "EventEmitter",
    "SessionSettings",
    "configure_logging",
    "get_logger",
    "load_settings",
]
