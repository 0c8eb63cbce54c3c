# src/streamchain/streams/__init__.py
"""Stream collaborators consumed by the engine: the Stream capability and DeferredSource."""

from streamchain.streams.base import Stream
from streamchain.streams.deferred import DEFAULT_DEFERRED_MAX_DATA_SIZE, DeferredSource

__all__ = [
    "DEFAULT_DEFERRED_MAX_DATA_SIZE",
    "DeferredSource",
    "Stream",
]
