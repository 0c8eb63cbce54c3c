"""Shared contracts: enums and exceptions used across subsystem boundaries.

This package is a LEAF MODULE with no outbound dependencies to core,
streams or engine. Settings live in streamchain.core.config.
"""

from streamchain.contracts.enums import ProducerKind, SessionState
from streamchain.contracts.errors import (
    DataSizeExceededError,
    StreamChainError,
    UnhandledStreamError,
    UnsupportedProducerError,
)

__all__ = [
    "DataSizeExceededError",
    "ProducerKind",
    "SessionState",
    "StreamChainError",
    "UnhandledStreamError",
    "UnsupportedProducerError",
]
