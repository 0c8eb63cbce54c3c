# src/streamchain/contracts/errors.py
"""Exceptions raised or emitted by streamchain.

Fatal session conditions are not raised at the point of detection. They
are emitted as the session's ``error`` event, and only surface as raised
exceptions when nobody listens for that event.
"""

from typing import Any


class StreamChainError(Exception):
    """Base class for all streamchain errors."""


class DataSizeExceededError(StreamChainError):
    """Raised when buffered data grows past a configured ceiling.

    This is a hard limit, not a backpressure signal: the session (or
    deferred source) that detects it is torn down.

    Attributes:
        max_data_size: The configured ceiling in bytes
        data_size: The measured size that exceeded it
    """

    def __init__(self, max_data_size: float, data_size: int) -> None:
        self.max_data_size = max_data_size
        self.data_size = data_size
        super().__init__(f"max_data_size of {max_data_size} bytes exceeded")


class UnsupportedProducerError(StreamChainError, TypeError):
    """Raised when appending a value that is not a stream, literal or factory."""

    def __init__(self, producer: Any) -> None:
        self.producer = producer
        super().__init__(
            f"Cannot append {type(producer).__name__!r}: expected a Stream, bytes, str, or a producer factory callable"
        )


class UnhandledStreamError(StreamChainError):
    """Raised for an unhandled ``error`` event whose payload is not an exception."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        super().__init__(f"Unhandled 'error' event: {payload!r}")
