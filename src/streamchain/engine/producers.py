# src/streamchain/engine/producers.py
"""Producer descriptors: the tagged union a session queues.

A session accepts three kinds of producer:

- STREAM: a Stream instance. Drained through ``source``, which is a
  DeferredSource wrapping it unless it was appended already wrapped or
  arrived through a lazy factory.
- LITERAL: bytes, bytearray or str, emitted as one ``data`` event.
- LAZY: a callable taking one argument, a continuation, which it calls
  (now or later) with the producer to use in its place.

Classification happens once. Everything downstream dispatches on
``kind`` and never inspects the producer's type again.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from streamchain.contracts.enums import ProducerKind
from streamchain.contracts.errors import UnsupportedProducerError
from streamchain.streams.base import Stream
from streamchain.streams.deferred import DeferredSource

LiteralValue: TypeAlias = bytes | bytearray | str
Continuation: TypeAlias = Callable[[Any], None]
ProducerFactory: TypeAlias = Callable[[Continuation], Any]
Producer: TypeAlias = Stream | LiteralValue | ProducerFactory


@dataclass(slots=True, eq=False)
class ProducerDescriptor:
    """One queued producer plus the session's bookkeeping for it.

    Descriptors compare by identity: the queue may legitimately hold two
    descriptors for equal literals.

    Attributes:
        kind: Which variant ``value`` is.
        value: The producer as appended (or as resolved by a factory).
        source: The stream the session drains; None unless kind is STREAM.
        size_target: The stream carrying the session's size listener.
        is_prewrapped: The stream was a DeferredSource when appended.
        has_size_listener: The session's size listener is attached to
            ``size_target``.
    """

    kind: ProducerKind
    value: Any
    source: Stream | None = None
    size_target: Stream | None = None
    is_prewrapped: bool = False
    has_size_listener: bool = False

    @property
    def is_stream(self) -> bool:
        return self.kind is ProducerKind.STREAM

    @property
    def data_size(self) -> int:
        """Bytes the drained stream reports as buffered; 0 for non-streams."""
        if self.source is None:
            return 0
        size: int = getattr(self.source, "data_size", 0)
        return size


def classify_producer(producer: Any) -> ProducerDescriptor:
    """Build the descriptor for a producer.

    Order matters: a Stream subclass that happens to be callable is still
    a stream.

    Raises:
        UnsupportedProducerError: For anything that is not one of the
            three kinds (including duck-typed objects that merely have
            pause()/resume() methods).
    """
    if isinstance(producer, Stream):
        return ProducerDescriptor(
            kind=ProducerKind.STREAM,
            value=producer,
            source=producer,
            is_prewrapped=isinstance(producer, DeferredSource),
        )
    if isinstance(producer, (bytes, bytearray, str)):
        return ProducerDescriptor(kind=ProducerKind.LITERAL, value=producer)
    if callable(producer):
        return ProducerDescriptor(kind=ProducerKind.LAZY, value=producer)
    raise UnsupportedProducerError(producer)
