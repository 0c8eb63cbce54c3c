# src/streamchain/engine/__init__.py
"""Sequencing engine: concatenate producers into one ordered stream.

This module provides:
- SequenceSession: the session object (advance loop, flow-control relay,
  error/reset handling)
- SourceQueue: FIFO of pending producer descriptors
- SizeAccountant: pending-size ceiling enforcement
- classify_producer / ProducerDescriptor: the producer tagged union

Example:
    from streamchain.engine import SequenceSession

    session = SequenceSession.create()
    session.append(b"header\\n").append(body_stream)
    session.on("data", out.append)
    session.resume()
"""

from streamchain.engine.accounting import SizeAccountant
from streamchain.engine.producers import (
    Continuation,
    LiteralValue,
    Producer,
    ProducerDescriptor,
    ProducerFactory,
    classify_producer,
)
from streamchain.engine.queue import SourceQueue
from streamchain.engine.session import SequenceSession

__all__ = [
    "Continuation",
    "LiteralValue",
    "Producer",
    "ProducerDescriptor",
    "ProducerFactory",
    "SequenceSession",
    "SizeAccountant",
    "SourceQueue",
    "classify_producer",
]
