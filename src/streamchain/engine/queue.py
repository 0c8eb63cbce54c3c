# src/streamchain/engine/queue.py
"""SourceQueue: FIFO of producer descriptors awaiting activation."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator

from streamchain.engine.producers import ProducerDescriptor


class SourceQueue:
    """Insertion-ordered queue of pending producers.

    Only push() at the tail and pop() at the head are offered; there is no
    way to reorder, since queue order is emission order.

    Thread Safety:
        NOT thread-safe. A session and its queue belong to one event loop.
    """

    def __init__(self) -> None:
        self._items: deque[ProducerDescriptor] = deque()

    def push(self, descriptor: ProducerDescriptor) -> None:
        self._items.append(descriptor)

    def pop(self) -> ProducerDescriptor | None:
        """Remove and return the head, or None when empty."""
        if not self._items:
            return None
        return self._items.popleft()

    def clear(self) -> list[ProducerDescriptor]:
        """Empty the queue, returning what was pending (head first)."""
        drained = list(self._items)
        self._items.clear()
        return drained

    def streams(self) -> Iterator[ProducerDescriptor]:
        """Pending descriptors of kind STREAM, head first."""
        return (descriptor for descriptor in self._items if descriptor.is_stream)

    def __iter__(self) -> Iterator[ProducerDescriptor]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)
