# src/streamchain/engine/accounting.py
"""SizeAccountant: aggregate pending-size tracking with a hard ceiling.

Each stream producer reports its own buffered byte count (a DeferredSource
counts what it buffered before release). The accountant sums those counts
over the queued streams plus the active one. Exceeding the ceiling is
fatal to the session; it is not a backpressure signal.

Recomputation walks the queue on every data event. Queues are expected to
be short compared to payload sizes.
"""

from __future__ import annotations

import math
from collections.abc import Iterable

from streamchain.contracts.errors import DataSizeExceededError
from streamchain.engine.producers import ProducerDescriptor


class SizeAccountant:
    """Tracks ``data_size`` against ``max_data_size``.

    Example:
        accountant = SizeAccountant(max_data_size=1024)
        error = accountant.check(queue.streams(), active)
        if error is not None:
            fail(error)
    """

    def __init__(self, max_data_size: float) -> None:
        """Initialize the accountant.

        Args:
            max_data_size: Ceiling in bytes; math.inf disables it.

        Raises:
            ValueError: If max_data_size is not positive.
        """
        if not max_data_size > 0:
            raise ValueError(f"max_data_size must be > 0, got {max_data_size}")
        self.max_data_size = max_data_size
        self.data_size = 0

    @property
    def is_unbounded(self) -> bool:
        return math.isinf(self.max_data_size)

    def measure(self, queued: Iterable[ProducerDescriptor], active: ProducerDescriptor | None) -> int:
        """Recompute and store the pending size."""
        total = sum(descriptor.data_size for descriptor in queued)
        if active is not None:
            total += active.data_size
        self.data_size = total
        return total

    def check(
        self,
        queued: Iterable[ProducerDescriptor],
        active: ProducerDescriptor | None,
    ) -> DataSizeExceededError | None:
        """Recompute, returning the error to raise if the ceiling is exceeded."""
        size = self.measure(queued, active)
        if size <= self.max_data_size:
            return None
        return DataSizeExceededError(self.max_data_size, size)
