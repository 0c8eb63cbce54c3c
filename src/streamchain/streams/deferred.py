# src/streamchain/streams/deferred.py
"""DeferredSource: hold a source's emissions until someone is ready for them.

Sources that start emitting as soon as they exist (or ignore pause()) lose
data if nothing is listening yet. DeferredSource intercepts every event the
wrapped source emits. Until the wrapper is first resumed, events are
buffered in order and the byte length of buffered ``data`` is tracked in
``data_size``. The first resume() replays the buffer; afterwards events
pass straight through.

The wrapped source's own ``error`` event is forwarded through the wrapper
(buffered like any other event), so listeners belong on the wrapper.
"""

from __future__ import annotations

import math
from typing import Any, Self

from streamchain.contracts.errors import DataSizeExceededError
from streamchain.core.logging import get_logger
from streamchain.streams.base import Stream

logger = get_logger(__name__)

# 1 MiB: default ceiling on bytes buffered before release.
DEFAULT_DEFERRED_MAX_DATA_SIZE = 1024 * 1024


def chunk_size(chunk: Any) -> int:
    """Byte length used for size accounting; 0 for unsized payloads."""
    try:
        return len(chunk)
    except TypeError:
        return 0


class DeferredSource(Stream):
    """Wrapper that buffers a source's events until its first resume().

    Build instances with create(); the constructor does not attach to a
    source.

    Attributes:
        source: The wrapped stream.
        data_size: Bytes of ``data`` buffered before release. Not reduced
            by the replay.
        max_data_size: Buffered bytes allowed before the wrapper emits a
            DataSizeExceededError (once).
        pause_stream: Whether create() paused the source.

    Example:
        deferred = DeferredSource.create(eager_source)
        ...  # eager_source emits; nothing is lost
        deferred.pipe(sink)  # replays buffered events, then streams live
    """

    def __init__(self) -> None:
        super().__init__()
        self.source: Stream | None = None
        self.data_size = 0
        self.max_data_size: float = DEFAULT_DEFERRED_MAX_DATA_SIZE
        self.pause_stream = True
        self._max_data_size_exceeded = False
        self._released = False
        self._buffered_events: list[tuple[str, tuple[Any, ...]]] = []

    @classmethod
    def create(
        cls,
        source: Stream,
        *,
        max_data_size: float = DEFAULT_DEFERRED_MAX_DATA_SIZE,
        pause_stream: bool = True,
    ) -> Self:
        """Wrap a source.

        Args:
            source: Stream to wrap.
            max_data_size: Ceiling for buffered bytes; math.inf disables it.
            pause_stream: Pause the source immediately.

        Returns:
            The wrapper, already capturing the source's events.
        """
        deferred = cls()
        deferred.max_data_size = max_data_size
        deferred.pause_stream = pause_stream
        deferred.source = source

        source.add_interceptor(deferred._handle_emit)
        # The error reaches listeners through the wrapper; this listener only
        # stops the source's emitter from treating it as unhandled.
        source.on("error", _forwarded_error)

        if pause_stream:
            source.pause()

        logger.debug(
            "Deferred source created",
            source=type(source).__name__,
            max_data_size=None if math.isinf(max_data_size) else max_data_size,
            pause_stream=pause_stream,
        )
        return deferred

    @property
    def readable(self) -> bool:  # type: ignore[override]
        return self._source.readable

    @property
    def released(self) -> bool:
        """Whether buffered events have been replayed."""
        return self._released

    @property
    def _source(self) -> Stream:
        if self.source is None:
            raise RuntimeError("DeferredSource used before create() attached a source")
        return self.source

    def resume(self) -> None:
        if not self._released:
            self.release()
        super().resume()
        self._source.resume()

    def pause(self) -> None:
        super().pause()
        self._source.pause()

    def destroy(self) -> None:
        self._source.destroy()

    def release(self) -> None:
        """Replay buffered events in emission order and switch to passthrough."""
        self._released = True
        buffered, self._buffered_events = self._buffered_events, []
        if buffered:
            logger.debug("Deferred source released", buffered_events=len(buffered), data_size=self.data_size)
        for event, args in buffered:
            self.emit(event, *args)

    def _handle_emit(self, event: str, args: tuple[Any, ...]) -> None:
        if self._released:
            self.emit(event, *args)
            return

        if event == "data" and args:
            self.data_size += chunk_size(args[0])
            self._check_if_max_data_size_exceeded()

        self._buffered_events.append((event, args))

    def _check_if_max_data_size_exceeded(self) -> None:
        if self._max_data_size_exceeded:
            return
        if self.data_size <= self.max_data_size:
            return

        self._max_data_size_exceeded = True
        self.emit("error", DataSizeExceededError(self.max_data_size, self.data_size))


def _forwarded_error(err: Any) -> None:
    pass  # Intentional no-op, see DeferredSource.create()
