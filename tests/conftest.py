# tests/conftest.py
"""Shared test fixtures and fakes.

streamchain ships no concrete sources, so tests drive the engine with the
fakes defined here:

- ChunkSource: emits a fixed list of chunks when resumed, honouring
  pause(). Synchronous by default; pass a ManualScheduler to emit one
  chunk per scheduler tick instead.
- ManualSource: emits exactly what the test tells it to, when told,
  ignoring pause(). Records every flow-control call it receives.
- CollectingSink: writable destination that records writes and can apply
  backpressure.
- ManualScheduler: deterministic stand-in for an event loop's call_soon.
- EventRecorder: records a session's events in order.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from typing import Any

import pytest
from hypothesis import Verbosity, settings

from streamchain.core.logging import configure_logging
from streamchain.streams.base import Stream

settings.register_profile("ci", max_examples=100, deadline=None)
settings.register_profile("nightly", max_examples=1000, deadline=None)
settings.register_profile("debug", max_examples=10, verbosity=Verbosity.verbose, deadline=None)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))

SESSION_EVENTS = ("data", "pause", "resume", "end", "error", "close")


# =============================================================================
# Scheduler
# =============================================================================


class ManualScheduler:
    """Controllable callback queue for deterministic async tests.

    Example:
        scheduler = ManualScheduler()
        source = ChunkSource([b"a", b"b"], scheduler=scheduler)
        ...
        scheduler.run_until_idle()
    """

    def __init__(self) -> None:
        self._callbacks: deque[tuple[Callable[..., Any], tuple[Any, ...]]] = deque()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._callbacks.append((callback, args))

    def run_once(self) -> bool:
        """Run the oldest pending callback. Returns False if none was pending."""
        if not self._callbacks:
            return False
        callback, args = self._callbacks.popleft()
        callback(*args)
        return True

    def run_until_idle(self, limit: int = 100_000) -> int:
        """Run callbacks (including newly scheduled ones) until none remain."""
        ran = 0
        while self.run_once():
            ran += 1
            if ran > limit:
                raise RuntimeError(f"Scheduler did not go idle after {limit} callbacks")
        return ran

    def __len__(self) -> int:
        return len(self._callbacks)


# =============================================================================
# Sources and sinks
# =============================================================================


class ChunkSource(Stream):
    """Emits ``chunks`` then ``end`` (or ``error``) while not paused.

    Emission starts on resume(). Pausing mid-way stops after the current
    chunk; resuming continues where it left off.
    """

    readable = True

    def __init__(
        self,
        chunks: Iterable[Any],
        *,
        error: BaseException | None = None,
        scheduler: ManualScheduler | None = None,
        name: str = "chunks",
    ) -> None:
        super().__init__()
        self.name = name
        self.paused = True
        self._chunks: deque[Any] = deque(chunks)
        self._error = error
        self._scheduler = scheduler
        self._flushing = False
        self._scheduled = False
        self.finished = False
        self.flow_calls: list[str] = []

    def pause(self) -> None:
        self.flow_calls.append("pause")
        super().pause()

    def resume(self) -> None:
        self.flow_calls.append("resume")
        super().resume()
        if self._scheduler is None:
            self._flush()
        elif not self._scheduled and not self.finished:
            self._scheduled = True
            self._scheduler.call_soon(self._tick)

    def _tick(self) -> None:
        self._scheduled = False
        if self.paused or self.finished:
            return
        self._emit_next()
        if not self.finished:
            self._scheduled = True
            self._scheduler.call_soon(self._tick)  # type: ignore[union-attr]

    def _flush(self) -> None:
        # resume() may be re-entered from a data listener
        if self._flushing:
            return
        self._flushing = True
        try:
            while not self.paused and not self.finished:
                self._emit_next()
        finally:
            self._flushing = False

    def _emit_next(self) -> None:
        if self._chunks:
            self.emit("data", self._chunks.popleft())
            return
        self.finished = True
        self.readable = False
        if self._error is not None:
            self.emit("error", self._error)
        else:
            self.emit("end")

    def __repr__(self) -> str:
        return f"ChunkSource({self.name!r})"


class ManualSource(Stream):
    """Source the test drives by hand; pause() and resume() are only recorded."""

    readable = True

    def __init__(self, name: str = "manual") -> None:
        super().__init__()
        self.name = name
        self.flow_calls: list[str] = []

    def pause(self) -> None:
        self.flow_calls.append("pause")
        super().pause()

    def resume(self) -> None:
        self.flow_calls.append("resume")
        super().resume()

    def push(self, *chunks: Any) -> None:
        for chunk in chunks:
            self.emit("data", chunk)

    def finish(self) -> None:
        self.readable = False
        self.emit("end")

    def fail(self, error: BaseException) -> None:
        self.readable = False
        self.emit("error", error)


class CollectingSink(Stream):
    """Writable destination recording everything written to it.

    With ``high_water_mark`` set, write() returns False once that many
    chunks are held since the last drain().
    """

    writable = True

    def __init__(self, high_water_mark: int | None = None) -> None:
        super().__init__()
        self.chunks: list[Any] = []
        self.ended = False
        self.destroyed = False
        self._high_water_mark = high_water_mark
        self._held = 0

    def write(self, chunk: Any) -> bool:
        self.chunks.append(chunk)
        self._held += 1
        return self._high_water_mark is None or self._held < self._high_water_mark

    def drain(self) -> None:
        self._held = 0
        self.emit("drain")

    def end(self) -> None:
        self.ended = True
        self.writable = False
        self.emit("finish")

    def destroy(self) -> None:
        self.destroyed = True
        self.writable = False

    def joined(self) -> Any:
        return join_chunks(self.chunks)


class EventRecorder:
    """Records (event, payload) pairs emitted by a stream, in order."""

    def __init__(self, stream: Stream, events: Iterable[str] = SESSION_EVENTS) -> None:
        self.events: list[tuple[str, Any]] = []
        for event in events:
            stream.on(event, self._make_handler(event))

    def _make_handler(self, event: str) -> Callable[..., None]:
        def handler(*args: Any) -> None:
            self.events.append((event, args[0] if args else None))

        return handler

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def data(self) -> list[Any]:
        return [payload for name, payload in self.events if name == "data"]

    def count(self, event: str) -> int:
        return sum(1 for name, _ in self.events if name == event)

    def terminal_events(self) -> list[str]:
        return [name for name, _ in self.events if name in ("end", "error", "close")]

    def errors(self) -> list[Any]:
        return [payload for name, payload in self.events if name == "error"]

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self.events)


def join_chunks(chunks: Iterable[Any]) -> Any:
    """Concatenate str or bytes chunks (bytes if any chunk is bytes-like)."""
    chunk_list = list(chunks)
    if any(isinstance(chunk, (bytes, bytearray)) for chunk in chunk_list):
        return b"".join(chunk if isinstance(chunk, (bytes, bytearray)) else chunk.encode() for chunk in chunk_list)
    return "".join(chunk_list)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Keep debug-level lifecycle logging out of test output."""
    configure_logging(level="WARNING")


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def sink() -> CollectingSink:
    return CollectingSink()
