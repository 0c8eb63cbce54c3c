# src/streamchain/engine/session.py
"""SequenceSession: drain an ordered list of producers into one stream.

Producers are appended up front (or resolved lazily) and drained strictly
one after another: the session re-emits the active producer's ``data`` as
its own, and activates the next producer when the active one ends. The
session's own ``end`` fires only when the queue is exhausted.

Advance loop:
    Activation is driven by completion callbacks, and a producer may
    complete inside the very call that activates it (a literal always
    does, a stream whose events were buffered often does). _advance() is
    therefore a trampoline: a call made while a drain loop is already
    running only sets ``_pending_advance``, and the running loop performs
    the next step. A thousand synchronous producers cost a thousand loop
    iterations, not a thousand stack frames.

Flow control:
    Only the active stream is ever resumed. Queued streams are paused at
    append time (when ``pause_streams`` is set) and their DeferredSource
    wrapper holds anything they emit regardless, so at most one producer
    is emitting at any time.

Termination:
    Exactly one of ``end``, ``error`` or ``close`` is emitted, once. Every
    path goes through _reset(), which empties the queue and drops the
    active producer; callbacks arriving afterwards (late lazy resolutions,
    stale events from abandoned producers) are ignored.

Thread Safety:
    NOT thread-safe. All calls must come from the thread running the
    event loop (or callback chain) that drives the producers.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from typing import Any, Self

from streamchain.contracts.enums import ProducerKind, SessionState
from streamchain.core.config import SessionSettings
from streamchain.core.logging import get_logger
from streamchain.engine.accounting import SizeAccountant
from streamchain.engine.producers import ProducerDescriptor, classify_producer
from streamchain.engine.queue import SourceQueue
from streamchain.streams.base import Stream
from streamchain.streams.deferred import DeferredSource

logger = get_logger(__name__)


class SequenceSession(Stream):
    """Sequential concatenation of streams, literals and producer factories.

    Example:
        session = SequenceSession.create(max_data_size=4 * 1024 * 1024)
        session.append(header_bytes)
        session.append(body_stream)
        session.append(lambda next_producer: next_producer(trailer_stream))
        session.pipe(sink)  # starts draining

    Events:
        data(chunk): One per literal and per chunk of the active stream.
        pause / resume: Notifications of pause() / resume() calls.
        end: Queue exhausted. Terminal.
        error(exc): A producer failed or the size ceiling was exceeded.
            Terminal. Raised instead if nobody listens for it.
        close: destroy() was called. Terminal.
    """

    readable = True

    def __init__(self, settings: SessionSettings | None = None) -> None:
        super().__init__()
        self.settings = settings if settings is not None else SessionSettings()
        self.writable = False

        self._state = SessionState.IDLE
        self._released = False
        self._queue = SourceQueue()
        self._active: ProducerDescriptor | None = None
        self._accountant = SizeAccountant(self.settings.max_data_size)

        # Reentrancy guard for _advance()
        self._inside_loop = False
        self._pending_advance = False

    @classmethod
    def create(cls, settings: SessionSettings | None = None, **options: Any) -> Self:
        """Create a session from settings or keyword options.

        Args:
            settings: Validated settings. Mutually exclusive with options.
            **options: SessionSettings fields (max_data_size, pause_streams).

        Raises:
            TypeError: If both settings and options are given.
            ValidationError: If options fail validation.
        """
        if settings is not None and options:
            raise TypeError("Pass either settings or keyword options, not both")
        if settings is None:
            settings = SessionSettings(**options)
        return cls(settings)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def max_data_size(self) -> float:
        return self.settings.max_data_size

    @property
    def pause_streams(self) -> bool:
        return self.settings.pause_streams

    @property
    def data_size(self) -> int:
        """Pending bytes as of the last size check."""
        return self._accountant.data_size

    @property
    def active(self) -> ProducerDescriptor | None:
        """The producer currently draining, if any."""
        return self._active

    @property
    def queued(self) -> int:
        """Number of producers waiting for activation."""
        return len(self._queue)

    # ------------------------------------------------------------------
    # Source queue
    # ------------------------------------------------------------------

    def append(self, producer: Any) -> Self:
        """Queue a producer behind everything appended so far.

        Streams are wrapped in a DeferredSource (unless they already are
        one) so nothing they emit before activation is lost, and paused
        when ``pause_streams`` is set. Nothing is activated here.

        Appending to a finished session is ignored.

        Returns:
            self, for chaining.

        Raises:
            UnsupportedProducerError: If producer is not a Stream, bytes,
                bytearray, str or callable.
        """
        if self._state.is_terminal:
            logger.debug("append() ignored on finished session", state=self._state, producer=type(producer).__name__)
            return self

        descriptor = classify_producer(producer)
        if descriptor.is_stream:
            self._prepare_stream(descriptor)

        self._queue.push(descriptor)
        return self

    def _prepare_stream(self, descriptor: ProducerDescriptor) -> None:
        if not descriptor.is_prewrapped:
            raw = descriptor.value
            descriptor.source = DeferredSource.create(
                raw,
                max_data_size=math.inf,
                pause_stream=self.pause_streams,
            )
            # Measured on the raw stream, so buffered data counts as it arrives.
            self._attach_size_listener(descriptor, raw)

        source = self._drained(descriptor)
        source.on("error", self._handle_error)
        if self.pause_streams:
            source.pause()

    def _attach_size_listener(self, descriptor: ProducerDescriptor, target: Stream) -> None:
        target.on("data", self._check_data_size)
        descriptor.size_target = target
        descriptor.has_size_listener = True

    def _detach_size_listener(self, descriptor: ProducerDescriptor) -> None:
        if not descriptor.has_size_listener or descriptor.size_target is None:
            return
        descriptor.size_target.remove_listener("data", self._check_data_size)
        descriptor.has_size_listener = False

    @staticmethod
    def _drained(descriptor: ProducerDescriptor) -> Stream:
        if descriptor.source is None:
            raise RuntimeError(f"Producer descriptor of kind {descriptor.kind} has no stream to drain")
        return descriptor.source

    # ------------------------------------------------------------------
    # Advance engine
    # ------------------------------------------------------------------

    def _advance(self) -> None:
        """Move on to the next producer.

        Called on release and whenever the active producer completes. If a
        drain loop is already running further up the stack, the request is
        recorded and that loop performs it.
        """
        self._active = None
        if self._state is not SessionState.RUNNING:
            return

        if self._inside_loop:
            self._pending_advance = True
            return

        self._inside_loop = True
        try:
            self._pending_advance = True
            while self._pending_advance and self._state is SessionState.RUNNING:
                self._pending_advance = False
                self._advance_step()
        finally:
            self._inside_loop = False

    def _advance_step(self) -> None:
        descriptor = self._queue.pop()
        if descriptor is None:
            self.end()
            return
        self._activate(descriptor)

    def _activate(self, descriptor: ProducerDescriptor) -> None:
        if descriptor.kind is ProducerKind.LAZY:
            self._resolve(descriptor)
            return

        self._active = descriptor

        if descriptor.kind is ProducerKind.STREAM:
            source = self._drained(descriptor)
            source.once("end", self._make_end_listener(descriptor))
            # The session's own end comes from queue exhaustion only.
            source.pipe(self, end=False)
            return

        self.write(descriptor.value)
        self._advance()

    def _make_end_listener(self, descriptor: ProducerDescriptor) -> Callable[..., None]:
        def on_end(*_: Any) -> None:
            self._detach_size_listener(descriptor)
            # Ends from producers that are no longer active are stale.
            if self._active is descriptor:
                self._advance()

        return on_end

    def _resolve(self, descriptor: ProducerDescriptor) -> None:
        """Invoke a producer factory and activate whatever it yields.

        The continuation may run synchronously (inside this call, and so
        inside the drain loop) or later from the event loop; both end up
        in _activate(). Only its first call counts, and only while the
        session is still running.
        """
        factory = descriptor.value
        resolved = False

        def continuation(producer: Any) -> None:
            nonlocal resolved
            if resolved:
                logger.warning("Producer factory continuation called more than once", factory=repr(factory))
                return
            resolved = True

            if self._state is not SessionState.RUNNING:
                logger.debug("Late producer resolution ignored", state=self._state, producer=type(producer).__name__)
                return

            resolved_descriptor = classify_producer(producer)
            if resolved_descriptor.is_stream:
                stream = self._drained(resolved_descriptor)
                self._attach_size_listener(resolved_descriptor, stream)
                stream.on("error", self._handle_error)
            self._activate(resolved_descriptor)

        factory(continuation)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def write(self, chunk: Any) -> None:
        """Emit a chunk as session data. Dropped unless the session is running."""
        if self._state is not SessionState.RUNNING:
            return
        self.emit("data", chunk)

    # ------------------------------------------------------------------
    # Flow-control relay
    # ------------------------------------------------------------------

    def pause(self) -> None:
        """Pause the active stream (if ``pause_streams``) and notify."""
        if self._state.is_terminal:
            return
        super().pause()
        source = self._relay_target()
        if source is not None:
            source.pause()
        self.emit("pause")

    def resume(self) -> None:
        """Start draining on the first call; afterwards resume the active stream.

        Pausing and resuming are relayed symmetrically: both reach the
        active stream only when ``pause_streams`` is set.
        """
        if self._state.is_terminal:
            return
        super().resume()

        if not self._released:
            self._released = True
            self.writable = True
            self._state = SessionState.RUNNING
            logger.debug("Sequencing session released", queued=len(self._queue))
            self._advance()
            if self._state is not SessionState.RUNNING:
                return

        source = self._relay_target()
        if source is not None:
            source.resume()
            # A synchronous source may drain the rest of the queue right here.
            if self._state.is_terminal:
                return
        self.emit("resume")

    def _relay_target(self) -> Stream | None:
        if not self.pause_streams or self._active is None or not self._active.is_stream:
            return None
        return self._active.source

    # ------------------------------------------------------------------
    # Size accounting
    # ------------------------------------------------------------------

    def _check_data_size(self, *_: Any) -> None:
        if self._state.is_terminal:
            return
        error = self._accountant.check(self._queue.streams(), self._active)
        if error is not None:
            self._emit_error(error)

    # ------------------------------------------------------------------
    # Error / reset controller
    # ------------------------------------------------------------------

    def _handle_error(self, err: Any) -> None:
        self._emit_error(err)

    def _emit_error(self, err: Any) -> None:
        if self._state.is_terminal:
            logger.debug("Error after session finished ignored", state=self._state, error=str(err))
            return
        self._reset(SessionState.ERRORED)
        logger.warning("Sequencing session failed", error=str(err), error_type=type(err).__name__)
        self.emit("error", err)

    def end(self) -> None:
        """Finish the session normally. Emits ``end`` once."""
        if self._state.is_terminal:
            return
        self._reset(SessionState.ENDED)
        logger.debug("Sequencing session ended")
        self.emit("end")

    def destroy(self) -> None:
        """Tear the session down immediately. Emits ``close`` once.

        In-flight producers are abandoned, not destroyed. Calling this on a
        session that already ended or failed does nothing.
        """
        if self._state.is_terminal:
            logger.debug("destroy() ignored on finished session", state=self._state)
            return
        abandoned = len(self._queue) + (self._active is not None)
        self._reset(SessionState.CLOSED)
        logger.debug("Sequencing session destroyed", abandoned_producers=abandoned)
        self.emit("close")

    def _reset(self, state: SessionState) -> None:
        self._state = state
        self.writable = False
        self.readable = False

        pending = self._queue.clear()
        if self._active is not None:
            pending.append(self._active)
        for descriptor in pending:
            self._detach_size_listener(descriptor)

        self._active = None
        self._pending_advance = False
