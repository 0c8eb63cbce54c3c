# src/streamchain/core/events.py
"""Synchronous event emitter for push-style streams.

Listeners are keyed by event name and called synchronously, in
registration order, on the emitter's caller stack. Handler exceptions
propagate to whoever called emit().

An ``error`` event with no listeners is never dropped: emit() raises the
payload instead, so a failing producer cannot go unnoticed.

Interceptors see every emission before any listener does. They exist so
that wrappers (see streams.deferred.DeferredSource) can observe and capture
a source's events without the source knowing it has been wrapped.
"""

from collections.abc import Callable
from typing import Any, Self

from streamchain.contracts.errors import UnhandledStreamError

Listener = Callable[..., Any]
Interceptor = Callable[[str, tuple[Any, ...]], None]


class _OnceListener:
    """Wraps a listener so it detaches itself before its first call."""

    __slots__ = ("emitter", "event", "listener")

    def __init__(self, emitter: "EventEmitter", event: str, listener: Listener) -> None:
        self.emitter = emitter
        self.event = event
        self.listener = listener

    def __call__(self, *args: Any) -> Any:
        self.emitter.remove_listener(self.event, self)
        return self.listener(*args)


class EventEmitter:
    """Name-keyed synchronous event emitter.

    Example:
        emitter = EventEmitter()
        emitter.on("data", chunks.append)
        emitter.emit("data", b"abc")
    """

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}
        self._interceptors: list[Interceptor] = []

    def on(self, event: str, listener: Listener) -> Self:
        """Register a listener for an event.

        The same callable may be registered more than once; it is then
        called once per registration.
        """
        self._listeners.setdefault(event, []).append(listener)
        return self

    def once(self, event: str, listener: Listener) -> Self:
        """Register a listener that is removed before its first call."""
        return self.on(event, _OnceListener(self, event, listener))

    def remove_listener(self, event: str, listener: Listener) -> Self:
        """Remove the most recent registration of a listener.

        Listeners compare by equality, so a bound method can be removed by
        passing the same bound method again. Listeners registered through
        once() can be removed by passing the original callable. Removing an
        unknown listener is a no-op.
        """
        handlers = self._listeners.get(event)
        if not handlers:
            return self
        for index in range(len(handlers) - 1, -1, -1):
            handler = handlers[index]
            if handler == listener or (isinstance(handler, _OnceListener) and handler.listener == listener):
                del handlers[index]
                break
        if not handlers:
            del self._listeners[event]
        return self

    def listener_count(self, event: str) -> int:
        """Number of listeners currently registered for an event."""
        return len(self._listeners.get(event, ()))

    def add_interceptor(self, interceptor: Interceptor) -> None:
        """Register a hook called with (event, args) before any listener."""
        self._interceptors.append(interceptor)

    def emit(self, event: str, *args: Any) -> bool:
        """Dispatch an event to interceptors, then to listeners.

        Listeners are snapshotted before dispatch: a listener added during
        dispatch is not called for the current emission, a listener removed
        during dispatch still is.

        Returns:
            True if at least one listener was registered for the event.

        Raises:
            BaseException: The payload of an ``error`` event nobody listens to.
            UnhandledStreamError: Same, when the payload is not an exception.
        """
        for interceptor in tuple(self._interceptors):
            interceptor(event, args)

        handlers = tuple(self._listeners.get(event, ()))
        if not handlers:
            if event == "error":
                payload = args[0] if args else None
                if isinstance(payload, BaseException):
                    raise payload
                raise UnhandledStreamError(payload)
            return False

        for handler in handlers:
            handler(*args)
        return True
