# src/streamchain/streams/base.py
"""Stream: the push-style source capability consumed by the engine.

A Stream is an EventEmitter with flow control. Sources emit ``data``
events in order, then exactly one of ``end``, ``error`` or ``close``.
pause() asks the source to stop emitting, resume() to start again; both
are advisory, and this base implementation only records the request in
``paused``.

streamchain does not ship concrete sources. Subclasses decide when and
what to emit; see tests/conftest.py for the shapes used in tests.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from streamchain.contracts.errors import UnhandledStreamError
from streamchain.core.events import EventEmitter


class Stream(EventEmitter):
    """Base class for push-style sources and writable destinations.

    Writable destinations (anything passed to pipe()) implement write(),
    returning False when the caller should pause, and end(). They emit
    ``drain`` when they can accept more data.

    Attributes:
        readable: Whether the stream emits data.
        writable: Whether write() currently accepts data.
        paused: Whether pause() was the last flow-control call.
    """

    readable: bool = False
    writable: bool = False

    def __init__(self) -> None:
        super().__init__()
        self.paused = False

    def pause(self) -> None:
        self.paused = True

    def resume(self) -> None:
        self.paused = False

    def write(self, chunk: Any) -> bool | None:
        raise NotImplementedError(f"{type(self).__name__} is not writable")

    def end(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} is not writable")

    def destroy(self) -> None:
        self.readable = False
        self.writable = False
        self.emit("close")

    def pipe(self, dest: Stream, *, end: bool = True) -> Stream:
        """Forward this stream's data to dest, then resume this stream.

        - ``data`` is written to dest while dest is writable. A write()
          returning False pauses this stream; dest's ``drain`` resumes it.
        - ``end`` calls dest.end() and ``close`` calls dest.destroy(),
          unless end=False. Either happens at most once.
        - An ``error`` on either side detaches the pipe; the error is
          re-raised if the pipe was its only listener.
        - All listeners are removed when either side ends or closes.

        Returns:
            dest, for chaining.
        """
        source = self
        did_finish = False

        def ondata(chunk: Any) -> None:
            if dest.writable and dest.write(chunk) is False:
                source.pause()

        def ondrain() -> None:
            if source.readable:
                source.resume()

        def onend() -> None:
            nonlocal did_finish
            if did_finish:
                return
            did_finish = True
            dest.end()

        def onclose() -> None:
            nonlocal did_finish
            if did_finish:
                return
            did_finish = True
            dest.destroy()

        def make_onerror(emitter: Stream) -> Callable[[Any], None]:
            def onerror(err: Any) -> None:
                cleanup()
                if emitter.listener_count("error") == 0:
                    if isinstance(err, BaseException):
                        raise err
                    raise UnhandledStreamError(err)

            return onerror

        source_onerror = make_onerror(source)
        dest_onerror = make_onerror(dest)

        def cleanup(*_: Any) -> None:
            source.remove_listener("data", ondata)
            dest.remove_listener("drain", ondrain)
            source.remove_listener("end", onend)
            source.remove_listener("close", onclose)
            source.remove_listener("error", source_onerror)
            dest.remove_listener("error", dest_onerror)
            source.remove_listener("end", cleanup)
            source.remove_listener("close", cleanup)
            dest.remove_listener("end", cleanup)
            dest.remove_listener("close", cleanup)

        source.on("data", ondata)
        dest.on("drain", ondrain)
        if end:
            source.on("end", onend)
            source.on("close", onclose)
        source.on("error", source_onerror)
        dest.on("error", dest_onerror)
        source.on("end", cleanup)
        source.on("close", cleanup)
        dest.on("end", cleanup)
        dest.on("close", cleanup)

        dest.emit("pipe", source)
        self.resume()
        return dest
