# src/streamchain/contracts/enums.py
"""Status codes and kinds shared across streamchain subsystems."""

from enum import StrEnum


class ProducerKind(StrEnum):
    """The closed set of producer variants a session accepts.

    Decided once, when the producer is classified at append (or lazy
    resolution) time. Nothing downstream re-probes the producer's type.
    """

    STREAM = "stream"
    LITERAL = "literal"
    LAZY = "lazy"


class SessionState(StrEnum):
    """Lifecycle state of a sequencing session.

    IDLE until the first resume(), RUNNING while draining, then exactly one
    of the terminal states. Sessions are single-use.
    """

    IDLE = "idle"
    RUNNING = "running"
    ENDED = "ended"
    ERRORED = "errored"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further data or lifecycle events may follow."""
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset({SessionState.ENDED, SessionState.ERRORED, SessionState.CLOSED})
