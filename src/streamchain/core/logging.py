# src/streamchain/core/logging.py
"""Structured logging for streamchain.

Every streamchain module takes its logger from get_logger(__name__) and
logs key/value events: debug for session lifecycle (release, end, ignored
misuse), warning when a session fails. Nothing is configured on import.

configure_logging() is for applications and tests. It routes structlog
and stdlib records through one ProcessorFormatter on stdout, so both come
out in the same format, tagged with the emitting module's name:

    configure_logging(json_output=True, level="DEBUG")
    # {"event": "Sequencing session released", "queued": 3,
    #  "logger": "streamchain.engine.session", "level": "debug", ...}
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# Third-party loggers kept at WARNING or above whatever the root level is.
_NOISY_LOGGERS: tuple[str, ...] = (
    "asyncio",
    "dynaconf",
)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop the ``_record`` and ``_from_structlog`` keys ProcessorFormatter adds."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog and stdlib logging to render on stdout.

    Safe to call repeatedly; each call replaces the root handler.

    Args:
        json_output: One JSON object per line if True, console lines otherwise.
        level: Root log level name (DEBUG, INFO, WARNING, ERROR).
    """
    log_level = getattr(logging, level.upper())
    shared_processors = _shared_processors()

    renderer: Any = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    final_processors: list[Any] = [_remove_internal_fields]
    if json_output:
        final_processors.append(structlog.processors.format_exc_info)
    final_processors.append(renderer)

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Module-level loggers are created at import, before configuration.
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=final_processors, foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Logger for a streamchain module; pass ``__name__``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
