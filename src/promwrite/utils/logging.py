"""Structured logging for the client, routed through stdlib logging.

Library loggers wrap ``logging.getLogger(name)`` directly instead of going
through ``structlog.get_logger``, so events obey stdlib levels and handlers
and stay silent until the embedding application configures logging. The
``promwrite`` logger carries a ``NullHandler`` for the same reason.
"""

import logging
import sys
from typing import IO, Optional

import structlog

LIBRARY_LOGGER = "promwrite"

logging.getLogger(LIBRARY_LOGGER).addHandler(logging.NullHandler())

# Shared by library loggers and foreign (plain stdlib) records
_PRE_CHAIN = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger bound to the stdlib logger ``name``.

    Events below the stdlib logger's effective level are dropped before any
    processing. The event dict is handed to the stdlib handlers, which
    render it with the formatter from :func:`setup_logging` or, under a
    plain ``logging.Formatter``, as a dict.
    """
    return structlog.wrap_logger(
        logging.getLogger(name),
        wrapper_class=structlog.stdlib.BoundLogger,
        processors=[
            structlog.stdlib.filter_by_level,
            *_PRE_CHAIN,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
    )


def setup_logging(log_level: str = "INFO", stream: Optional[IO[str]] = None) -> None:
    """Send client events to a stream, for scripts that have no logging setup.

    Applications with their own logging configuration should skip this and
    just set the level of the ``promwrite`` logger.

    Args:
        log_level: Level for the ``promwrite`` logger (DEBUG, INFO, ...).
        stream: Defaults to stderr; JSON lines unless it is a terminal.
    """
    stream = stream or sys.stderr
    renderer = (
        structlog.dev.ConsoleRenderer()
        if stream.isatty()
        else structlog.processors.JSONRenderer()
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_PRE_CHAIN,
        )
    )

    logger = logging.getLogger(LIBRARY_LOGGER)
    for existing in [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]:
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    logger.propagate = False
