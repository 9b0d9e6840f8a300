"""Diagnostic logging for helmdrift.

Logs are structlog events written to stderr; stdout carries only the drift
report. ``json`` output suits log collectors, ``console`` is for people
reading a terminal.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

LOG_FORMATS = ("json", "console")


def setup_logging(level: str = "warning", fmt: str = "json", stream: TextIO | None = None) -> None:
    """Configure structlog for the current process.

    Unknown levels fall back to ``warning``. *stream* defaults to whatever
    ``sys.stderr`` is at call time.
    """
    if fmt not in LOG_FORMATS:
        raise ValueError(f"Invalid log format: {fmt}. Must be one of {', '.join(LOG_FORMATS)}")
    log_level = logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)

    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=False)
    else:
        renderer = structlog.processors.JSONRenderer(sort_keys=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream if stream is not None else sys.stderr),
        cache_logger_on_first_use=True,
    )


def bind_run_context(release: str, namespace: str) -> None:
    """Attach the release being checked to every later log event."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(release=release, namespace=namespace)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(component=component)  # type: ignore[return-value]
