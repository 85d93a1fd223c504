"""Structured logging for the engine runtime (structlog on stderr)."""

from __future__ import annotations

import logging
import os
import sys

import structlog

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


def normalize_log_level(level: str | None) -> str:
    """Map engine style names ('DEBUG', 'warn', 'trace') onto a known level; unknown means info."""
    value = (level or "").strip().lower()
    if value == "warn":
        value = "warning"
    return value if value in LOG_LEVELS else "info"


def setup_logging(level: str | None = None) -> structlog.stdlib.BoundLogger:
    """Configure structlog; ``level`` falls back to LOG_LEVEL, then info."""
    threshold = getattr(logging, normalize_log_level(level or os.environ.get("LOG_LEVEL")).upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    # httpx and asyncio log through the standard library
    logging.basicConfig(level=threshold, stream=sys.stderr, format="%(name)s: %(message)s")

    return structlog.get_logger("enginehost")


logger: structlog.stdlib.BoundLogger = setup_logging()


def install_exception_hooks() -> None:
    """Send uncaught exceptions to the structured log; Ctrl-C keeps the default hook."""

    def log_uncaught(exc_type, exc_value, exc_traceback):  # type: ignore[no-untyped-def]
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.critical("Uncaught exception", error_type=exc_type.__name__, exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = log_uncaught


install_exception_hooks()
