"""Structured logging setup."""

import logging

import structlog

from .config import get_settings


def configure_logging(level: str | None = None) -> None:
    """Configure structlog with a level threshold and console output.

    Optional: without it, structlog's defaults apply. level defaults to
    ZR_LOG_LEVEL.
    """
    level = (level or get_settings().log_level).upper()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level, logging.INFO)
        ),
        cache_logger_on_first_use=True,
    )
