"""structlog setup shared by the gateway and every service process.

PLATFORM_LOG_FORMAT picks the renderer. ``auto`` renders colored console
lines on a TTY or with FORCE_COLOR set, and JSON lines everywhere else.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

from infrastructure.settings import LoggingSettings

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _use_colors(log_format: str) -> bool:
    if log_format == "console":
        return True
    if log_format == "json":
        return False
    # FORCE_COLOR=1 enables colors even in non-TTY environments (like Docker)
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    return force_color or sys.stdout.isatty()


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog with appropriate processors.

    Called once at process startup. Components receive loggers through
    their probes and never reconfigure logging themselves.
    """
    settings = settings or LoggingSettings()
    level = _LEVELS[settings.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if _use_colors(settings.format):
        processors: list[structlog.types.Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # uvicorn and httpx log through the standard library
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stdout)
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
