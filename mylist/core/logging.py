"""Structured logging — structlog rendered through stdlib handlers."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "asyncpg", "redis", "httpx")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Arguments override the environment:
        MYLIST_LOG_LEVEL  — level for the ``mylist`` logger tree (default: INFO)
        MYLIST_LOG_FORMAT — console | json (default: console)
    """
    log_level = (level or os.environ.get("MYLIST_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.environ.get("MYLIST_LOG_FORMAT", "console")).lower()

    shared = _shared_processors()
    renderer: structlog.types.Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    loggers: dict[str, dict] = {name: {"level": "WARNING"} for name in _QUIET_LOGGERS}
    loggers["mylist"] = {"level": log_level}
    loggers["uvicorn.error"] = {"level": "INFO"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                    "formatter": "structlog",
                },
            },
            "root": {"handlers": ["default"], "level": log_level},
            "loggers": loggers,
        }
    )
