"""Structured logging setup.

Library modules log through ``logging.getLogger(__name__)``; the web app,
sync engine and aggregate use structlog directly. Both end up in the same
structlog pipeline once ``configure_logging`` has run.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any

import structlog

# Loggers that are chatty at DEBUG and rarely useful here
_QUIET_LOGGERS = ("aiosqlite", "asyncio", "faker.factory", "httpx")


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level name; defaults to ``LOG_LEVEL`` (``INFO``)
        json_logs: Emit JSON lines; defaults to ``JSON_LOGS == "true"``
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("JSON_LOGS", "false").lower() == "true"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors + [renderer],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    # Also write to logs/ when the directory exists
    log_file = Path("logs/transitops.log")
    if log_file.parent.exists():
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", handlers=handlers, level=level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.INFO, logging.getLevelName(level)))


def configure_from_config() -> None:
    """Configure logging from the loaded ``AppConfig``."""
    from transitops.config import get_config

    config = get_config()
    configure_logging(level=config.log_level, json_logs=config.log_format == "json")
