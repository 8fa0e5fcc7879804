"""Structured logging setup.

Modules log through ``structlog.get_logger(__name__)`` with snake_case
event names. ``bind_owner`` puts the owner id into the context so every
line written while a session runs can be traced back to its owner.
"""

import logging
import sys
from typing import Literal, TextIO

import structlog

from billstock.config.settings import get_settings

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


def _renderer(log_format: LogFormat) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    level: LogLevel | None = None,
    format: LogFormat | None = None,
    stream: TextIO | None = None,
) -> None:
    """Configure structlog on top of stdlib logging.

    Args:
        level: Log level. Defaults to the LOG_LEVEL setting.
        format: ``json`` or ``console``. Defaults to the LOG_FORMAT setting.
        stream: Where to write. Defaults to stdout.
    """
    settings = get_settings()
    log_level = level or settings.log_level

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, log_level),
    )

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _renderer(format or settings.log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_owner(owner_id: str) -> None:
    """Attach the owner id to every log line in the current context."""
    structlog.contextvars.bind_contextvars(owner_id=owner_id)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
