"""
Structured logging for bootforge.

Every module logs dotted event names with key/value fields (container id,
image, binds, exit code) instead of interpolated strings:

    >>> from bootforge.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG")
    >>> logger = get_logger(__name__)
    >>> logger.info("container.created", container_id="3f2a9c", image="projectunik/boot-creator")

structlog renders the event and hands it to a standard library logger, so
records from the docker SDK and urllib3 share the same stderr handler and
level. ``configure_logging`` is called once by the CLI; library callers that
never call it get structlog's defaults.

Output (JSON format)::

    {"event": "container.created", "container_id": "3f2a9c",
     "image": "projectunik/boot-creator", "level": "info",
     "logger": "bootforge.runtimes.docker_api", "service": "bootforge",
     "timestamp": "2026-10-18T10:00:00.000000Z"}
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger


def _service_processor(service: str) -> Processor:
    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service", service)
        return event_dict

    return add_service


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "bootforge",
    cache_loggers: bool = True,
) -> None:
    """Configure structlog on top of stdlib logging, writing to stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of the ``service`` field on every record
        cache_loggers: Freeze each logger's configuration on first use
    """
    log_level = getattr(logging, level.upper())
    if json_format is None:
        json_format = not sys.stderr.isatty()

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _service_processor(service),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )

    # stdout is reserved for command results.
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=log_level,
        force=True,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


__all__ = [
    "configure_logging",
    "get_logger",
]
