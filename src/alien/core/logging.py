"""Structured logging configuration for alien.

Uses structlog on top of the stdlib logging module. Probes and the
controller log printf-style (``logger.info("%s: Stopped", probe)``), so
positional arguments are formatted before rendering and any
stdlib-compatible logger can stand in for the structlog one.

When the first positional argument is a probe, its endpoint is copied into
an ``endpoint`` field so JSON logs can be filtered per endpoint.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from alien.core.exceptions import ConfigurationError

SERVICE_NAME = "alien"

# Libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_handlers: list[logging.Handler] = []


def add_service(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Tag every event with the service name."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def add_endpoint(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Lift the endpoint of a probe passed as first positional argument."""
    args = event_dict.get("positional_args")
    if args:
        endpoint = getattr(args[0], "endpoint", None)
        if isinstance(endpoint, str):
            event_dict.setdefault("endpoint", endpoint)
    return event_dict


def parse_level(level: str) -> int:
    """Map a level name to its numeric value.

    Raises:
        ConfigurationError: If the name is not a logging level
    """
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ConfigurationError(f"Unknown log level '{level}'")
    return numeric


def configure_logging(
    level: str = "INFO",
    json_format: bool = False,
    log_file: str | None = None,
) -> Any:
    """Configure structured logging.

    Calling this again replaces the handlers installed by the previous call.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: If True, output JSON logs for machine parsing
        log_file: Optional file path for logging

    Returns:
        Configured logger instance
    """
    numeric_level = parse_level(level)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_endpoint,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    while _handlers:
        previous = _handlers.pop()
        root_logger.removeHandler(previous)
        previous.close()

    _handlers.append(logging.StreamHandler(sys.stdout))
    if log_file:
        _handlers.append(logging.FileHandler(log_file))

    for handler in _handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    return structlog.get_logger(SERVICE_NAME)


def get_logger(name: str = SERVICE_NAME) -> Any:
    """Get a structlog logger."""
    return structlog.get_logger(name)


def reset_logging() -> None:
    """Undo :func:`configure_logging`: drop its handlers and structlog config."""
    root_logger = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()
    structlog.reset_defaults()
