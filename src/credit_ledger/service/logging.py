"""Structured logging configuration for the ledger service.

Configures structlog for JSON output in production, pretty output in development.
The store logs through the standard library under STORE_LOGGER, so its
per-transaction debug lines can be turned up without flooding the rest.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

STORE_LOGGER = "credit_ledger.store"


def _service_name_adder(service_name: str) -> Any:
    def add_service_name(logger: Any, method_name: str, event_dict: dict) -> dict:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service_name


def configure_logging(
    level: str = "INFO",
    json_output: bool | None = None,
    service_name: str = "credit-ledger",
    store_level: str | None = None,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Force JSON output. If None, auto-detect based on environment
        service_name: Service name added to every log entry
        store_level: Level for the ledger store logger. Falls back to
            $LEDGER_STORE_LOG_LEVEL, then to the root level
    """
    # JSON when not on a TTY (containers) or when explicitly requested
    if json_output is None:
        json_output = not sys.stderr.isatty() or os.getenv("LEDGER_LOG_JSON") == "1"

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        _service_name_adder(service_name),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route standard library records (store, uvicorn) through structlog
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    store_level = store_level or os.getenv("LEDGER_STORE_LOG_LEVEL")
    store_logger = logging.getLogger(STORE_LOGGER)
    store_logger.setLevel(getattr(logging, store_level.upper()) if store_level else logging.NOTSET)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structured logger
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """Bind context variables for all subsequent log entries in this context.

    Example:
        bind_context(correlation_id="abc123", account_id=1)
        logger.info("transaction_applied")  # Includes correlation_id and account_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


__all__ = [
    "STORE_LOGGER",
    "configure_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
