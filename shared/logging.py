"""
Structured logging for the container metrics collector.

Loggers are plain structlog loggers named ``<service>.<component>``.
Request ids and the current collection cycle travel through
``structlog.contextvars`` so they reach every log line emitted while
they are bound, including lines from per-container tasks started by
the cycle.
"""

import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any, Callable, Dict, Optional

import structlog
from structlog.contextvars import bound_contextvars, clear_contextvars, merge_contextvars

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

Processor = Callable[[Any, str, Dict[str, Any]], Dict[str, Any]]


def service_context(service_name: str) -> Processor:
    """Processor stamping every event with the owning service."""

    def add_service(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return add_service


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the current request id, if any."""
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_logging(service_name: str, log_level: str = "info", log_format: str = "json") -> None:
    """Configure structlog and the stdlib root logger.

    ``log_format`` is ``json`` for one JSON object per line, or
    ``console`` for human-readable output.
    """
    renderer = (
        structlog.dev.ConsoleRenderer()
        if log_format == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            service_context(service_name),
            add_correlation_context,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )
    # Per-request httpx lines only at WARNING and above
    logging.getLogger("httpx").setLevel(logging.WARNING)


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set the request id for the current context, generating one if absent."""
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def clear_context():
    """Clear request-scoped logging context."""
    request_id_var.set(None)
    clear_contextvars()


def cycle_context(cycle: int):
    """Bind the cycle number to every log line emitted inside the block."""
    return bound_contextvars(cycle=cycle)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
