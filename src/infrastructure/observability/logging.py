"""Structured logging configuration with OpenTelemetry integration.

Configures structlog for JSON logging with correlation IDs from trace context.
Masks credentials (GitHub tokens, cluster bearer tokens, proxy auth headers).
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

from src.infrastructure.config import get_settings

SENSITIVE_KEYS = frozenset(
    {
        "token",
        "github_token",
        "bearer_token",
        "password",
        "secret",
        "authorization",
        "x-auth-request-access-token",
        "cookie",
    }
)


def configure_logging(
    log_level: str | None = None,
    json_format: bool | None = None,
) -> None:
    """Configure structured logging with structlog.

    Args:
        log_level: Overrides the configured level (e.g., "DEBUG")
        json_format: Overrides the configured renderer choice
    """
    otel_config = get_settings().observability
    level = (log_level or otel_config.log_level).upper()
    use_json = otel_config.log_json_format if json_format is None else json_format

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    processors: list = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _add_trace_context,
        _filter_sensitive_data,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
    ]

    if use_json:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _add_trace_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Add trace_id and span_id of the active span, if any."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")

    return event_dict


def _filter_sensitive_data(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Mask credential values in log events, including nested dicts.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Log event dictionary

    Returns:
        Event dictionary with credentials masked
    """

    def mask_value(key: Any, value: Any) -> Any:
        if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
            if isinstance(value, str) and len(value) > 4:
                return f"{value[:4]}{'*' * (len(value) - 4)}"
            return "***REDACTED***"
        return value

    def filter_dict(d: dict[str, Any]) -> dict[str, Any]:
        return {
            k: mask_value(k, filter_dict(v) if isinstance(v, dict) else v)
            for k, v in d.items()
        }

    return filter_dict(event_dict)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("service_created", service_name="auth-api", user="alice")
    """
    return structlog.get_logger(name)
