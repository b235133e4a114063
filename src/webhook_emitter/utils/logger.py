"""
Module: logger.py
Description: Structured logging configuration for the webhook emitter.

Configures structlog for JSON output optimized for CloudWatch Logs.
Provides consistent logging across the delivery pipeline, the SQS
worker and the HTTP API with proper context and structured data.

Key Components:
- JSON output for CloudWatch compatibility
- Timestamp and log level processors
- LOG_LEVEL environment variable for level filtering
- get_logger() helper function

Dependencies: structlog, logging, datetime
Author: Webhook Emitter Team
"""

import logging
import os
from datetime import datetime, timezone

import structlog


def _add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp to log entries.

    Args:
        logger: Logger instance
        method_name: Log method name (info, error, etc.)
        event_dict: Current log event dictionary

    Returns:
        Updated event dictionary with timestamp
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def _add_log_level(logger, method_name, event_dict):
    """Add log level to event dictionary."""
    event_dict["level"] = method_name.upper()
    return event_dict


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


# Configure structlog for JSON output optimized for CloudWatch
structlog.configure(
    processors=[
        _add_timestamp,
        _add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    logger_factory=structlog.WriteLoggerFactory(),
    wrapper_class=structlog.make_filtering_bound_logger(
        _resolve_level(os.environ.get("LOG_LEVEL", "INFO"))
    ),
    cache_logger_on_first_use=True,
)


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Webhook delivered", subscription_id="sub_123", status_code=200)
        {"event": "Webhook delivered", "subscription_id": "sub_123", "status_code": 200, "timestamp": "2024-01-15T10:30:00Z", "level": "INFO"}
    """
    return structlog.get_logger(name)
