# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Structured logging for the AgentFlow engine.

Provides JSON-formatted logging for easy parsing and analysis, plus a
sanitizer so user payloads (trigger data, node outputs) can be logged
without leaking credentials or personal data.
"""

import logging
import json
import re
import sys
from datetime import datetime, timezone
from typing import Optional, Any
from pathlib import Path


# LogRecord attributes that are not "extra" fields
_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName",
    "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName",
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as JSON for easy parsing by log aggregation systems.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Simple text formatter for human-readable logs."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Get configured logger instance.

    Args:
        name: Logger name (usually __name__)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format type (json or text)
        log_file: Optional log file path

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    if log_format == "json":
        formatter = JSONFormatter()
    else:
        formatter = TextFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def log_event(
    logger: logging.Logger,
    event: str,
    level: str = "INFO",
    **kwargs: Any
) -> None:
    """
    Log structured event with additional fields.

    Args:
        logger: Logger instance
        event: Event name
        level: Log level
        **kwargs: Additional fields to include in log
    """
    log_func = getattr(logger, level.lower())
    log_func(event, extra=kwargs)


# Pre-configured loggers
def get_api_logger() -> logging.Logger:
    """Get logger for API routes."""
    from agentflow.core.config import get_config
    config = get_config()
    return get_logger(
        "agentflow.api",
        log_level=config.log_level,
        log_format=config.log_format
    )


def get_service_logger(service_name: str) -> logging.Logger:
    """Get logger for service and engine layers."""
    from agentflow.core.config import get_config
    config = get_config()
    return get_logger(
        f"agentflow.service.{service_name}",
        log_level=config.log_level,
        log_format=config.log_format
    )


# =============================================================================
# PAYLOAD SANITIZATION
# =============================================================================

SENSITIVE_KEYS = {
    "password", "passwd", "secret", "token", "api_key", "apikey", "api-key",
    "authorization", "auth", "bearer", "credential", "credentials",
    "private_key", "privatekey", "access_token", "accesstoken",
    "refresh_token", "refreshtoken", "session", "cookie", "ssn",
    "social_security", "credit_card", "creditcard", "card_number",
    "cardnumber", "cvv", "cvc", "pin", "otp", "totp", "mfa_code",
    "backup_code", "recovery_code",
}

EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b")
PHONE_PATTERN = re.compile(r"\b\d{3}[-.]?\d{3}[-.]?\d{4}\b")
JWT_PATTERN = re.compile(r"\beyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\b")

MAX_DEPTH = 10
MAX_STRING_LENGTH = 1000
MAX_ITEMS = 100


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in SENSITIVE_KEYS or any(s in lowered for s in ("password", "secret", "token"))


def sanitize_for_logging(value: Any, depth: int = 0) -> Any:
    """
    Return a copy of value that is safe to write to logs.

    Redacts sensitive keys, JWTs, e-mail addresses and phone numbers,
    truncates long strings and caps nesting depth and collection size.
    """
    if depth > MAX_DEPTH:
        return "[MAX_DEPTH_EXCEEDED]"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        sanitized = JWT_PATTERN.sub("[JWT_REDACTED]", value)
        sanitized = EMAIL_PATTERN.sub("[EMAIL_REDACTED]", sanitized)
        sanitized = PHONE_PATTERN.sub("[PHONE_REDACTED]", sanitized)
        if len(sanitized) > MAX_STRING_LENGTH:
            sanitized = sanitized[:MAX_STRING_LENGTH] + "...[TRUNCATED]"
        return sanitized

    if isinstance(value, (list, tuple)):
        return [sanitize_for_logging(item, depth + 1) for item in value[:MAX_ITEMS]]

    if isinstance(value, dict):
        sanitized = {}
        for key, item in value.items():
            if is_sensitive_key(str(key)):
                sanitized[key] = "[REDACTED]"
            else:
                sanitized[key] = sanitize_for_logging(item, depth + 1)
        return sanitized

    return sanitize_for_logging(str(value), depth + 1)
