"""Centralized logging utilities for spacegrants.

This module provides:
- Logging configuration from AccessConfig
- Safe preview utilities for log values
- Secret redaction (platform API keys, bearer tokens)
- Structured logging with space_uuid / reconcile_id propagation
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

from .config import AccessConfig, LogLevel


# Patterns for detecting secrets (common patterns to redact)
SECRET_PATTERNS = [
    r'(?i)(?:password|passwd|pwd|secret|token|api[_-]?key|auth[_-]?token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'(?i)(?:bearer|basic|apikey)\s+([a-zA-Z0-9+/=._-]+)',
    r'(?i)(?:x-api-key|x-auth-token|x-access-token)\s*[:=]\s*["\']?([^"\'\s]+)',
    r'\bldpat_[a-zA-Z0-9]{16,}\b',
]

# Context attributes rendered explicitly by the formatter
CONTEXT_FIELDS = ("space_uuid", "reconcile_id", "organization_uuid")

_RESERVED_RECORD_FIELDS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName", "relativeCreated",
        "thread", "threadName", "exc_info", "exc_text", "stack_info",
        "taskName",
    }
)


def safe_preview(value: Any, limit: int = 240) -> str:
    """Create a safe, length-bounded preview of a value for logging.

    Converts any value to a single line, normalizes whitespace and
    truncates to ``limit`` characters (ending in an ellipsis).

    Args:
        value: The value to preview (any type)
        limit: Maximum length of the preview (default: 240)

    Returns:
        A safe, truncated string representation
    """
    if value is None:
        return ""

    if isinstance(value, str):
        s = value
    elif isinstance(value, (dict, list, tuple)):
        try:
            s = json.dumps(value, default=str, ensure_ascii=False)
        except (TypeError, ValueError):
            s = str(value)
    else:
        s = str(value)

    s = " ".join(s.split())

    if len(s) > limit:
        return s[: limit - 1] + "…"

    return s


def redact_secrets(text: str, replacement: str = "[REDACTED]") -> str:
    """Redact secret patterns from text.

    Removes API keys, personal access tokens, passwords and
    ``Authorization`` header values.

    Args:
        text: The text to redact
        replacement: String to replace secrets with (default: "[REDACTED]")

    Returns:
        Text with secrets redacted
    """
    if not isinstance(text, str):
        return text

    result = text
    for pattern in SECRET_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE | re.DOTALL)

    return result


def safe_log_value(value: Any, limit: int = 240, redact: bool = True) -> str:
    """Create a safe log value with preview and optional redaction."""
    preview = safe_preview(value, limit=limit)
    if redact:
        preview = redact_secrets(preview)
    return preview


class AccessLogFormatter(logging.Formatter):
    """Formatter that includes reconciliation context.

    This formatter:
    - Extracts space_uuid / reconcile_id / organization_uuid from log records
    - Formats logs as JSON or plain text
    - Includes safe previews of extra fields
    - Redacts secrets automatically
    """

    def __init__(
        self,
        include_context: bool = True,
        json_format: bool = True,
        redact_secrets: bool = True,
        *args: Any,
        **kwargs: Any,
    ):
        super().__init__(*args, **kwargs)
        self.include_context = include_context
        self.json_format = json_format
        self.redact_secrets = redact_secrets

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context: dict[str, str] = {}
        if self.include_context:
            for key in CONTEXT_FIELDS:
                value = getattr(record, key, None)
                if value:
                    context[key] = str(value)
        log_data.update(context)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_FIELDS or key in CONTEXT_FIELDS:
                continue
            log_data[key] = safe_log_value(value, redact=self.redact_secrets)

        if self.redact_secrets:
            log_data["message"] = redact_secrets(log_data["message"])

        if self.json_format:
            return json.dumps(log_data, default=str, ensure_ascii=False)

        parts = [
            f"[{log_data['timestamp']}]",
            f"{log_data['level']}",
            f"{log_data['logger']}",
        ]
        parts.extend(f"{key}={value}" for key, value in context.items())
        parts.append(f": {log_data['message']}")
        return " ".join(parts)


class AccessLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that adds space_uuid and reconcile_id to log records.

    Usage:
        logger = get_access_logger(__name__, space_uuid=space.uuid)
        logger.info("Planned %d operations", count, reconcile_id=run_id)
    """

    def __init__(
        self,
        logger: logging.Logger,
        space_uuid: Optional[str] = None,
        reconcile_id: Optional[str] = None,
        organization_uuid: Optional[str] = None,
    ):
        super().__init__(logger, {})
        self.space_uuid = space_uuid
        self.reconcile_id = reconcile_id
        self.organization_uuid = organization_uuid

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        space_uuid = kwargs.pop("space_uuid", self.space_uuid)
        reconcile_id = kwargs.pop("reconcile_id", self.reconcile_id)
        organization_uuid = kwargs.pop("organization_uuid", self.organization_uuid)

        extra = dict(kwargs.get("extra") or {})
        if space_uuid:
            extra["space_uuid"] = space_uuid
        if reconcile_id:
            extra["reconcile_id"] = reconcile_id
        if organization_uuid:
            extra["organization_uuid"] = organization_uuid
        kwargs["extra"] = extra

        return msg, kwargs


def setup_logging(
    config: Optional[AccessConfig] = None,
    json_format: Optional[bool] = None,
    redact_secrets: bool = True,
) -> None:
    """Configure the root logger for spacegrants.

    Args:
        config: AccessConfig instance (if None, loads from environment)
        json_format: Force JSON (True) or plain text (False); defaults to ``config.log_json``
        redact_secrets: Whether to redact secrets (default: True)
    """
    if config is None:
        from .config import load_config_from_env

        config = load_config_from_env()

    level_map = {
        LogLevel.DEBUG: logging.DEBUG,
        LogLevel.INFO: logging.INFO,
        LogLevel.WARNING: logging.WARNING,
        LogLevel.ERROR: logging.ERROR,
        LogLevel.CRITICAL: logging.CRITICAL,
    }
    log_level = level_map.get(LogLevel(config.log_level), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(
        AccessLogFormatter(
            include_context=True,
            json_format=config.log_json if json_format is None else json_format,
            redact_secrets=redact_secrets,
        )
    )
    root_logger.addHandler(console_handler)

    if config.service_name:
        logging.getLogger(config.service_name).setLevel(log_level)


def get_access_logger(
    name: str,
    space_uuid: Optional[str] = None,
    reconcile_id: Optional[str] = None,
    organization_uuid: Optional[str] = None,
) -> AccessLoggerAdapter:
    """Get a logger adapter bound to a space and reconciliation pass.

    Args:
        name: Logger name (typically __name__)
        space_uuid: Optional space UUID to include in all logs
        reconcile_id: Optional reconciliation pass id to include in all logs
        organization_uuid: Optional organization UUID to include in all logs

    Returns:
        AccessLoggerAdapter instance
    """
    logger = logging.getLogger(name)
    return AccessLoggerAdapter(
        logger,
        space_uuid=space_uuid,
        reconcile_id=reconcile_id,
        organization_uuid=organization_uuid,
    )


__all__ = [
    "safe_preview",
    "redact_secrets",
    "safe_log_value",
    "AccessLogFormatter",
    "AccessLoggerAdapter",
    "setup_logging",
    "get_access_logger",
]
