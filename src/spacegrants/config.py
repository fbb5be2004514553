"""Configuration contract for spacegrants.

This module provides a Pydantic-validated configuration model for the
reconciliation engine and its logging. Callers build an ``AccessConfig``
directly, or load one from the environment with
``load_config_from_env()``; no other module reads the environment.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccessConfig(BaseModel):
    """Configuration for the access reconciler and its logging.

    RULE: all settings come through this model. Use
    ``load_config_from_env()`` to build one from environment variables.
    """

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    service_name: Optional[str] = Field(
        default=None,
        description="Service name used to identify log records",
    )

    # Tenant scope
    organization_uuid: Optional[str] = Field(
        default=None,
        description="Organization the managed spaces belong to (attached to log records)",
    )

    # Reconciliation behaviour
    deletion_protection: bool = Field(
        default=True,
        description="Refuse to delete spaces unless the request explicitly disables protection",
    )
    skip_converged_adds: bool = Field(
        default=True,
        description="Skip adding a grant the platform already reports with the same role",
    )

    @field_validator("organization_uuid")
    @classmethod
    def validate_organization_uuid(cls, v: Optional[str]) -> Optional[str]:
        """Reject blank organization identifiers."""
        if v is None:
            return v
        if not v.strip():
            raise ValueError("organization_uuid must not be blank")
        return v.strip()

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def load_config_from_env() -> AccessConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - SERVICE_NAME: Service name for log identification
    - SPACEGRANTS_ORGANIZATION_UUID: Organization the spaces belong to
    - SPACEGRANTS_DELETION_PROTECTION: Default deletion protection (default: true)
    - SPACEGRANTS_SKIP_CONVERGED_ADDS: Skip already-converged adds (default: true)

    Returns:
        AccessConfig instance with values from environment or defaults.
    """
    import os

    return AccessConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=_env_flag(os.getenv("LOG_JSON", "false")),
        service_name=os.getenv("SERVICE_NAME"),
        organization_uuid=os.getenv("SPACEGRANTS_ORGANIZATION_UUID") or None,
        deletion_protection=_env_flag(os.getenv("SPACEGRANTS_DELETION_PROTECTION", "true")),
        skip_converged_adds=_env_flag(os.getenv("SPACEGRANTS_SKIP_CONVERGED_ADDS", "true")),
    )


__all__ = [
    "AccessConfig",
    "LogLevel",
    "load_config_from_env",
]
