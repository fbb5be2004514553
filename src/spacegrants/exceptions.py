"""Unified exception hierarchy for spacegrants.

All errors inherit from SpaceAccessError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for protocol mapping
- gRPC status mapping for service layers that expose reconciliation

Propagation policy:
    ValidationRejected      — fatal, raised before any remote call
    ValidationWarning       — non-fatal, returned alongside the result
    RemoteUnavailable       — transient, collected per operation
    RemoteRejected          — remote refused the operation content
    MinimumGranteeViolation — RemoteRejected with remediation guidance
    NotFound                — the space (or subject) does not exist remotely

Collaborators raise the Remote* errors; the reconciler collects them per
operation instead of letting them abort the batch.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "SpaceAccessError",
    "ConfigurationError",
    "GrantConflictError",
    "ValidationRejected",
    "ValidationWarning",
    "RemoteError",
    "RemoteUnavailable",
    "RemoteRejected",
    "MinimumGranteeViolation",
    "NotFound",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
    # gRPC helpers
    "get_grpc_status_code",
]

logger = logging.getLogger(__name__)


# ---- Exception Hierarchy ----------------------------------------------------


class SpaceAccessError(Exception):
    """Base exception for all spacegrants errors.

    Attributes:
        code: Stable error code string for protocol mapping (e.g. "REMOTE_REJECTED").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ConfigurationError(SpaceAccessError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class GrantConflictError(ConfigurationError):
    """The same subject was declared twice with different roles."""

    code: str = "GRANT_CONFLICT"

    def __init__(self, subject: str, roles: tuple[str, ...]) -> None:
        super().__init__(
            f"Subject '{subject}' is declared with conflicting roles: {', '.join(roles)}.",
            subject=subject,
            roles=roles,
        )
        self.subject = subject
        self.roles = roles


class ValidationRejected(SpaceAccessError):
    """Fatal pre-flight rejection; no remote call has been made."""

    code: str = "VALIDATION_REJECTED"


class ValidationWarning(SpaceAccessError):
    """Non-fatal configuration mismatch surfaced for operator awareness.

    Returned, never raised, by the validator and the reconciler.
    """

    code: str = "VALIDATION_WARNING"

    def __init__(self, message: str | None = None, *, field: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, field=field, **kwargs)
        self.field = field


class RemoteError(SpaceAccessError):
    """Base class for failures reported by the remote platform collaborator."""

    code: str = "REMOTE_ERROR"


class RemoteUnavailable(RemoteError):
    """Transient transport failure (timeout, cancellation, 5xx). Not retried here."""

    code: str = "REMOTE_UNAVAILABLE"
    message: str = "The remote platform is unavailable"


class RemoteRejected(RemoteError):
    """The remote platform refused the specific operation's content."""

    code: str = "REMOTE_REJECTED"
    message: str = "The remote platform rejected the operation"

    def __init__(self, reason: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        super().__init__(reason, code, **kwargs)
        self.reason = self.message


class MinimumGranteeViolation(RemoteRejected):
    """Removing the grant would leave the space without any grantee."""

    code: str = "MINIMUM_GRANTEE_VIOLATION"

    def __init__(self, space_uuid: str, subject: str, **kwargs: Any) -> None:
        super().__init__(
            f"Cannot remove access for '{subject}' from space '{space_uuid}': "
            "a restricted space must keep at least one grantee. "
            "Remove another grantee's access manually, or make this space "
            "non-restricted, before removing this grant.",
            space_uuid=space_uuid,
            subject=subject,
            **kwargs,
        )
        self.space_uuid = space_uuid
        self.subject = subject


class NotFound(RemoteError):
    """The referenced space or subject does not exist remotely."""

    code: str = "NOT_FOUND"
    message: str = "The requested resource was not found"


# ---- Error Registry for Protocol Mapping ------------------------------------

_E = TypeVar("_E", bound=type[SpaceAccessError])


class ErrorRegistry:
    """Registry for mapping internal errors to external protocol codes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[SpaceAccessError]] = {}

    def register(self, code: str, error_cls: type[SpaceAccessError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[SpaceAccessError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[SpaceAccessError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("QUOTA_EXCEEDED")
        class QuotaExceeded(RemoteRejected):
            code = "QUOTA_EXCEEDED"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
error_registry.register("INTERNAL_ERROR", SpaceAccessError)
error_registry.register("CONFIGURATION_ERROR", ConfigurationError)
error_registry.register("GRANT_CONFLICT", GrantConflictError)
error_registry.register("VALIDATION_REJECTED", ValidationRejected)
error_registry.register("VALIDATION_WARNING", ValidationWarning)
error_registry.register("REMOTE_ERROR", RemoteError)
error_registry.register("REMOTE_UNAVAILABLE", RemoteUnavailable)
error_registry.register("REMOTE_REJECTED", RemoteRejected)
error_registry.register("MINIMUM_GRANTEE_VIOLATION", MinimumGranteeViolation)
error_registry.register("NOT_FOUND", NotFound)


# ---- gRPC Status Mapping ----------------------------------------------------


def get_grpc_status_code(error: SpaceAccessError) -> Any:
    """Map SpaceAccessError to gRPC status code.

    Returns grpc.StatusCode value for the given error type.
    Import grpc locally to avoid hard dependency at module level.
    """
    import grpc

    error_to_status = {
        "CONFIGURATION_ERROR": grpc.StatusCode.INVALID_ARGUMENT,
        "GRANT_CONFLICT": grpc.StatusCode.INVALID_ARGUMENT,
        "VALIDATION_REJECTED": grpc.StatusCode.FAILED_PRECONDITION,
        "VALIDATION_WARNING": grpc.StatusCode.OK,
        "REMOTE_ERROR": grpc.StatusCode.UNKNOWN,
        "REMOTE_UNAVAILABLE": grpc.StatusCode.UNAVAILABLE,
        "REMOTE_REJECTED": grpc.StatusCode.INVALID_ARGUMENT,
        "MINIMUM_GRANTEE_VIOLATION": grpc.StatusCode.FAILED_PRECONDITION,
        "NOT_FOUND": grpc.StatusCode.NOT_FOUND,
    }
    status = error_to_status.get(error.code)
    if status is None:
        logger.debug("No gRPC mapping for error code %s, using INTERNAL", error.code)
        return grpc.StatusCode.INTERNAL
    return status
