from .config import AccessConfig, LogLevel, load_config_from_env
from .exceptions import (
    ConfigurationError,
    GrantConflictError,
    MinimumGranteeViolation,
    NotFound,
    RemoteError,
    RemoteRejected,
    RemoteUnavailable,
    SpaceAccessError,
    ValidationRejected,
    ValidationWarning,
)
from .grants import Grant, GrantDiff, GrantSet, OperationKind, PlannedOperation, apply_diff, diff
from .inheritance import (
    MoveInheritanceNotice,
    ValidationOutcome,
    ValidationResult,
    root_ancestor,
    validate_delete,
    validate_update,
)
from .interfaces import SpaceAccessClient
from .logging import (
    safe_preview,
    redact_secrets,
    safe_log_value,
    AccessLogFormatter,
    AccessLoggerAdapter,
    setup_logging,
    get_access_logger,
)
from .memory import InMemorySpaceClient
from .models import (
    ROOT,
    GroupAccess,
    MemberAccess,
    Nested,
    Root,
    Space,
    SpaceChange,
    SpaceDeclaration,
    parse_space_resource_id,
    space_resource_id,
)
from .precedence import ProjectMembers, normalize_tiers, resolve_unique
from .reconciler import AccessReconciler, OperationResult, ReconcileResult, reconcile
from .roles import AccessClass, ProjectRole, SpaceRole, SubjectKind, Visibility, access_class

__all__ = [
    'AccessConfig',
    'LogLevel',
    'load_config_from_env',
    'ConfigurationError',
    'GrantConflictError',
    'MinimumGranteeViolation',
    'NotFound',
    'RemoteError',
    'RemoteRejected',
    'RemoteUnavailable',
    'SpaceAccessError',
    'ValidationRejected',
    'ValidationWarning',
    'Grant',
    'GrantDiff',
    'GrantSet',
    'OperationKind',
    'PlannedOperation',
    'apply_diff',
    'diff',
    'MoveInheritanceNotice',
    'ValidationOutcome',
    'ValidationResult',
    'root_ancestor',
    'validate_delete',
    'validate_update',
    'SpaceAccessClient',
    'safe_preview',
    'redact_secrets',
    'safe_log_value',
    'AccessLogFormatter',
    'AccessLoggerAdapter',
    'setup_logging',
    'get_access_logger',
    'InMemorySpaceClient',
    'ROOT',
    'GroupAccess',
    'MemberAccess',
    'Nested',
    'Root',
    'Space',
    'SpaceChange',
    'SpaceDeclaration',
    'parse_space_resource_id',
    'space_resource_id',
    'ProjectMembers',
    'normalize_tiers',
    'resolve_unique',
    'AccessReconciler',
    'OperationResult',
    'ReconcileResult',
    'reconcile',
    'AccessClass',
    'ProjectRole',
    'SpaceRole',
    'SubjectKind',
    'Visibility',
    'access_class',
]
