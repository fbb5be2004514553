"""Nested-space inheritance rules and pre-flight validation.

A nested space inherits visibility and access from its root ancestor, so
through this engine only its name and its parent are mutable. Declaring an
inherited field on a nested space is a non-fatal mismatch (the platform
ignores such edits); deleting a space that still has children is fatal.

Provides:
- ``mutable_fields()`` — which attributes a position allows changing.
- ``root_ancestor()`` — walk an explicit ancestor lookup to the root.
- ``validate_update()`` / ``validate_delete()`` — ``ValidationResult``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .exceptions import ValidationRejected, ValidationWarning
from .grants import GrantSet
from .models import Nested, Root, Space, SpaceChange, SpacePosition
from .roles import Visibility

logger = logging.getLogger(__name__)

# Looks up a space by UUID; returns None when it does not exist.
SpaceLookup = Callable[[str], Optional[Space]]

# ── Fields ──────────────────────────────────────────────

FIELD_NAME = "name"
FIELD_PARENT = "parent"
FIELD_VISIBILITY = "visibility"
FIELD_MEMBER_ACCESS = "member_access"
FIELD_GROUP_ACCESS = "group_access"

ALL_FIELDS = frozenset({FIELD_NAME, FIELD_PARENT, FIELD_VISIBILITY, FIELD_MEMBER_ACCESS, FIELD_GROUP_ACCESS})
NESTED_MUTABLE_FIELDS = frozenset({FIELD_NAME, FIELD_PARENT})

# Upper bound on ancestor walks; real hierarchies are a handful of levels deep.
MAX_NESTING_DEPTH = 64


def mutable_fields(position: SpacePosition) -> frozenset[str]:
    """Fields this engine may change for a space at ``position``."""
    if isinstance(position, Root):
        return ALL_FIELDS
    return NESTED_MUTABLE_FIELDS


def inherited_fields(position: SpacePosition) -> frozenset[str]:
    return ALL_FIELDS - mutable_fields(position)


def root_ancestor(space: Space, lookup: SpaceLookup) -> Optional[Space]:
    """Return the root ancestor of ``space`` (the space itself when it is root).

    Returns None when an ancestor cannot be found.

    Raises:
        ValidationRejected: if the parent chain loops back on itself.
    """
    current = space
    visited = {space.uuid}
    for _ in range(MAX_NESTING_DEPTH):
        if current.is_root:
            return current
        parent_uuid = current.parent_uuid
        if parent_uuid in visited:
            raise ValidationRejected(
                f"Space {space.uuid} has a cyclic parent chain through {parent_uuid}",
                space_uuid=space.uuid,
            )
        parent = lookup(parent_uuid)
        if parent is None:
            logger.debug("Ancestor %s of space %s not found", parent_uuid, space.uuid)
            return None
        visited.add(parent.uuid)
        current = parent
    raise ValidationRejected(
        f"Space {space.uuid} is nested more than {MAX_NESTING_DEPTH} levels deep",
        space_uuid=space.uuid,
    )


# ── Results ─────────────────────────────────────────────


class ValidationOutcome(str, Enum):
    ACCEPTED = "accepted"
    ACCEPTED_WITH_WARNING = "accepted_with_warning"
    REJECTED = "rejected"


@dataclass(frozen=True)
class MoveInheritanceNotice:
    """Expected side effect of a move: the space adopts its new root ancestor's access.

    Not an error. Callers reconcile effective state after the move instead
    of treating the discontinuity as drift.
    """

    space_uuid: str
    from_parent_uuid: Optional[str]
    to_parent_uuid: Optional[str]
    root_ancestor_uuid: Optional[str] = None
    inherited_visibility: Optional[Visibility] = None

    @property
    def message(self) -> str:
        if self.to_parent_uuid is None:
            return (
                f"Space {self.space_uuid} becomes a root space; "
                "its visibility and access must now be declared explicitly"
            )
        source = self.root_ancestor_uuid or self.to_parent_uuid
        return (
            f"Space {self.space_uuid} moves under {self.to_parent_uuid} and adopts "
            f"the visibility and group access of {source}, discarding its own"
        )


@dataclass(frozen=True)
class ValidationResult:
    outcome: ValidationOutcome
    target_position: SpacePosition
    warnings: tuple[ValidationWarning, ...] = ()
    notices: tuple[MoveInheritanceNotice, ...] = ()
    rejection: Optional[ValidationRejected] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is not ValidationOutcome.REJECTED

    def raise_for_rejection(self) -> None:
        if self.rejection is not None:
            raise self.rejection


def _rejected(position: SpacePosition, error: ValidationRejected) -> ValidationResult:
    return ValidationResult(ValidationOutcome.REJECTED, position, rejection=error)


# ── Validators ──────────────────────────────────────────


def validate_update(
    space: Space,
    change: Optional[SpaceChange] = None,
    declared: Optional[GrantSet] = None,
    lookup: Optional[SpaceLookup] = None,
) -> ValidationResult:
    """Check a declared configuration against the space's (target) position.

    Rules:
    1. Moving a space under itself or one of its descendants → ``REJECTED``.
    2. Declaring visibility, member access or group access for a space
       that is (or will be, after a move) nested → ``ACCEPTED_WITH_WARNING``;
       those declarations are ignored.
    3. Any parent change → ``MoveInheritanceNotice``.

    Args:
        space: Current snapshot of the space.
        change: Declared space attributes (name, visibility, parent).
        declared: Declared grants.
        lookup: Ancestor lookup used for cycle checks and notices.
    """
    change = change or SpaceChange()
    declared = declared if declared is not None else GrantSet()
    target = change.target_position(space)

    notices: list[MoveInheritanceNotice] = []
    if change.moves(space):
        try:
            notice = _check_move(space, change.parent_uuid, lookup)
        except ValidationRejected as e:
            return _rejected(target, e)
        notices.append(notice)

    warnings: list[ValidationWarning] = []
    if isinstance(target, Nested):
        inherited_from = f"its root ancestor (parent {target.parent_uuid})"
        if change.visibility is not None:
            warnings.append(
                ValidationWarning(
                    f"Visibility declared for nested space {space.uuid} is ignored: "
                    f"visibility is inherited from {inherited_from}",
                    field=FIELD_VISIBILITY,
                    space_uuid=space.uuid,
                )
            )
        if declared.groups():
            warnings.append(
                ValidationWarning(
                    f"Group access declared for nested space {space.uuid} is ignored: "
                    f"group access is inherited from {inherited_from}",
                    field=FIELD_GROUP_ACCESS,
                    space_uuid=space.uuid,
                )
            )
        if declared.members():
            warnings.append(
                ValidationWarning(
                    f"Member access declared for nested space {space.uuid} is ignored: "
                    f"access is inherited from {inherited_from}",
                    field=FIELD_MEMBER_ACCESS,
                    space_uuid=space.uuid,
                )
            )

    outcome = ValidationOutcome.ACCEPTED_WITH_WARNING if warnings else ValidationOutcome.ACCEPTED
    return ValidationResult(outcome, target, tuple(warnings), tuple(notices))


def _check_move(space: Space, new_parent_uuid: Optional[str], lookup: Optional[SpaceLookup]) -> MoveInheritanceNotice:
    if new_parent_uuid is None:
        return MoveInheritanceNotice(space.uuid, space.parent_uuid, None)

    if new_parent_uuid == space.uuid or new_parent_uuid in space.child_uuids:
        raise ValidationRejected(
            f"Cannot move space {space.uuid} under {new_parent_uuid}: a space cannot be nested under itself",
            space_uuid=space.uuid,
            parent_uuid=new_parent_uuid,
        )

    if lookup is None:
        return MoveInheritanceNotice(space.uuid, space.parent_uuid, new_parent_uuid)

    new_parent = lookup(new_parent_uuid)
    if new_parent is None:
        return MoveInheritanceNotice(space.uuid, space.parent_uuid, new_parent_uuid)

    # Walk the new parent's chain; meeting the moved space means a cycle.
    current: Optional[Space] = new_parent
    for _ in range(MAX_NESTING_DEPTH):
        if current is None or current.is_root:
            break
        if current.parent_uuid == space.uuid:
            raise ValidationRejected(
                f"Cannot move space {space.uuid} under its own descendant {new_parent_uuid}",
                space_uuid=space.uuid,
                parent_uuid=new_parent_uuid,
            )
        current = lookup(current.parent_uuid)

    root = root_ancestor(new_parent, lookup)
    return MoveInheritanceNotice(
        space.uuid,
        space.parent_uuid,
        new_parent_uuid,
        root_ancestor_uuid=root.uuid if root else None,
        inherited_visibility=root.visibility if root else None,
    )


def validate_delete(space: Space, deletion_protection: bool = False) -> ValidationResult:
    """Deleting is rejected while protection is on or child spaces remain.

    Deletion cascades to descendants on the platform, so children must be
    deleted (or moved) in a separate, explicit step first.
    """
    if deletion_protection:
        return _rejected(
            space.position,
            ValidationRejected(
                f"Cannot delete space {space.uuid}: deletion protection is enabled",
                space_uuid=space.uuid,
            ),
        )
    if space.has_children:
        return _rejected(
            space.position,
            ValidationRejected(
                f"Cannot delete space {space.uuid}: it still contains "
                f"{len(space.child_uuids)} nested space(s) ({', '.join(space.child_uuids)})",
                space_uuid=space.uuid,
                child_uuids=space.child_uuids,
            ),
        )
    return ValidationResult(ValidationOutcome.ACCEPTED, space.position)


__all__ = [
    "ALL_FIELDS",
    "FIELD_GROUP_ACCESS",
    "FIELD_MEMBER_ACCESS",
    "FIELD_NAME",
    "FIELD_PARENT",
    "FIELD_VISIBILITY",
    "NESTED_MUTABLE_FIELDS",
    "MoveInheritanceNotice",
    "SpaceLookup",
    "ValidationOutcome",
    "ValidationResult",
    "inherited_fields",
    "mutable_fields",
    "root_ancestor",
    "validate_delete",
    "validate_update",
]
