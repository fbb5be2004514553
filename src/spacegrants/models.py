"""Space models.

Snapshots (``Space``, ``SpaceChange``) are frozen dataclasses rebuilt for
every reconciliation pass. ``SpaceDeclaration`` is the Pydantic model for
operator-supplied configuration and converts into a declared ``GrantSet``
plus a ``SpaceChange``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from .grants import Grant, GrantSet
from .roles import SpaceRole, SubjectKind, Visibility

_RESOURCE_ID_PATTERN = re.compile(r"^projects/([^/]+)/spaces/([^/]+)$")


# ── Position ────────────────────────────────────────────


@dataclass(frozen=True)
class Root:
    """Top-level space: owns its visibility and access lists."""

    @property
    def parent_uuid(self) -> None:
        return None


@dataclass(frozen=True)
class Nested:
    """Space under a parent; inherits visibility and access from its root ancestor."""

    parent_uuid: str


SpacePosition = Union[Root, Nested]

ROOT = Root()


def position_of(parent_uuid: Optional[str]) -> SpacePosition:
    """``Root`` for a missing/blank parent, ``Nested`` otherwise."""
    if parent_uuid:
        return Nested(parent_uuid)
    return ROOT


# ── Space snapshot ──────────────────────────────────────


@dataclass(frozen=True)
class Space:
    """A space as reported by the platform.

    ``child_uuids`` lists direct child spaces only.
    """

    uuid: str
    name: str = ""
    parent_uuid: Optional[str] = None
    visibility: Visibility = Visibility.PUBLIC
    project_uuid: Optional[str] = None
    child_uuids: tuple[str, ...] = ()

    @property
    def position(self) -> SpacePosition:
        return position_of(self.parent_uuid)

    @property
    def is_root(self) -> bool:
        return isinstance(self.position, Root)

    @property
    def is_nested(self) -> bool:
        return not self.is_root

    @property
    def has_children(self) -> bool:
        return bool(self.child_uuids)

    @property
    def resource_id(self) -> str:
        if not self.project_uuid:
            raise ValueError(f"Space {self.uuid} has no project_uuid")
        return space_resource_id(self.project_uuid, self.uuid)


@dataclass(frozen=True)
class SpaceChange:
    """Space attributes an operator declares for one reconciliation pass.

    ``None`` means "not declared". Because a ``None`` parent also means
    "root", ``parent_declared`` records whether the parent was declared at all.
    """

    name: Optional[str] = None
    visibility: Optional[Visibility] = None
    parent_uuid: Optional[str] = None
    parent_declared: bool = False

    def __post_init__(self) -> None:
        if self.visibility is not None:
            object.__setattr__(self, "visibility", Visibility(self.visibility))

    @classmethod
    def move_to(cls, parent_uuid: Optional[str], **kwargs) -> SpaceChange:
        return cls(parent_uuid=parent_uuid, parent_declared=True, **kwargs)

    def target_position(self, space: Space) -> SpacePosition:
        """Position the space will have once this change is applied."""
        if self.parent_declared:
            return position_of(self.parent_uuid)
        return space.position

    def moves(self, space: Space) -> bool:
        return self.parent_declared and (self.parent_uuid or None) != (space.parent_uuid or None)


# ── Resource IDs ────────────────────────────────────────


def space_resource_id(project_uuid: str, space_uuid: str) -> str:
    """Format ``projects/<project_uuid>/spaces/<space_uuid>``."""
    return f"projects/{project_uuid}/spaces/{space_uuid}"


def parse_space_resource_id(resource_id: str) -> tuple[str, str]:
    """Split a space resource ID into (project_uuid, space_uuid).

    Raises:
        ValueError: if ``resource_id`` is not ``projects/<p>/spaces/<s>``.
    """
    match = _RESOURCE_ID_PATTERN.match(resource_id)
    if not match:
        raise ValueError(f"Invalid space resource ID: {resource_id!r}")
    return match.group(1), match.group(2)


# ── Declared configuration ──────────────────────────────


class MemberAccess(BaseModel):
    """Direct access for one user."""

    user_uuid: str = Field(min_length=1)
    role: SpaceRole = SpaceRole.VIEWER

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v: str | SpaceRole) -> SpaceRole:
        return SpaceRole.parse(v)

    model_config = {"extra": "forbid", "frozen": True}


class GroupAccess(BaseModel):
    """Access for one group."""

    group_uuid: str = Field(min_length=1)
    role: SpaceRole = SpaceRole.VIEWER

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v: str | SpaceRole) -> SpaceRole:
        return SpaceRole.parse(v)

    model_config = {"extra": "forbid", "frozen": True}


class SpaceDeclaration(BaseModel):
    """Operator configuration for one space.

    Example::

        declaration = SpaceDeclaration(
            name="Finance",
            is_private=True,
            access=[{"user_uuid": "u1", "role": "admin"}],
            group_access=[{"group_uuid": "g1", "role": "viewer"}],
        )
        declared = declaration.grants()   # GrantSet({g1:viewer, u1:admin})
        change = declaration.change()     # SpaceChange(name="Finance", ...)
    """

    name: str = Field(min_length=1, description="Display name of the space")
    is_private: Optional[bool] = Field(
        default=None,
        description="Restricted (True) or public (False); None leaves visibility undeclared",
    )
    parent_space_uuid: Optional[str] = Field(
        default=None,
        description="Parent space; None declares a root space",
    )
    access: list[MemberAccess] = Field(default_factory=list)
    group_access: list[GroupAccess] = Field(default_factory=list)
    deletion_protection: Optional[bool] = Field(
        default=None,
        description="Block deletion of this space; None falls back to the configured default",
    )

    @field_validator("parent_space_uuid")
    @classmethod
    def blank_parent_is_root(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    model_config = {"extra": "forbid"}

    @property
    def visibility(self) -> Optional[Visibility]:
        if self.is_private is None:
            return None
        return Visibility.from_is_private(self.is_private)

    def grants(self) -> GrantSet:
        """Declared grants; raises GrantConflictError for conflicting duplicates."""
        members = (Grant(m.user_uuid, m.role, SubjectKind.MEMBER) for m in self.access)
        groups = (Grant(g.group_uuid, g.role, SubjectKind.GROUP) for g in self.group_access)
        return GrantSet((*members, *groups))

    def change(self) -> SpaceChange:
        return SpaceChange(
            name=self.name,
            visibility=self.visibility,
            parent_uuid=self.parent_space_uuid,
            parent_declared=True,
        )


__all__ = [
    "ROOT",
    "GroupAccess",
    "MemberAccess",
    "Nested",
    "Root",
    "Space",
    "SpaceChange",
    "SpaceDeclaration",
    "SpacePosition",
    "parse_space_resource_id",
    "position_of",
    "space_resource_id",
]
