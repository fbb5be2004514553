"""Role tiers, space roles, visibility and subject kinds.

Provides:
- ``ProjectRole`` — project membership tiers (admin > developer > editor
  > interactive_viewer > viewer).
- ``SpaceRole`` — space access roles (admin > editor > viewer).
- ``Visibility`` / ``AccessClass`` — stored visibility and its derived
  interpretation (public / private / shared).
- ``SubjectKind`` — whether a grant targets a user or a group.
"""

from __future__ import annotations

from enum import Enum


class ProjectRole(str, Enum):
    """Project-level membership tier.

    Precedence: ``admin`` > ``developer`` > ``editor`` >
    ``interactive_viewer`` > ``viewer``.
    """

    ADMIN = "admin"
    DEVELOPER = "developer"
    EDITOR = "editor"
    INTERACTIVE_VIEWER = "interactive_viewer"
    VIEWER = "viewer"

    @property
    def precedence(self) -> int:
        """Higher value wins."""
        return len(PROJECT_ROLE_HIERARCHY) - PROJECT_ROLE_HIERARCHY.index(self)

    def outranks(self, other: ProjectRole) -> bool:
        return self.precedence > other.precedence


# Highest first
PROJECT_ROLE_HIERARCHY: tuple[ProjectRole, ...] = (
    ProjectRole.ADMIN,
    ProjectRole.DEVELOPER,
    ProjectRole.EDITOR,
    ProjectRole.INTERACTIVE_VIEWER,
    ProjectRole.VIEWER,
)


class SpaceRole(str, Enum):
    """Access level of a subject on a single space.

    Precedence: ``admin`` (full access) > ``editor`` (can edit)
    > ``viewer`` (can view).
    """

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"

    @property
    def precedence(self) -> int:
        return len(SPACE_ROLE_HIERARCHY) - SPACE_ROLE_HIERARCHY.index(self)

    @property
    def description(self) -> str:
        return _SPACE_ROLE_DESCRIPTIONS[self]

    def outranks(self, other: SpaceRole) -> bool:
        return self.precedence > other.precedence

    @classmethod
    def parse(cls, value: str | SpaceRole) -> SpaceRole:
        """Parse a wire value (case-insensitive).

        Raises:
            ValueError: if ``value`` is not a known space role.
        """
        if isinstance(value, SpaceRole):
            return value
        try:
            return cls(value.strip().lower())
        except (AttributeError, ValueError):
            raise ValueError(f"Invalid space role: {value!r}. Must be one of {[r.value for r in cls]}") from None


SPACE_ROLE_HIERARCHY: tuple[SpaceRole, ...] = (
    SpaceRole.ADMIN,
    SpaceRole.EDITOR,
    SpaceRole.VIEWER,
)

_SPACE_ROLE_DESCRIPTIONS = {
    SpaceRole.ADMIN: "full access",
    SpaceRole.EDITOR: "can edit",
    SpaceRole.VIEWER: "can view",
}


class Visibility(str, Enum):
    """Stored visibility of a space."""

    PUBLIC = "public"
    RESTRICTED = "restricted"

    @classmethod
    def from_is_private(cls, is_private: bool) -> Visibility:
        return cls.RESTRICTED if is_private else cls.PUBLIC

    @property
    def is_private(self) -> bool:
        return self is Visibility.RESTRICTED


class AccessClass(str, Enum):
    """Derived interpretation of a space's visibility and grantee count."""

    PUBLIC = "public"
    PRIVATE = "private"  # restricted, only the creator
    SHARED = "shared"  # restricted, explicit grant list


def access_class(visibility: Visibility, grantee_count: int) -> AccessClass:
    """Classify a space: a restricted space with one grantee behaves as private."""
    if visibility is Visibility.PUBLIC:
        return AccessClass.PUBLIC
    if grantee_count <= 1:
        return AccessClass.PRIVATE
    return AccessClass.SHARED


class SubjectKind(str, Enum):
    """Who a grant targets."""

    MEMBER = "member"
    GROUP = "group"


__all__ = [
    "PROJECT_ROLE_HIERARCHY",
    "SPACE_ROLE_HIERARCHY",
    "AccessClass",
    "ProjectRole",
    "SpaceRole",
    "SubjectKind",
    "Visibility",
    "access_class",
]
