"""Grant set model: declared vs. effective access and their diff.

Provides:
- ``Grant`` — a (subject, SpaceRole) pair, optionally carrying the
  provenance the platform reports for effective access.
- ``GrantSet`` — immutable set of grants, one role per subject.
- ``diff()`` — (to_add, to_remove, to_update) between two grant sets.
- ``GrantDiff`` / ``OperationKind`` / ``PlannedOperation`` — the
  ordered operation plan derived from a diff.

Declared and effective state are two separate ``GrantSet`` snapshots;
nothing here mutates in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Mapping, Optional

from .exceptions import GrantConflictError
from .roles import SpaceRole, SubjectKind

# Values of ``Grant.inherited_from`` reported by the platform
INHERITED_FROM_GROUP = "group"
INHERITED_FROM_ORGANIZATION = "organization"
INHERITED_FROM_PROJECT = "project"
INHERITED_FROM_PARENT_SPACE = "parent_space"


@dataclass(frozen=True)
class Grant:
    """A subject's access level on a space.

    Equality and hashing consider ``subject``, ``role`` and ``kind`` only;
    the provenance fields describe how the platform computed effective
    access and are informational.
    """

    subject: str
    role: SpaceRole
    kind: SubjectKind = SubjectKind.MEMBER

    # Provenance (effective state only)
    has_direct_access: Optional[bool] = field(default=None, compare=False)
    inherited_from: Optional[str] = field(default=None, compare=False)
    project_role: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.subject:
            raise ValueError("Grant subject must be a non-empty identifier")
        object.__setattr__(self, "role", SpaceRole.parse(self.role))
        object.__setattr__(self, "kind", SubjectKind(self.kind))

    @property
    def access_source(self) -> Optional[str]:
        """``"member"`` for direct access, ``"group"`` for group access, else None.

        Organization admin and parent-space access have no direct source.
        """
        if not self.has_direct_access:
            return None
        if self.inherited_from == INHERITED_FROM_GROUP:
            return "group"
        return "member"

    @property
    def is_direct_member(self) -> bool:
        return self.access_source == "member"

    def with_role(self, role: SpaceRole) -> Grant:
        return Grant(
            subject=self.subject,
            role=role,
            kind=self.kind,
            has_direct_access=self.has_direct_access,
            inherited_from=self.inherited_from,
            project_role=self.project_role,
        )


class GrantSet:
    """Immutable set of grants keyed by subject (one role per subject).

    Iteration is ascending by subject so plans and logs are reproducible.
    """

    __slots__ = ("_grants",)

    def __init__(self, grants: Iterable[Grant] = ()) -> None:
        collected: dict[str, Grant] = {}
        for grant in grants:
            existing = collected.get(grant.subject)
            if existing is not None and existing.role != grant.role:
                raise GrantConflictError(grant.subject, (existing.role.value, grant.role.value))
            if existing is None:
                collected[grant.subject] = grant
        self._grants = {subject: collected[subject] for subject in sorted(collected)}

    @classmethod
    def of(
        cls,
        roles: Mapping[str, SpaceRole | str],
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> GrantSet:
        """Build from a ``{subject: role}`` mapping.

        Example::

            GrantSet.of({"u1": "editor", "u2": SpaceRole.VIEWER})
        """
        return cls(Grant(subject, SpaceRole.parse(role), kind) for subject, role in roles.items())

    # ── Set protocol ────────────────────────────────────

    def __iter__(self) -> Iterator[Grant]:
        return iter(self._grants.values())

    def __len__(self) -> int:
        return len(self._grants)

    def __bool__(self) -> bool:
        return bool(self._grants)

    def __contains__(self, subject: object) -> bool:
        if isinstance(subject, Grant):
            return self._grants.get(subject.subject) == subject
        return subject in self._grants

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GrantSet):
            return NotImplemented
        return self._grants == other._grants

    def __hash__(self) -> int:
        return hash(frozenset(self._grants.values()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{g.subject}:{g.role.value}" for g in self)
        return f"GrantSet({{{inner}}})"

    # ── Lookups ─────────────────────────────────────────

    def get(self, subject: str) -> Optional[Grant]:
        return self._grants.get(subject)

    def role_of(self, subject: str) -> Optional[SpaceRole]:
        grant = self._grants.get(subject)
        return grant.role if grant else None

    def subjects(self) -> tuple[str, ...]:
        return tuple(self._grants)

    def roles(self) -> dict[str, SpaceRole]:
        return {subject: grant.role for subject, grant in self._grants.items()}

    # ── Derived sets ────────────────────────────────────

    def filter_kind(self, kind: SubjectKind) -> GrantSet:
        return GrantSet(g for g in self if g.kind is kind)

    def members(self) -> GrantSet:
        return self.filter_kind(SubjectKind.MEMBER)

    def groups(self) -> GrantSet:
        return self.filter_kind(SubjectKind.GROUP)

    def direct(self) -> GrantSet:
        """Only grants the platform reports as direct member access."""
        return GrantSet(g for g in self if g.is_direct_member)

    def with_grant(self, grant: Grant) -> GrantSet:
        """Copy with ``grant`` added, replacing any existing grant for its subject."""
        remaining = (g for g in self if g.subject != grant.subject)
        return GrantSet((*remaining, grant))

    def without(self, subject: str) -> GrantSet:
        return GrantSet(g for g in self if g.subject != subject)


# ── Diff ────────────────────────────────────────────────


class OperationKind(str, Enum):
    """Remote operation issued by the reconciler."""

    ADD = "add"
    UPDATE_ROLE = "update_role"
    REMOVE = "remove"
    MOVE = "move"
    UPDATE_SPACE = "update_space"
    DELETE = "delete"


@dataclass(frozen=True)
class PlannedOperation:
    """One grant mutation to issue remotely."""

    kind: OperationKind
    subject: str
    role: Optional[SpaceRole] = None
    subject_kind: SubjectKind = SubjectKind.MEMBER


@dataclass(frozen=True)
class GrantDiff:
    """Result of :func:`diff`; each tuple is ascending by subject."""

    to_add: tuple[Grant, ...] = ()
    to_remove: tuple[Grant, ...] = ()
    to_update: tuple[Grant, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.to_add or self.to_remove or self.to_update)

    def __len__(self) -> int:
        return len(self.to_add) + len(self.to_remove) + len(self.to_update)

    def operations(self) -> Iterator[PlannedOperation]:
        """Adds first, then role updates, then removals.

        Removals go last so a space never drops to zero grantees before
        its replacement grantees are in place.
        """
        for grant in self.to_add:
            yield PlannedOperation(OperationKind.ADD, grant.subject, grant.role, grant.kind)
        for grant in self.to_update:
            yield PlannedOperation(OperationKind.UPDATE_ROLE, grant.subject, grant.role, grant.kind)
        for grant in self.to_remove:
            yield PlannedOperation(OperationKind.REMOVE, grant.subject, None, grant.kind)


def diff(desired: GrantSet, current: GrantSet) -> GrantDiff:
    """Compute the grant changes that turn ``current`` into ``desired``.

    - ``to_add``: desired grants whose subject is absent from ``current``.
    - ``to_remove``: current grants whose subject is absent from ``desired``.
    - ``to_update``: desired grants whose subject is in both with a different role.

    The reconciler passes the *previously declared* set as ``current`` so
    that grants it never declared are never targeted for removal.
    """
    to_add = tuple(g for g in desired if g.subject not in current)
    to_remove = tuple(g for g in current if g.subject not in desired)
    to_update = tuple(g for g in desired if g.subject in current and current.role_of(g.subject) != g.role)
    return GrantDiff(to_add=to_add, to_remove=to_remove, to_update=to_update)


def apply_diff(current: GrantSet, changes: GrantDiff) -> GrantSet:
    """Apply ``changes`` to ``current`` as if every operation succeeded."""
    removed = {g.subject for g in changes.to_remove}
    result = GrantSet(g for g in current if g.subject not in removed)
    for grant in (*changes.to_update, *changes.to_add):
        result = result.with_grant(grant)
    return result


__all__ = [
    "INHERITED_FROM_GROUP",
    "INHERITED_FROM_ORGANIZATION",
    "INHERITED_FROM_PARENT_SPACE",
    "INHERITED_FROM_PROJECT",
    "Grant",
    "GrantDiff",
    "GrantSet",
    "OperationKind",
    "PlannedOperation",
    "apply_diff",
    "diff",
]
