"""In-memory platform collaborator.

Holds spaces and their direct grants in plain dicts and computes effective
access the way the platform does:

- the creator of a root space is auto-added as a direct admin;
- organization admins appear as inherited admins on every space;
- a nested space reports its root ancestor's visibility and access,
  marked as inherited from the parent space;
- a restricted space refuses to lose its last grantee.

Every call is appended to ``calls``; ``fail()`` injects an error for a
given operation (and optionally subject). Used for local runs and tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

from .exceptions import MinimumGranteeViolation, NotFound, RemoteRejected
from .grants import (
    INHERITED_FROM_ORGANIZATION,
    INHERITED_FROM_PARENT_SPACE,
    Grant,
    GrantSet,
)
from .interfaces import SpaceAccessClient
from .models import Space
from .roles import ProjectRole, SpaceRole, SubjectKind, Visibility

logger = logging.getLogger(__name__)

MUTATING_OPERATIONS = frozenset(
    {"add_grant", "update_grant_role", "remove_grant", "move_space", "update_space", "delete_space"}
)


@dataclass
class _StoredSpace:
    uuid: str
    name: str
    parent_uuid: Optional[str]
    visibility: Visibility
    project_uuid: Optional[str]
    grants: dict[str, Grant] = field(default_factory=dict)


class InMemorySpaceClient(SpaceAccessClient):
    """Non-persistent SpaceAccessClient implementation.

    Args:
        organization_admins: Users reported as inherited admins on every space.
        project_uuid: Project assigned to spaces created here.
    """

    def __init__(self, organization_admins: tuple[str, ...] = (), project_uuid: Optional[str] = "project") -> None:
        self.organization_admins = tuple(organization_admins)
        self.project_uuid = project_uuid
        self.calls: list[tuple] = []
        self.fail_on: dict[tuple[str, Optional[str]], BaseException] = {}
        self._spaces: dict[str, _StoredSpace] = {}

    # ── Setup / inspection ──────────────────────────────

    def create_space(
        self,
        name: str,
        parent_uuid: Optional[str] = None,
        visibility: Visibility = Visibility.PUBLIC,
        creator: Optional[str] = None,
        space_uuid: Optional[str] = None,
    ) -> Space:
        """Create a space directly in the store (not recorded in ``calls``)."""
        if parent_uuid is not None:
            self._require(parent_uuid)
        uuid = space_uuid or uuid4().hex
        stored = _StoredSpace(uuid, name, parent_uuid, Visibility(visibility), self.project_uuid)
        if creator and parent_uuid is None:
            stored.grants[creator] = Grant(creator, SpaceRole.ADMIN, SubjectKind.MEMBER, has_direct_access=True)
        self._spaces[uuid] = stored
        return self._snapshot(stored)

    def fail(self, operation: str, subject: Optional[str] = None, error: Optional[BaseException] = None) -> None:
        """Make ``operation`` raise ``error``; ``subject=None`` matches any subject."""
        self.fail_on[(operation, subject)] = error if error is not None else RemoteRejected("Injected failure")

    @property
    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in MUTATING_OPERATIONS]

    def direct_grants(self, space_uuid: str) -> GrantSet:
        return GrantSet(self._require(space_uuid).grants.values())

    # ── SpaceAccessClient ───────────────────────────────

    def get_space(self, space_uuid: str) -> Space:
        self._call("get_space", space_uuid)
        return self._snapshot(self._require(space_uuid))

    def _snapshot(self, stored: _StoredSpace) -> Space:
        root = self._root_of(stored)
        return Space(
            uuid=stored.uuid,
            name=stored.name,
            parent_uuid=stored.parent_uuid,
            visibility=root.visibility,
            project_uuid=stored.project_uuid,
            child_uuids=tuple(s.uuid for s in self._spaces.values() if s.parent_uuid == stored.uuid),
        )

    def fetch_effective_grants(self, space_uuid: str) -> GrantSet:
        self._call("fetch_effective_grants", space_uuid)
        stored = self._require(space_uuid)
        root = self._root_of(stored)

        entries: dict[str, Grant] = {}
        for grant in root.grants.values():
            if root is stored:
                entries[grant.subject] = grant
            else:
                entries[grant.subject] = Grant(
                    grant.subject,
                    grant.role,
                    grant.kind,
                    has_direct_access=False,
                    inherited_from=INHERITED_FROM_PARENT_SPACE,
                )
        for admin in self.organization_admins:
            entries.setdefault(
                admin,
                Grant(
                    admin,
                    SpaceRole.ADMIN,
                    SubjectKind.MEMBER,
                    has_direct_access=False,
                    inherited_from=INHERITED_FROM_ORGANIZATION,
                    project_role=ProjectRole.ADMIN.value,
                ),
            )
        return GrantSet(entries.values())

    def add_grant(
        self,
        space_uuid: str,
        subject: str,
        role: SpaceRole,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        self._call("add_grant", space_uuid, subject, role, kind)
        stored = self._editable(space_uuid)
        stored.grants[subject] = Grant(subject, role, kind, has_direct_access=True)

    def update_grant_role(
        self,
        space_uuid: str,
        subject: str,
        role: SpaceRole,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        self._call("update_grant_role", space_uuid, subject, role, kind)
        stored = self._editable(space_uuid)
        if subject not in stored.grants:
            raise NotFound(f"Subject '{subject}' has no access to space '{space_uuid}'")
        stored.grants[subject] = stored.grants[subject].with_role(role)

    def remove_grant(
        self,
        space_uuid: str,
        subject: str,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        self._call("remove_grant", space_uuid, subject, kind)
        stored = self._editable(space_uuid)
        if subject not in stored.grants:
            raise NotFound(f"Subject '{subject}' has no access to space '{space_uuid}'")
        if stored.visibility is Visibility.RESTRICTED and len(stored.grants) == 1:
            raise MinimumGranteeViolation(space_uuid, subject)
        del stored.grants[subject]

    def move_space(self, space_uuid: str, new_parent_uuid: Optional[str]) -> None:
        self._call("move_space", space_uuid, new_parent_uuid)
        stored = self._require(space_uuid)
        if new_parent_uuid is None:
            # A new root takes over the access it used to inherit.
            root = self._root_of(stored)
            stored.visibility = root.visibility
            stored.grants = dict(root.grants)
            stored.parent_uuid = None
            return

        parent = self._require(new_parent_uuid)
        if parent.uuid == stored.uuid or self._is_descendant(parent, stored.uuid):
            raise RemoteRejected(f"Cannot move space '{space_uuid}' under its own descendant")
        stored.parent_uuid = parent.uuid
        stored.grants = {}

    def update_space(
        self,
        space_uuid: str,
        *,
        name: Optional[str] = None,
        visibility: Optional[Visibility] = None,
    ) -> None:
        self._call("update_space", space_uuid, name, visibility)
        stored = self._require(space_uuid)
        if visibility is not None:
            if stored.parent_uuid is not None:
                raise RemoteRejected(f"Space '{space_uuid}' is nested; its visibility is inherited")
            stored.visibility = Visibility(visibility)
        if name is not None:
            stored.name = name

    def delete_space(self, space_uuid: str) -> None:
        self._call("delete_space", space_uuid)
        self._require(space_uuid)
        doomed = [s.uuid for s in self._spaces.values() if s.uuid == space_uuid or self._is_descendant(s, space_uuid)]
        for uuid in doomed:
            del self._spaces[uuid]
        logger.debug("Deleted %d space(s) starting at %s", len(doomed), space_uuid)

    # ── Internals ───────────────────────────────────────

    def _call(self, operation: str, space_uuid: str, *args) -> None:
        self.calls.append((operation, space_uuid, *args))
        subject = args[0] if args and isinstance(args[0], str) else None
        error = self.fail_on.get((operation, subject)) or self.fail_on.get((operation, None))
        if error is not None:
            raise error

    def _require(self, space_uuid: str) -> _StoredSpace:
        stored = self._spaces.get(space_uuid)
        if stored is None:
            raise NotFound(f"Space '{space_uuid}' not found", space_uuid=space_uuid)
        return stored

    def _editable(self, space_uuid: str) -> _StoredSpace:
        stored = self._require(space_uuid)
        if stored.parent_uuid is not None:
            raise RemoteRejected(f"Space '{space_uuid}' is nested; its access is inherited")
        return stored

    def _root_of(self, stored: _StoredSpace) -> _StoredSpace:
        current = stored
        while current.parent_uuid is not None:
            current = self._spaces[current.parent_uuid]
        return current

    def _is_descendant(self, stored: _StoredSpace, ancestor_uuid: str) -> bool:
        current = stored
        while current.parent_uuid is not None:
            if current.parent_uuid == ancestor_uuid:
                return True
            current = self._spaces[current.parent_uuid]
        return False


__all__ = ["MUTATING_OPERATIONS", "InMemorySpaceClient"]
