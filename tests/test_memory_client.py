"""Tests for the in-memory platform collaborator."""

from __future__ import annotations

import pytest

from spacegrants import (
    InMemorySpaceClient,
    MinimumGranteeViolation,
    NotFound,
    RemoteRejected,
    RemoteUnavailable,
    SpaceRole,
    SubjectKind,
    Visibility,
)
from spacegrants.grants import INHERITED_FROM_ORGANIZATION, INHERITED_FROM_PARENT_SPACE


@pytest.fixture
def client() -> InMemorySpaceClient:
    return InMemorySpaceClient(organization_admins=("org-admin",))


class TestCreateSpace:
    """Tests for space creation."""

    def test_creator_auto_added(self, client: InMemorySpaceClient) -> None:
        """The creator of a root space is a direct admin."""
        space = client.create_space("Finance", creator="alice")
        grant = client.fetch_effective_grants(space.uuid).get("alice")
        assert grant.role is SpaceRole.ADMIN
        assert grant.is_direct_member

    def test_org_admins_inherited(self, client: InMemorySpaceClient) -> None:
        """Organization admins appear as inherited admins."""
        space = client.create_space("Finance")
        grant = client.fetch_effective_grants(space.uuid).get("org-admin")
        assert grant.role is SpaceRole.ADMIN
        assert grant.inherited_from == INHERITED_FROM_ORGANIZATION
        assert grant.access_source is None

    def test_not_recorded(self, client: InMemorySpaceClient) -> None:
        """Setup does not show up as a call."""
        client.create_space("Finance", creator="alice")
        assert client.calls == []

    def test_unknown_parent(self, client: InMemorySpaceClient) -> None:
        """Creating under a missing parent fails."""
        with pytest.raises(NotFound):
            client.create_space("Child", parent_uuid="missing")


class TestNestedSpaces:
    """Tests for inherited access on nested spaces."""

    def test_access_inherited_from_root(self, client: InMemorySpaceClient) -> None:
        """A grandchild reports its root ancestor's grants."""
        root = client.create_space("Root", visibility=Visibility.RESTRICTED, creator="alice")
        child = client.create_space("Child", parent_uuid=root.uuid)
        grandchild = client.create_space("Grandchild", parent_uuid=child.uuid)

        grant = client.fetch_effective_grants(grandchild.uuid).get("alice")
        assert grant.inherited_from == INHERITED_FROM_PARENT_SPACE
        assert not grant.has_direct_access
        assert client.get_space(grandchild.uuid).visibility is Visibility.RESTRICTED

    def test_children_listed(self, client: InMemorySpaceClient) -> None:
        """get_space lists direct children only."""
        root = client.create_space("Root")
        child = client.create_space("Child", parent_uuid=root.uuid)
        client.create_space("Grandchild", parent_uuid=child.uuid)
        assert client.get_space(root.uuid).child_uuids == (child.uuid,)

    def test_grant_edit_rejected(self, client: InMemorySpaceClient) -> None:
        """Grants cannot be edited on a nested space."""
        root = client.create_space("Root")
        child = client.create_space("Child", parent_uuid=root.uuid)
        with pytest.raises(RemoteRejected, match="inherited"):
            client.add_grant(child.uuid, "bob", SpaceRole.VIEWER)

    def test_visibility_edit_rejected(self, client: InMemorySpaceClient) -> None:
        """Visibility cannot be changed on a nested space."""
        root = client.create_space("Root")
        child = client.create_space("Child", parent_uuid=root.uuid)
        with pytest.raises(RemoteRejected):
            client.update_space(child.uuid, visibility=Visibility.PUBLIC)


class TestGrantOperations:
    """Tests for grant mutations."""

    def test_add_update_remove(self, client: InMemorySpaceClient) -> None:
        """Grants can be added, changed and removed."""
        space = client.create_space("Finance")
        client.add_grant(space.uuid, "team", SpaceRole.VIEWER, SubjectKind.GROUP)
        client.update_grant_role(space.uuid, "team", SpaceRole.EDITOR, SubjectKind.GROUP)
        assert client.direct_grants(space.uuid).get("team").kind is SubjectKind.GROUP
        assert client.direct_grants(space.uuid).role_of("team") is SpaceRole.EDITOR

        client.remove_grant(space.uuid, "team", SubjectKind.GROUP)
        assert "team" not in client.direct_grants(space.uuid)

    def test_remove_last_grantee_on_restricted(self, client: InMemorySpaceClient) -> None:
        """A restricted space keeps at least one grantee."""
        space = client.create_space("Private", visibility=Visibility.RESTRICTED, creator="alice")
        with pytest.raises(MinimumGranteeViolation):
            client.remove_grant(space.uuid, "alice")
        assert "alice" in client.direct_grants(space.uuid)

    def test_remove_last_grantee_on_public(self, client: InMemorySpaceClient) -> None:
        """A public space may drop to zero grantees."""
        space = client.create_space("Open", creator="alice")
        client.remove_grant(space.uuid, "alice")
        assert not client.direct_grants(space.uuid)

    def test_update_unknown_subject(self, client: InMemorySpaceClient) -> None:
        """Updating a subject without access fails."""
        space = client.create_space("Finance")
        with pytest.raises(NotFound):
            client.update_grant_role(space.uuid, "ghost", SpaceRole.ADMIN)

    def test_unknown_space(self, client: InMemorySpaceClient) -> None:
        """Operations on a missing space fail."""
        with pytest.raises(NotFound):
            client.fetch_effective_grants("missing")


class TestMoveAndDelete:
    """Tests for moving and deleting spaces."""

    def test_move_under_parent_drops_own_access(self, client: InMemorySpaceClient) -> None:
        """A moved space adopts its new root ancestor's access."""
        root = client.create_space("Root", creator="alice")
        other = client.create_space("Other", visibility=Visibility.RESTRICTED, creator="bob")

        client.move_space(other.uuid, root.uuid)

        effective = client.fetch_effective_grants(other.uuid)
        assert "bob" not in effective
        assert "alice" in effective
        assert client.get_space(other.uuid).visibility is Visibility.PUBLIC

    def test_move_to_root_takes_over_access(self, client: InMemorySpaceClient) -> None:
        """A space moved to root keeps the access it inherited."""
        root = client.create_space("Root", visibility=Visibility.RESTRICTED, creator="alice")
        child = client.create_space("Child", parent_uuid=root.uuid)

        client.move_space(child.uuid, None)

        assert client.direct_grants(child.uuid).role_of("alice") is SpaceRole.ADMIN
        assert client.get_space(child.uuid).is_root

    def test_move_under_descendant(self, client: InMemorySpaceClient) -> None:
        """Moving under a descendant is refused."""
        root = client.create_space("Root")
        child = client.create_space("Child", parent_uuid=root.uuid)
        with pytest.raises(RemoteRejected):
            client.move_space(root.uuid, child.uuid)

    def test_delete_cascades(self, client: InMemorySpaceClient) -> None:
        """Deleting a space removes its descendants."""
        root = client.create_space("Root")
        child = client.create_space("Child", parent_uuid=root.uuid)
        client.delete_space(root.uuid)
        with pytest.raises(NotFound):
            client.get_space(child.uuid)


class TestRecording:
    """Tests for call recording and failure injection."""

    def test_calls_recorded(self, client: InMemorySpaceClient) -> None:
        """Every call is recorded; mutations are filterable."""
        space = client.create_space("Finance")
        client.fetch_effective_grants(space.uuid)
        client.add_grant(space.uuid, "bob", SpaceRole.VIEWER)

        assert [call[0] for call in client.calls] == ["fetch_effective_grants", "add_grant"]
        assert client.mutations == [("add_grant", space.uuid, "bob", SpaceRole.VIEWER, SubjectKind.MEMBER)]

    def test_fail_for_subject(self, client: InMemorySpaceClient) -> None:
        """Injected failures can target one subject."""
        space = client.create_space("Finance")
        client.fail("add_grant", "bob", RemoteUnavailable("timeout"))

        client.add_grant(space.uuid, "carol", SpaceRole.VIEWER)
        with pytest.raises(RemoteUnavailable):
            client.add_grant(space.uuid, "bob", SpaceRole.VIEWER)

    def test_fail_any_subject(self, client: InMemorySpaceClient) -> None:
        """Injected failures without subject match every call."""
        space = client.create_space("Finance")
        client.fail("add_grant")
        with pytest.raises(RemoteRejected, match="Injected failure"):
            client.add_grant(space.uuid, "carol", SpaceRole.VIEWER)
