"""Tests for space models and declarations."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from spacegrants import (
    GrantConflictError,
    Nested,
    Root,
    Space,
    SpaceChange,
    SpaceDeclaration,
    SpaceRole,
    SubjectKind,
    Visibility,
    parse_space_resource_id,
    space_resource_id,
)


class TestSpace:
    """Tests for Space snapshots and positions."""

    def test_root_position(self) -> None:
        """A space without parent is root."""
        space = Space("s1")
        assert isinstance(space.position, Root)
        assert space.is_root

    def test_blank_parent_is_root(self) -> None:
        """An empty parent string also means root."""
        assert Space("s1", parent_uuid="").is_root

    def test_nested_position(self) -> None:
        """A space with a parent is nested."""
        space = Space("s2", parent_uuid="s1")
        assert space.position == Nested("s1")
        assert space.is_nested

    def test_resource_id(self) -> None:
        """resource_id formats project and space UUIDs."""
        assert Space("s1", project_uuid="p1").resource_id == "projects/p1/spaces/s1"

    def test_resource_id_requires_project(self) -> None:
        """resource_id needs a project."""
        with pytest.raises(ValueError, match="no project_uuid"):
            Space("s1").resource_id


class TestResourceIds:
    """Tests for resource ID helpers."""

    def test_parse(self) -> None:
        """A well-formed ID splits into project and space."""
        assert parse_space_resource_id(space_resource_id("p1", "s1")) == ("p1", "s1")

    @pytest.mark.parametrize("value", ["s1", "projects/p1/spaces/", "projects/p1/charts/s1", "projects//spaces/s1"])
    def test_parse_invalid(self, value: str) -> None:
        """Malformed IDs raise ValueError."""
        with pytest.raises(ValueError, match="Invalid space resource ID"):
            parse_space_resource_id(value)


class TestSpaceChange:
    """Tests for SpaceChange."""

    def test_undeclared_parent_keeps_position(self) -> None:
        """Without a declared parent the target position is the current one."""
        space = Space("s2", parent_uuid="s1")
        change = SpaceChange(name="Renamed")
        assert change.target_position(space) == Nested("s1")
        assert not change.moves(space)

    def test_move_to_root(self) -> None:
        """Declaring a None parent moves a nested space to root."""
        space = Space("s2", parent_uuid="s1")
        change = SpaceChange.move_to(None)
        assert isinstance(change.target_position(space), Root)
        assert change.moves(space)

    def test_same_parent_is_not_a_move(self) -> None:
        """Re-declaring the current parent does not move."""
        assert not SpaceChange.move_to("s1").moves(Space("s2", parent_uuid="s1"))

    def test_visibility_coerced(self) -> None:
        """Plain string visibility is stored as a Visibility member."""
        assert SpaceChange(visibility="restricted").visibility is Visibility.RESTRICTED

    def test_invalid_visibility(self) -> None:
        """Unknown visibility values are refused."""
        with pytest.raises(ValueError):
            SpaceChange(visibility="hidden")


class TestSpaceDeclaration:
    """Tests for the SpaceDeclaration model."""

    def test_grants(self) -> None:
        """Member and group access convert into one grant set."""
        declaration = SpaceDeclaration(
            name="Finance",
            is_private=True,
            access=[{"user_uuid": "u1", "role": "ADMIN"}],
            group_access=[{"group_uuid": "g1"}],
        )
        grants = declaration.grants()
        assert grants.role_of("u1") is SpaceRole.ADMIN
        assert grants.get("g1").kind is SubjectKind.GROUP
        assert grants.role_of("g1") is SpaceRole.VIEWER

    def test_change(self) -> None:
        """change() declares name, visibility and parent."""
        declaration = SpaceDeclaration(name="Finance", is_private=False, parent_space_uuid="  ")
        change = declaration.change()
        assert change.name == "Finance"
        assert change.visibility is Visibility.PUBLIC
        assert change.parent_uuid is None
        assert change.parent_declared

    def test_visibility_undeclared(self) -> None:
        """Omitting is_private leaves visibility undeclared."""
        assert SpaceDeclaration(name="x").visibility is None

    def test_deletion_protection_default(self) -> None:
        """Deletion protection is left to the configured default unless declared."""
        assert SpaceDeclaration(name="x").deletion_protection is None
        assert SpaceDeclaration(name="x", deletion_protection=False).deletion_protection is False

    def test_conflicting_member(self) -> None:
        """Declaring a user twice with different roles is a conflict."""
        declaration = SpaceDeclaration(
            name="x",
            access=[
                {"user_uuid": "u1", "role": "viewer"},
                {"user_uuid": "u1", "role": "editor"},
            ],
        )
        with pytest.raises(GrantConflictError):
            declaration.grants()

    def test_invalid_role(self) -> None:
        """Unknown roles fail validation."""
        with pytest.raises(ValidationError):
            SpaceDeclaration(name="x", access=[{"user_uuid": "u1", "role": "owner"}])

    def test_extra_fields_forbidden(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(ValidationError):
            SpaceDeclaration(name="x", color="blue")  # type: ignore[call-arg]
