"""Collaborator contract for the remote platform.

The transport (HTTP, rate limiting, response unmarshalling) lives outside
this package. Implementations raise the ``Remote*`` / ``NotFound`` errors
from :mod:`spacegrants.exceptions`; timeouts and cancellations should be
raised as ``RemoteUnavailable`` (bare ``TimeoutError``/``ConnectionError``
are also recorded as such by the reconciler).
"""

from abc import ABC, abstractmethod
from typing import Optional

from .grants import GrantSet
from .models import Space
from .roles import SpaceRole, SubjectKind, Visibility


class SpaceAccessClient(ABC):
    """Per-grant remote operations on spaces."""

    @abstractmethod
    def get_space(self, space_uuid: str) -> Space:
        """Fetch space metadata. Raises NotFound / RemoteUnavailable."""

    @abstractmethod
    def fetch_effective_grants(self, space_uuid: str) -> GrantSet:
        """Fetch the full effective access list. Raises NotFound / RemoteUnavailable."""

    @abstractmethod
    def add_grant(
        self,
        space_uuid: str,
        subject: str,
        role: SpaceRole,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        """Grant ``subject`` access. Raises RemoteRejected / RemoteUnavailable."""

    @abstractmethod
    def update_grant_role(
        self,
        space_uuid: str,
        subject: str,
        role: SpaceRole,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        """Change ``subject``'s role. Raises RemoteRejected / RemoteUnavailable."""

    @abstractmethod
    def remove_grant(
        self,
        space_uuid: str,
        subject: str,
        kind: SubjectKind = SubjectKind.MEMBER,
    ) -> None:
        """Revoke ``subject``'s access.

        Raises MinimumGranteeViolation, RemoteRejected or RemoteUnavailable.
        """

    @abstractmethod
    def move_space(self, space_uuid: str, new_parent_uuid: Optional[str]) -> None:
        """Move under ``new_parent_uuid`` (None: to root). Raises RemoteRejected / NotFound."""

    @abstractmethod
    def update_space(
        self,
        space_uuid: str,
        *,
        name: Optional[str] = None,
        visibility: Optional[Visibility] = None,
    ) -> None:
        """Update name and/or visibility; None leaves a field unchanged."""

    @abstractmethod
    def delete_space(self, space_uuid: str) -> None:
        """Delete the space (the platform cascades to children)."""


__all__ = ["SpaceAccessClient"]
