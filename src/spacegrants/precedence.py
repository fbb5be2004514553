"""Role precedence resolution for project membership tiers.

Operators declare project members per tier (admins, developers, editors,
interactive viewers, viewers) independently, so the same user may show up
in several tiers and several times within one tier. The platform gives each
user exactly one effective project role.

Provides:
- ``ProjectMembers`` — five ordered tiers, highest first.
- ``resolve_unique()`` — every identifier lands in its highest tier only.
- ``normalize_tiers()`` — per-tier dedup, no cross-tier elevation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .roles import PROJECT_ROLE_HIERARCHY, ProjectRole


@dataclass(frozen=True)
class ProjectMembers:
    """Member identifiers per project role tier, highest tier first."""

    admins: tuple[str, ...] = ()
    developers: tuple[str, ...] = ()
    editors: tuple[str, ...] = ()
    interactive_viewers: tuple[str, ...] = ()
    viewers: tuple[str, ...] = ()

    @classmethod
    def from_tiers(cls, tiers: Sequence[Iterable[str]]) -> ProjectMembers:
        """Build from five sequences ordered admin → viewer."""
        if len(tiers) != len(PROJECT_ROLE_HIERARCHY):
            raise ValueError(f"Expected {len(PROJECT_ROLE_HIERARCHY)} role tiers, got {len(tiers)}")
        return cls(*(tuple(tier) for tier in tiers))

    def tiers(self) -> tuple[tuple[str, ...], ...]:
        """The five tiers in precedence order (admin first)."""
        return (
            self.admins,
            self.developers,
            self.editors,
            self.interactive_viewers,
            self.viewers,
        )

    def items(self) -> Iterable[tuple[ProjectRole, tuple[str, ...]]]:
        return zip(PROJECT_ROLE_HIERARCHY, self.tiers())

    def roles(self) -> dict[str, ProjectRole]:
        """Map every identifier to the highest tier it appears in."""
        assigned: dict[str, ProjectRole] = {}
        for role, members in self.items():
            for member in members:
                assigned.setdefault(member, role)
        return assigned

    def as_dict(self) -> dict[str, list[str]]:
        return {
            "admins": list(self.admins),
            "developers": list(self.developers),
            "editors": list(self.editors),
            "interactive_viewers": list(self.interactive_viewers),
            "viewers": list(self.viewers),
        }


def _dedupe(members: Iterable[str]) -> tuple[str, ...]:
    """Drop repeats, keeping first-occurrence order."""
    return tuple(dict.fromkeys(members))


def resolve_unique(
    admins: Iterable[str] = (),
    developers: Iterable[str] = (),
    editors: Iterable[str] = (),
    interactive_viewers: Iterable[str] = (),
    viewers: Iterable[str] = (),
) -> ProjectMembers:
    """Assign every identifier to exactly one tier, its highest.

    The five outputs are deduplicated and partition the set of input
    identifiers. Order within an output tier follows first occurrence in
    the corresponding input tier.

    Example::

        members = resolve_unique(
            admins=["a1", "a2", "a2"],
            developers=["a1", "d1", "d2", "d2"],
        )
        members.admins      # ("a1", "a2")
        members.developers  # ("d1", "d2")
    """
    seen: set[str] = set()
    resolved: list[tuple[str, ...]] = []

    # Highest tier first: an identifier already placed is never placed again.
    for tier in (admins, developers, editors, interactive_viewers, viewers):
        kept = tuple(member for member in _dedupe(tier) if member not in seen)
        seen.update(kept)
        resolved.append(kept)

    return ProjectMembers(*resolved)


def normalize_tiers(
    admins: Iterable[str] = (),
    developers: Iterable[str] = (),
    editors: Iterable[str] = (),
    interactive_viewers: Iterable[str] = (),
    viewers: Iterable[str] = (),
) -> ProjectMembers:
    """Deduplicate each tier independently.

    An identifier declared in several tiers stays in each of them; use
    :func:`resolve_unique` when tiers may overlap.
    """
    return ProjectMembers(
        admins=_dedupe(admins),
        developers=_dedupe(developers),
        editors=_dedupe(editors),
        interactive_viewers=_dedupe(interactive_viewers),
        viewers=_dedupe(viewers),
    )


__all__ = [
    "ProjectMembers",
    "normalize_tiers",
    "resolve_unique",
]
