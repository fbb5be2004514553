"""Access reconciler: converge a space's effective access toward declared access.

A pass runs synchronously, one remote call at a time:

1. Validate the declaration against the space's (target) position. A
   rejection raises before any grant is touched.
2. Fetch effective grants.
3. Move the space, then update its name/visibility, if declared. A
   successful move re-fetches effective grants for the new position.
4. Diff declared grants against the *previously declared* grants, so
   auto-added and inherited access is never targeted for removal.
5. Issue adds, then role updates, then removals. Every operation is
   attempted; failures are collected per (subject, operation kind).
   Organization admins are refused as space members without a remote call.
6. Re-fetch effective grants and return them as the result's ground truth.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional
from uuid import uuid4

from .config import AccessConfig
from .exceptions import (
    NotFound,
    RemoteError,
    RemoteUnavailable,
    SpaceAccessError,
    ValidationRejected,
    ValidationWarning,
)
from .grants import INHERITED_FROM_ORGANIZATION, GrantDiff, GrantSet, OperationKind, PlannedOperation, diff
from .inheritance import MoveInheritanceNotice, ValidationResult, validate_delete, validate_update
from .interfaces import SpaceAccessClient
from .logging import AccessLoggerAdapter, get_access_logger
from .models import Root, Space, SpaceChange, SpaceDeclaration
from .roles import SpaceRole, SubjectKind


@dataclass(frozen=True)
class OperationResult:
    """Outcome of one attempted remote operation.

    For space-level operations (move, update_space, delete) ``subject`` is
    the space UUID.
    """

    kind: OperationKind
    subject: str
    role: Optional[SpaceRole] = None
    error: Optional[SpaceAccessError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ReconcileResult:
    """Final effective grants plus everything that happened on the way."""

    space_uuid: str
    effective: GrantSet
    validation: ValidationResult
    plan: GrantDiff = field(default_factory=GrantDiff)
    operations: tuple[OperationResult, ...] = ()
    skipped: tuple[PlannedOperation, ...] = ()
    reconcile_id: str = ""

    @property
    def errors(self) -> dict[tuple[str, OperationKind], SpaceAccessError]:
        """Failed operations keyed by (subject, operation kind)."""
        return {(op.subject, op.kind): op.error for op in self.operations if op.error is not None}

    @property
    def failed(self) -> tuple[OperationResult, ...]:
        return tuple(op for op in self.operations if not op.ok)

    @property
    def warnings(self) -> tuple[ValidationWarning, ...]:
        return self.validation.warnings

    @property
    def notices(self) -> tuple[MoveInheritanceNotice, ...]:
        return self.validation.notices

    @property
    def ok(self) -> bool:
        return not self.failed


class AccessReconciler:
    """Reconciles declared space access through a :class:`SpaceAccessClient`.

    Args:
        client: Remote platform collaborator.
        config: Engine configuration; defaults to ``AccessConfig()``.

    Example::

        reconciler = AccessReconciler(client)
        result = reconciler.reconcile(
            space,
            declared=GrantSet.of({"u1": "admin", "u2": "viewer"}),
            previously_declared=GrantSet.of({"u1": "editor"}),
        )
        result.effective   # what the platform now reports
        result.errors      # {(subject, OperationKind): error}
    """

    def __init__(self, client: SpaceAccessClient, config: Optional[AccessConfig] = None) -> None:
        self.client = client
        self.config = config or AccessConfig()

    def lookup(self, space_uuid: str) -> Optional[Space]:
        """Ancestor lookup for the validator; None when the space does not exist."""
        try:
            return self.client.get_space(space_uuid)
        except NotFound:
            return None

    def _logger(self, space_uuid: str, reconcile_id: str) -> AccessLoggerAdapter:
        return get_access_logger(
            __name__,
            space_uuid=space_uuid,
            reconcile_id=reconcile_id,
            organization_uuid=self.config.organization_uuid,
        )

    # ── Reconcile ───────────────────────────────────────

    def reconcile(
        self,
        space: Space,
        declared: GrantSet,
        previously_declared: Optional[GrantSet] = None,
        change: Optional[SpaceChange] = None,
    ) -> ReconcileResult:
        """Run one reconciliation pass for ``space``.

        Args:
            space: Current snapshot of the space.
            declared: Grants the operator wants now.
            previously_declared: Grants this engine declared on the previous
                pass (empty on creation). Only these can be removed.
            change: Declared name / visibility / parent, if any.

        Returns:
            ReconcileResult with the re-fetched effective grants.

        Raises:
            ValidationRejected: the declaration is illegal; nothing was changed.
            RemoteError: fetching effective grants failed. When a re-fetch
                after a move or at the end fails, ``details["operations"]``
                holds the attempted operations.
        """
        previously_declared = previously_declared if previously_declared is not None else GrantSet()
        change = change or SpaceChange()
        reconcile_id = uuid4().hex[:12]
        log = self._logger(space.uuid, reconcile_id)

        validation = validate_update(
            space,
            change,
            declared,
            lookup=self.lookup if change.moves(space) else None,
        )
        if not validation.accepted:
            log.error("Reconciliation rejected: %s", validation.rejection)
            validation.raise_for_rejection()
        for warning in validation.warnings:
            log.warning("%s", warning.message, extra={"field": warning.field})
        for notice in validation.notices:
            log.info("%s", notice.message)

        effective = self.client.fetch_effective_grants(space.uuid)

        results: list[OperationResult] = []
        skipped: list[PlannedOperation] = []

        move_failed = False
        if change.moves(space):
            outcome = self._attempt(
                log,
                OperationKind.MOVE,
                space.uuid,
                None,
                lambda: self.client.move_space(space.uuid, change.parent_uuid),
            )
            results.append(outcome)
            move_failed = not outcome.ok
            if not move_failed:
                # Access the space held before the move no longer applies.
                try:
                    effective = self.client.fetch_effective_grants(space.uuid)
                except SpaceAccessError as e:
                    e.details["operations"] = tuple(results)
                    log.error("Failed to re-fetch effective grants after the move: %s", e)
                    raise

        target_is_root = isinstance(validation.target_position, Root)
        grants_mutable = target_is_root and not move_failed

        update_kwargs = self._space_updates(space, change, grants_mutable)
        if update_kwargs:
            results.append(
                self._attempt(
                    log,
                    OperationKind.UPDATE_SPACE,
                    space.uuid,
                    None,
                    lambda: self.client.update_space(space.uuid, **update_kwargs),
                )
            )

        if grants_mutable:
            plan = diff(declared, previously_declared)
        else:
            plan = GrantDiff()
            log.info("Grant reconciliation skipped: access is inherited from the root ancestor")

        log.info(
            "Planned %d add(s), %d role update(s), %d removal(s)",
            len(plan.to_add),
            len(plan.to_update),
            len(plan.to_remove),
        )

        for planned in plan.operations():
            rejection = self._organization_admin_rejection(planned, effective)
            if rejection is not None:
                log.warning("%s", rejection.message, extra={"subject": planned.subject})
                results.append(OperationResult(planned.kind, planned.subject, planned.role, rejection))
                continue
            if self._already_converged(planned, effective):
                log.debug("Skipping %s for %s: already converged", planned.kind.value, planned.subject)
                skipped.append(planned)
                continue
            results.append(self._issue(log, space.uuid, planned))

        try:
            final = self.client.fetch_effective_grants(space.uuid)
        except SpaceAccessError as e:
            e.details["operations"] = tuple(results)
            log.error("Failed to re-fetch effective grants after %d operation(s): %s", len(results), e)
            raise

        result = ReconcileResult(
            space_uuid=space.uuid,
            effective=final,
            validation=validation,
            plan=plan,
            operations=tuple(results),
            skipped=tuple(skipped),
            reconcile_id=reconcile_id,
        )
        if result.failed:
            log.warning("Reconciliation finished with %d failed operation(s)", len(result.failed))
        else:
            log.info("Reconciliation finished: %d operation(s) applied", len(results))
        return result

    def apply_declaration(
        self,
        space: Space,
        declaration: SpaceDeclaration,
        previously_declared: Optional[GrantSet] = None,
    ) -> ReconcileResult:
        """Reconcile ``space`` toward an operator ``SpaceDeclaration``."""
        return self.reconcile(space, declaration.grants(), previously_declared, declaration.change())

    # ── Delete ──────────────────────────────────────────

    def delete_space(self, space: Space, deletion_protection: Optional[bool] = None) -> None:
        """Delete ``space`` after pre-flight validation.

        Raises:
            ValidationRejected: protection is on or the space has children.
            RemoteError: the remote delete failed.
        """
        protection = self.config.deletion_protection if deletion_protection is None else deletion_protection
        validation = validate_delete(space, deletion_protection=protection)
        log = self._logger(space.uuid, uuid4().hex[:12])
        if not validation.accepted:
            log.error("Delete rejected: %s", validation.rejection)
            validation.raise_for_rejection()
        log.info("Deleting space")
        self.client.delete_space(space.uuid)

    def delete_declared(self, space: Space, declaration: SpaceDeclaration) -> None:
        """Delete ``space`` honoring the declaration's own deletion protection."""
        self.delete_space(space, declaration.deletion_protection)

    # ── Helpers ─────────────────────────────────────────

    def _space_updates(self, space: Space, change: SpaceChange, visibility_mutable: bool) -> dict:
        updates: dict = {}
        if change.name is not None and change.name != space.name:
            updates["name"] = change.name
        # Visibility is only sent for spaces that are (and stay) root.
        if visibility_mutable and change.visibility is not None and change.visibility is not space.visibility:
            updates["visibility"] = change.visibility
        return updates

    def _already_converged(self, planned: PlannedOperation, effective: GrantSet) -> bool:
        if planned.kind is OperationKind.ADD:
            if not self.config.skip_converged_adds:
                return False
            current = effective.get(planned.subject)
            return current is not None and current.role is planned.role and current.kind is planned.subject_kind
        if planned.kind is OperationKind.REMOVE:
            return planned.subject not in effective
        return False

    def _organization_admin_rejection(
        self, planned: PlannedOperation, effective: GrantSet
    ) -> Optional[ValidationRejected]:
        """Organization admins already reach every space; they are never space members."""
        if planned.kind is OperationKind.REMOVE or planned.subject_kind is not SubjectKind.MEMBER:
            return None
        current = effective.get(planned.subject)
        if current is None or current.inherited_from != INHERITED_FROM_ORGANIZATION:
            return None
        return ValidationRejected(
            f"User {planned.subject} is an organization admin, so they shouldn't be added as a space member",
            subject=planned.subject,
        )

    def _issue(self, log: AccessLoggerAdapter, space_uuid: str, planned: PlannedOperation) -> OperationResult:
        if planned.kind is OperationKind.ADD:
            call = lambda: self.client.add_grant(space_uuid, planned.subject, planned.role, planned.subject_kind)  # noqa: E731
        elif planned.kind is OperationKind.UPDATE_ROLE:
            call = lambda: self.client.update_grant_role(space_uuid, planned.subject, planned.role, planned.subject_kind)  # noqa: E731
        elif planned.kind is OperationKind.REMOVE:
            call = lambda: self.client.remove_grant(space_uuid, planned.subject, planned.subject_kind)  # noqa: E731
        else:
            raise ValueError(f"Not a grant operation: {planned.kind}")
        return self._attempt(log, planned.kind, planned.subject, planned.role, call)

    def _attempt(self, log, kind: OperationKind, subject: str, role: Optional[SpaceRole], call) -> OperationResult:
        """Run one remote call, turning its failure into an OperationResult."""
        log.debug("Issuing %s for %s%s", kind.value, subject, f" ({role.value})" if role else "")
        try:
            call()
        except SpaceAccessError as e:
            log.warning("%s for %s failed: [%s] %s", kind.value, subject, e.code, e.message)
            return OperationResult(kind, subject, role, e)
        except (TimeoutError, ConnectionError) as e:
            error = RemoteUnavailable(f"{kind.value} for {subject} did not complete: {e}")
            error.__cause__ = e
            log.warning("%s for %s failed: [%s] %s", kind.value, subject, error.code, error.message)
            return OperationResult(kind, subject, role, error)
        except Exception as e:
            error = RemoteError(f"{kind.value} for {subject} failed unexpectedly: {e!r}")
            error.__cause__ = e
            log.warning("%s for %s failed: [%s] %s", kind.value, subject, error.code, error.message, exc_info=e)
            return OperationResult(kind, subject, role, error)
        return OperationResult(kind, subject, role)


def reconcile(
    client: SpaceAccessClient,
    space: Space,
    declared: GrantSet,
    previously_declared: Optional[GrantSet] = None,
    change: Optional[SpaceChange] = None,
    config: Optional[AccessConfig] = None,
) -> ReconcileResult:
    """Module-level shortcut for ``AccessReconciler(client, config).reconcile(...)``."""
    return AccessReconciler(client, config).reconcile(space, declared, previously_declared, change)


__all__ = [
    "AccessReconciler",
    "OperationResult",
    "ReconcileResult",
    "reconcile",
]
