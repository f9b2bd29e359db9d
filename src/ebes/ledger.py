"""Candidate-role association ledger: discard and restore lifecycle."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pendulum
import structlog

from .errors import NotFoundError
from .schemas import Candidate, CandidateRoleAssociation
from .store import Store

GLOBAL_DISCARD_REASON = "Candidate globally discarded"
LOST_ROLE_REASON = "Role marked as lost"
ROLE_CLOSED_STATUSES: tuple[str, ...] = ("on_hold", "cancelled", "deal")


def role_closed_reason(status: str) -> str:
    return f"Role status changed to {status}"


class AssociationLedger:
    """Writes to candidate-role associations.

    Every discard/restore is idempotent: associations already in the target
    state are skipped, so concurrent role status changes converge.
    """

    def __init__(self, store: Store, *, now_provider: Callable[[], Any] | None = None) -> None:
        self._store = store
        self._now = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    def record_association(
        self,
        candidate_id: int,
        role_id: int,
        recruiter_id: int,
        *,
        submitted_on: date | None = None,
    ) -> CandidateRoleAssociation:
        with self._store.transaction():
            existing = self._store.get_association(candidate_id, role_id)
            if existing is not None:
                return existing
            association = CandidateRoleAssociation(
                candidate_id=candidate_id,
                role_id=role_id,
                recruiter_user_id=recruiter_id,
                submitted_on=submitted_on,
                updated_at=self._now(),
            )
            return self._store.save_association(association)

    def discard_association(
        self,
        candidate_id: int,
        role_id: int,
        reason: str | None = None,
        *,
        recruiter_id: int | None = None,
    ) -> CandidateRoleAssociation:
        with self._store.transaction():
            association = self._store.get_association(candidate_id, role_id)
            if association is None or (
                recruiter_id is not None and association.recruiter_user_id != recruiter_id
            ):
                raise NotFoundError.for_entity("association", (candidate_id, role_id))
            if association.is_discarded:
                return association
            updated = association.discard(reason=reason, at=self._now())
            self._store.save_association(updated)

        self._logger.info(
            "ledger.association_discarded",
            candidate_id=candidate_id,
            role_id=role_id,
            reason=reason,
        )
        return updated

    def discard_candidate(self, candidate_id: int, *, recruiter_id: int | None = None) -> int:
        """Globally discard a candidate and all of its live associations."""
        with self._store.transaction():
            candidate = self._owned_candidate(candidate_id, recruiter_id)
            if candidate.is_active:
                self._store.save_candidate(candidate.model_copy(update={"is_active": False}))
            now = self._now()
            changed = 0
            for association in self._store.list_associations(
                candidate_id=candidate_id, recruiter_id=recruiter_id
            ):
                if association.is_discarded:
                    continue
                self._store.save_association(
                    association.discard(reason=GLOBAL_DISCARD_REASON, at=now)
                )
                changed += 1

        self._logger.info("ledger.candidate_discarded", candidate_id=candidate_id, associations=changed)
        return changed

    def restore_candidate(self, candidate_id: int, *, recruiter_id: int | None = None) -> int:
        """Reactivate a candidate; only globally discarded associations come back."""
        with self._store.transaction():
            candidate = self._owned_candidate(candidate_id, recruiter_id)
            if not candidate.is_active:
                self._store.save_candidate(candidate.model_copy(update={"is_active": True}))
            now = self._now()
            restored = 0
            for association in self._store.list_associations(
                candidate_id=candidate_id, recruiter_id=recruiter_id
            ):
                if not association.is_discarded:
                    continue
                if association.discarded_reason != GLOBAL_DISCARD_REASON:
                    continue
                self._store.save_association(association.restore(at=now))
                restored += 1

        self._logger.info("ledger.candidate_restored", candidate_id=candidate_id, associations=restored)
        return restored

    def apply_role_status(self, role_id: int, status: str) -> int:
        """Discard live associations of a role that was closed or lost."""
        if status == "lost":
            reason, lost_role = LOST_ROLE_REASON, True
        elif status in ROLE_CLOSED_STATUSES:
            reason, lost_role = role_closed_reason(status), False
        else:
            return 0

        with self._store.transaction():
            now = self._now()
            changed = 0
            for association in self._store.list_associations(role_id=role_id):
                if association.is_discarded:
                    continue
                self._store.save_association(
                    association.discard(
                        reason=reason,
                        at=now,
                        lost_role=lost_role,
                        role_closed=not lost_role,
                    )
                )
                changed += 1

        if changed:
            self._logger.info(
                "ledger.role_discarded",
                role_id=role_id,
                status=status,
                lost_role=lost_role,
                associations=changed,
            )
        return changed

    def _owned_candidate(self, candidate_id: int, recruiter_id: int | None) -> Candidate:
        candidate = self._store.get_candidate(candidate_id)
        if candidate is None or (
            recruiter_id is not None and candidate.created_by_user_id != recruiter_id
        ):
            raise NotFoundError.for_entity("candidate", candidate_id)
        return candidate


__all__ = [
    "AssociationLedger",
    "GLOBAL_DISCARD_REASON",
    "LOST_ROLE_REASON",
    "role_closed_reason",
]
