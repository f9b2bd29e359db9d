"""Dropout approval state machine: recruiter -> recruitment manager -> account manager.

A request moves strictly ``pending -> acknowledged -> completed``. Each
transition is checked against the actor named on the request, validated against
the current state before any write, and committed with a compare-and-swap on
the prior state so concurrent calls cannot both succeed.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pendulum
import structlog

from .activity import ActivityRecorder
from .errors import (
    ForbiddenError,
    InputValidationError,
    InvalidStateTransitionError,
    NotFoundError,
)
from .notifications import NotificationDispatcher
from .roles import RoleService, require_user, validate_role_status
from .schemas import DropoutRequest, Notification
from .schemas.entities import DROPOUT_DECISIONS
from .store import Store

DEFAULT_DROPOUT_REASON = "Not specified"
DROPOUT_ELIGIBLE_STATUSES: tuple[str, ...] = ("active", "deal")


def resolve_role_status(requested: str | None) -> str:
    """Status the role lands on after a decision; never ``dropout``."""
    if not requested or requested == "dropout":
        return "active"
    return requested


class DropoutWorkflow:
    """Drives dropout requests through acknowledgment and decision."""

    def __init__(
        self,
        store: Store,
        roles: RoleService,
        activity: ActivityRecorder,
        notifier: NotificationDispatcher,
        *,
        now_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._roles = roles
        self._activity = activity
        self._notifier = notifier
        self._now = now_provider or (lambda: pendulum.now("UTC"))
        self._logger = structlog.get_logger(__name__)

    # transitions -------------------------------------------------------

    def record_dropout(
        self,
        role_id: int,
        recruiter_id: int,
        reason: str | None = None,
        *,
        occurred_on: date | None = None,
    ) -> int:
        recruiter = require_user(self._store, recruiter_id, "recruiter")

        # Status changes take the same lock, so eligibility holds until the insert.
        with self._store.transaction():
            role = self._roles.get_role(role_id)
            if role.status not in DROPOUT_ELIGIBLE_STATUSES:
                raise InvalidStateTransitionError(
                    f"Role {role_id} is {role.status}; dropouts need an active or deal role",
                    role_id=role_id,
                    status=role.status,
                )
            managers = self._roles.team_recruitment_managers(role.team_id)
            if not managers:
                raise NotFoundError(
                    f"No recruitment manager found for team {role.team_id!r}",
                    entity="recruitment_manager",
                    team_id=role.team_id,
                )
            rm = managers[0]

            request = DropoutRequest(
                id=self._store.next_dropout_id(),
                role_id=role_id,
                recruiter_user_id=recruiter_id,
                rm_user_id=rm.id,
                am_user_id=role.account_manager_id,
                dropout_reason=(reason or "").strip() or DEFAULT_DROPOUT_REASON,
                created_at=self._now(),
            )
            self._store.insert_dropout(request)
            self._activity.record_dropout_entry(recruiter_id, role, occurred_on=occurred_on)

        self._logger.info(
            "dropout.recorded",
            request_id=request.id,
            role_id=role_id,
            recruiter_id=recruiter_id,
            rm_id=rm.id,
            am_id=role.account_manager_id,
        )
        self._notifier.notify(
            Notification(
                user_id=rm.id,
                type="dropout",
                title="Dropout Requires Acknowledgment",
                message=(
                    f"Recruiter {recruiter.name or recruiter.id} marked a dropout on role "
                    f"{role.title or role.id}. Please review and acknowledge."
                ),
                related_entity_id=role_id,
            )
        )
        return request.id

    def acknowledge_dropout(self, request_id: int, rm_id: int, notes: str | None = None) -> None:
        request = self._get(request_id)
        if request.rm_user_id != rm_id:
            raise ForbiddenError(
                f"Dropout request {request_id} is not addressed to user {rm_id}",
                request_id=request_id,
                actor_id=rm_id,
            )
        acknowledged = request.acknowledge(at=self._now(), notes=notes)
        if not self._store.replace_dropout_if(acknowledged, "pending"):
            raise self._lost_race(request_id, expected="pending")

        self._logger.info("dropout.acknowledged", request_id=request_id, rm_id=rm_id)
        self._notifier.notify(
            Notification(
                user_id=request.am_user_id,
                type="dropout",
                title="Dropout Requires Decision",
                message=(
                    "RM has acknowledged a dropout request. Please review and decide. "
                    f"RM Notes: {notes or 'None'}"
                ),
                related_entity_id=request.role_id,
            )
        )

    def decide_dropout(
        self,
        request_id: int,
        am_id: int,
        decision: str,
        new_role_status: str | None = None,
    ) -> str:
        """Record the account manager's decision; returns the role's new status."""
        if decision not in DROPOUT_DECISIONS:
            raise InputValidationError(
                "Decision must be 'accept' or 'ignore'",
                field="decision",
                value=decision,
            )
        validate_role_status(new_role_status, field="new_role_status")

        request = self._get(request_id)
        if request.am_user_id != am_id:
            raise ForbiddenError(
                f"Dropout request {request_id} is not addressed to user {am_id}",
                request_id=request_id,
                actor_id=am_id,
            )
        resolved = resolve_role_status(new_role_status)
        # Fails before the swap; nothing after it can raise on a known role.
        self._roles.get_role(request.role_id)
        completed = request.complete(
            decision=decision,
            requested_role_status=new_role_status,
            resolved_role_status=resolved,
            at=self._now(),
        )

        with self._store.transaction():
            if not self._store.replace_dropout_if(completed, "acknowledged"):
                raise self._lost_race(request_id, expected="acknowledged")
            self._roles.change_status(request.role_id, resolved, notify=False)

        self._logger.info(
            "dropout.decided",
            request_id=request_id,
            am_id=am_id,
            decision=decision,
            requested_status=new_role_status,
            resolved_status=resolved,
        )
        if decision == "accept":
            recruiter_note = Notification(
                user_id=request.recruiter_user_id,
                type="dropout",
                title="Dropout Accepted",
                message=f"Your dropout request was accepted by the Account Manager. Role remains {resolved}.",
                related_entity_id=request.role_id,
            )
        else:
            recruiter_note = Notification(
                user_id=request.recruiter_user_id,
                type="system",
                title="Dropout Ignored",
                message=f"Your dropout request was reviewed. Role remains {resolved}.",
                related_entity_id=request.role_id,
            )
        self._notifier.notify_all(
            [
                recruiter_note,
                Notification(
                    user_id=request.rm_user_id,
                    type="system",
                    title="Dropout Decision Made",
                    message=(
                        f"AM {'accepted' if decision == 'accept' else 'ignored'} "
                        f"the dropout request for role {request.role_id}."
                    ),
                    related_entity_id=request.role_id,
                ),
            ]
        )
        return resolved

    # queries -----------------------------------------------------------

    def get(self, request_id: int) -> DropoutRequest:
        return self._get(request_id)

    def pending_for_rm(self, rm_id: int) -> list[DropoutRequest]:
        requests = self._store.list_dropouts(rm_id=rm_id, kind="pending")
        return sorted(requests, key=lambda item: (item.created_at, item.id), reverse=True)

    def pending_for_am(self, am_id: int) -> list[DropoutRequest]:
        requests = self._store.list_dropouts(am_id=am_id, kind="acknowledged")
        return sorted(
            requests,
            key=lambda item: (item.rm_acknowledged_at, item.id),
            reverse=True,
        )

    def current_request_for_role(self, role_id: int) -> DropoutRequest | None:
        """Most recent request on the role that is not completed yet."""
        open_requests = [
            item for item in self._store.list_dropouts(role_id=role_id) if not item.is_completed
        ]
        return open_requests[-1] if open_requests else None

    def latest_decision_for(self, role_id: int, recruiter_id: int) -> str | None:
        requests = self._store.list_dropouts(role_id=role_id, recruiter_id=recruiter_id)
        return requests[-1].am_decision if requests else None

    # helpers -----------------------------------------------------------

    def _get(self, request_id: int) -> DropoutRequest:
        request = self._store.get_dropout(request_id)
        if request is None:
            raise NotFoundError.for_entity("dropout request", request_id)
        return request

    def _lost_race(self, request_id: int, *, expected: str) -> InvalidStateTransitionError:
        current = self._store.get_dropout(request_id)
        state = current.kind if current is not None else None
        return InvalidStateTransitionError(
            f"Dropout request {request_id} is {state}, not {expected}",
            request_id=request_id,
            state=state,
        )


__all__ = ["DropoutWorkflow", "resolve_role_status", "DEFAULT_DROPOUT_REASON"]
