"""Recording of recruiter activity that feeds the aggregator and the ledger."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pendulum
import structlog

from .errors import InputValidationError
from .ledger import AssociationLedger
from .notifications import NotificationDispatcher
from .roles import RoleService, require_user
from .schemas import ActivityEntry, Candidate, Notification, Role
from .store import Store

DEFAULT_MIN_CV_MATCH_PERCENT = 85.0
SUBMISSION_TIMINGS: tuple[str, ...] = ("6h", "24h", "after_24h")
INTERVIEW_LEVELS: tuple[int, ...] = (1, 2, 3)


class ActivityRecorder:
    """Validates and stores submissions, interviews, deals and dropout entries."""

    def __init__(
        self,
        store: Store,
        ledger: AssociationLedger,
        roles: RoleService,
        notifier: NotificationDispatcher,
        *,
        min_cv_match_percent: float = DEFAULT_MIN_CV_MATCH_PERCENT,
        today_provider: Callable[[], Any] | None = None,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._roles = roles
        self._notifier = notifier
        self._min_cv_match = min_cv_match_percent
        self._today = today_provider or (lambda: pendulum.today("UTC").date())
        self._logger = structlog.get_logger(__name__)

    def record_submission(
        self,
        recruiter_id: int,
        role_id: int,
        candidate_id: int,
        *,
        timing: str,
        cv_match_percent: float | None,
        occurred_on: date | None = None,
        candidate_name: str = "",
    ) -> ActivityEntry:
        if timing not in SUBMISSION_TIMINGS:
            raise InputValidationError(
                f"Unknown submission timing {timing!r}",
                field="timing",
                allowed=list(SUBMISSION_TIMINGS),
            )
        if cv_match_percent is None:
            raise InputValidationError("cv_match_percent is required for submissions", field="cv_match_percent")
        if not 0 <= cv_match_percent <= 100:
            raise InputValidationError(
                "cv_match_percent must be between 0 and 100",
                field="cv_match_percent",
                value=cv_match_percent,
            )
        if cv_match_percent < self._min_cv_match:
            raise InputValidationError(
                f"Submission blocked: CV matching percentage must be at least {self._min_cv_match:g}%",
                field="cv_match_percent",
                value=cv_match_percent,
            )
        require_user(self._store, recruiter_id, "recruiter")
        role = self._roles.get_role(role_id)
        day = occurred_on or self._today()

        with self._store.transaction():
            if self._store.get_candidate(candidate_id) is None:
                self._store.add_candidate(
                    Candidate(id=candidate_id, name=candidate_name, created_by_user_id=recruiter_id)
                )
            entry = self._add_entry(
                role,
                recruiter_id,
                "submission",
                day,
                candidate_id=candidate_id,
                submission_timing=timing,
                cv_match_percent=cv_match_percent,
            )
            self._ledger.record_association(candidate_id, role_id, recruiter_id, submitted_on=day)

        self._logger.info(
            "activity.submission_recorded",
            recruiter_id=recruiter_id,
            role_id=role_id,
            candidate_id=candidate_id,
            timing=timing,
        )
        return entry

    def record_interview(
        self,
        recruiter_id: int,
        role_id: int,
        level: int,
        *,
        candidate_id: int | None = None,
        occurred_on: date | None = None,
    ) -> ActivityEntry:
        if level not in INTERVIEW_LEVELS:
            raise InputValidationError(
                f"Interview level must be one of {list(INTERVIEW_LEVELS)}",
                field="level",
                value=level,
            )
        require_user(self._store, recruiter_id, "recruiter")
        role = self._roles.get_role(role_id)
        return self._add_entry(
            role,
            recruiter_id,
            "interview",
            occurred_on or self._today(),
            candidate_id=candidate_id,
            interview_level=level,
        )

    def record_deal(
        self,
        recruiter_id: int,
        role_id: int,
        *,
        candidate_id: int | None = None,
        occurred_on: date | None = None,
    ) -> ActivityEntry:
        recruiter = require_user(self._store, recruiter_id, "recruiter")
        role = self._roles.get_role(role_id)
        with self._store.transaction():
            entry = self._add_entry(
                role,
                recruiter_id,
                "deal",
                occurred_on or self._today(),
                candidate_id=candidate_id,
            )
            self._roles.change_status(role_id, "deal", notify=False)

        self._notifier.notify(
            Notification(
                user_id=role.account_manager_id,
                type="deal",
                title="New Deal!",
                message=f"Recruiter {recruiter.name or recruiter.id} closed a deal on role {role.title or role.id}",
                related_entity_id=role_id,
            )
        )
        return entry

    def record_dropout_entry(self, recruiter_id: int, role: Role, *, occurred_on: date | None = None) -> ActivityEntry:
        return self._add_entry(role, recruiter_id, "dropout", occurred_on or self._today())

    def _add_entry(
        self,
        role: Role,
        recruiter_id: int,
        entry_type: str,
        occurred_on: date,
        **fields: Any,
    ) -> ActivityEntry:
        entry = ActivityEntry(
            id=self._store.next_entry_id(),
            recruiter_user_id=recruiter_id,
            role_id=role.id,
            client_id=role.client_id,
            team_id=role.team_id,
            entry_type=entry_type,
            occurred_on=occurred_on,
            **fields,
        )
        return self._store.add_entry(entry)


__all__ = ["ActivityRecorder", "DEFAULT_MIN_CV_MATCH_PERCENT"]
