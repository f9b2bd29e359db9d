"""Activity aggregator: turns stored activity into scoring inputs."""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime
from typing import Iterable

from ..errors import NotFoundError
from ..schemas import (
    AccountManagerAggregates,
    ActivityEntry,
    RecruiterAggregates,
    RecruitmentManagerAggregates,
    Role,
)
from ..store import Store
from .scoring import average


def _date_of(value: datetime | date | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def _within(value: date | None, start: date | None, end: date | None) -> bool:
    if start is None and end is None:
        return True
    if value is None:
        return False
    return (start is None or value >= start) and (end is None or value <= end)


def _cv_average(entries: Iterable[ActivityEntry]) -> float | None:
    percents = [
        entry.cv_match_percent
        for entry in entries
        if entry.entry_type == "submission" and entry.cv_match_percent is not None
    ]
    return average(percents) if percents else None


class ActivityAggregator:
    """Read-side counts for each scored role type."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def recruiter_aggregates(
        self,
        recruiter_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        client_id: int | None = None,
    ) -> RecruiterAggregates:
        entries = self._store.list_entries(
            recruiter_ids=[recruiter_id], start=start, end=end, client_id=client_id
        )
        timings = Counter(e.submission_timing for e in entries if e.entry_type == "submission")
        levels = Counter(e.interview_level for e in entries if e.entry_type == "interview")

        accepted_dropouts = sum(
            1
            for entry in entries
            if entry.entry_type == "dropout"
            and entry.role_id is not None
            and self._latest_decision(entry.role_id, recruiter_id) == "accept"
        )

        associations = [
            item
            for item in self._store.list_associations(recruiter_id=recruiter_id)
            if item.is_discarded and _within(item.submitted_on, start, end)
        ]
        # Role-closure discards (on_hold, cancelled, deal) carry no penalty.
        discarded = {
            item.candidate_id
            for item in associations
            if not item.is_lost_role and not item.is_role_closed
        }
        lost = {item.candidate_id for item in associations if item.is_lost_role}

        assigned = self._store.assigned_role_ids(recruiter_id)
        worked = {e.role_id for e in entries if e.role_id is not None} - assigned

        return RecruiterAggregates(
            submissions_6h=timings["6h"],
            submissions_24h=timings["24h"],
            submissions_after_24h=timings["after_24h"],
            interviews_level_1=levels[1],
            interviews_level_2=levels[2],
            deals=sum(1 for e in entries if e.entry_type == "deal"),
            accepted_dropouts=accepted_dropouts,
            discarded_candidates=len(discarded),
            lost_role_candidates=len(lost),
            assigned_roles=len(assigned),
            actively_worked_roles=len(worked),
            avg_cv_quality=_cv_average(entries),
        )

    def account_manager_aggregates(
        self,
        am_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> AccountManagerAggregates:
        roles = [
            role
            for role in self._store.list_roles(account_manager_id=am_id)
            if _within(_date_of(role.created_at), start, end)
        ]
        statuses = Counter(role.status for role in roles)
        interviews = Counter(
            entry.interview_level
            for entry in self._store.list_entries(role_ids=[role.id for role in roles])
            if entry.entry_type == "interview"
        )
        return AccountManagerAggregates(
            total_roles=len(roles),
            interview_1_count=interviews[1],
            interview_2_count=interviews[2],
            deal_roles=statuses["deal"],
            lost_roles=statuses["lost"],
            no_answer_roles=statuses["no_answer"],
            on_hold_roles=statuses["on_hold"],
            cancelled_roles=statuses["cancelled"],
            dropout_roles=statuses["dropout"],
            active_roles=statuses["active"],
        )

    def recruitment_manager_aggregates(
        self,
        rm_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> RecruitmentManagerAggregates:
        manager = self._store.get_user(rm_id)
        if manager is None:
            raise NotFoundError.for_entity("user", rm_id)
        team_ids = set(manager.team_ids)

        entries = [
            entry
            for entry in self._store.list_entries(start=start, end=end)
            if entry.team_id in team_ids
        ]
        timings = Counter(e.submission_timing for e in entries if e.entry_type == "submission")
        levels = Counter(e.interview_level for e in entries if e.entry_type == "interview")
        kinds = Counter(e.entry_type for e in entries)

        roles: list[Role] = [
            role
            for role in self._store.list_roles(team_ids=team_ids)
            if _within(_date_of(role.created_at), start, end)
        ]
        return RecruitmentManagerAggregates(
            submissions_6h=timings["6h"],
            submissions_24h=timings["24h"],
            submissions_after_24h=timings["after_24h"],
            interviews_level_1=levels[1],
            interviews_level_2=levels[2],
            interviews_level_3=levels[3],
            total_deals=kinds["deal"],
            total_dropouts=kinds["dropout"],
            total_roles=len(roles),
            total_active_roles=sum(1 for role in roles if role.is_active),
            avg_cv_quality=_cv_average(entries),
        )

    def _latest_decision(self, role_id: int, recruiter_id: int) -> str | None:
        requests = self._store.list_dropouts(role_id=role_id, recruiter_id=recruiter_id)
        return requests[-1].am_decision if requests else None
