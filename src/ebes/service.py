"""Score service: aggregate stored activity and score it."""

from __future__ import annotations

from datetime import date

from .core.aggregator import ActivityAggregator
from .core.engine import ScoringEngine
from .core.scoring import ScoreResult
from .history import ScoreHistoryRecorder
from .schemas import ComponentTotals


class ScoreService:
    """Single entry point for computing a person's current score."""

    def __init__(
        self,
        *,
        aggregator: ActivityAggregator,
        engine: ScoringEngine,
        history: ScoreHistoryRecorder,
    ) -> None:
        self._aggregator = aggregator
        self._engine = engine
        self._history = history

    def recruiter_score(
        self,
        recruiter_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        client_id: int | None = None,
    ) -> ScoreResult:
        aggregates = self._aggregator.recruiter_aggregates(
            recruiter_id, start=start, end=end, client_id=client_id
        )
        return self._engine.score("recruiter", aggregates, person_id=recruiter_id)

    def account_manager_score(
        self,
        am_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
    ) -> ScoreResult:
        aggregates = self._aggregator.account_manager_aggregates(am_id, start=start, end=end)
        return self._engine.score("account_manager", aggregates, person_id=am_id)

    def recruitment_manager_score(
        self,
        rm_id: int,
        *,
        start: date | None = None,
        end: date | None = None,
        snapshot: bool = False,
    ) -> ScoreResult:
        aggregates = self._aggregator.recruitment_manager_aggregates(rm_id, start=start, end=end)
        result = self._engine.score("recruitment_manager", aggregates, person_id=rm_id)
        if snapshot:
            self._history.record(
                rm_id,
                result,
                ComponentTotals(
                    total_roles=aggregates.total_roles,
                    total_deals=aggregates.total_deals,
                    total_interviews=aggregates.total_interviews,
                    total_dropouts=aggregates.total_dropouts,
                ),
            )
        return result


__all__ = ["ScoreService"]
