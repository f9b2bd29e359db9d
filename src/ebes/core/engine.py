"""Scoring engine dispatching aggregates to the scorer for each role type."""

from __future__ import annotations

from typing import Any, Iterable

import structlog

from .scoring import ScoreResult, ScoredRole


class ScoringEngine:
    """Coordinates the per-role scorers behind a single entry point."""

    def __init__(self, scorers: Iterable[Any]) -> None:
        self._scorers = {scorer.method: scorer for scorer in scorers}
        self._logger = structlog.get_logger(__name__)

    def roles(self) -> list[str]:
        return list(self._scorers.keys())

    def score(
        self,
        role_type: ScoredRole | str,
        aggregates: Any,
        *,
        person_id: int | str | None = None,
    ) -> ScoreResult:
        try:
            scorer = self._scorers[role_type]
        except KeyError as exc:
            raise KeyError(f"Unsupported role type: {role_type!r}") from exc

        result = scorer.score(aggregates)
        self._logger.debug(
            "score.computed",
            role_type=role_type,
            person_id=person_id,
            score=result.score,
            label=result.label,
            table1_points=result.table1_points,
            table2_points=result.table2_points,
        )
        return result
