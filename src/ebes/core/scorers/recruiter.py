"""Recruiter score: activity points over role-engagement points."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...schemas import RecruiterAggregates
from ..scoring import ScoreResult, clamp, label_for, quality_bonus, round1


@dataclass
class RecruiterScoringConfig:
    """Point weights and caps for the recruiter formula."""

    submission_6h: float = 2.0
    submission_24h: float = 1.5
    submission_after_24h: float = 1.0
    interview_level_1: float = 3.0
    interview_level_2: float = 2.0
    deal: float = 7.0
    dropout_penalty: float = 5.0
    dropout_penalty_cap: float = 20.0
    discard_penalty: float = 1.0
    discard_penalty_cap: float = 10.0
    lost_role_penalty: float = 1.0
    lost_role_penalty_cap: float = 10.0
    assigned_role: float = 3.0
    actively_worked_role: float = 2.0
    base_cap: float = 100.0
    negative_event_cap: float = 95.0


def recruiter_table1(data: RecruiterAggregates, config: RecruiterScoringConfig) -> float:
    points = (
        data.submissions_6h * config.submission_6h
        + data.submissions_24h * config.submission_24h
        + data.submissions_after_24h * config.submission_after_24h
        + data.interviews_level_1 * config.interview_level_1
        + data.interviews_level_2 * config.interview_level_2
        + data.deals * config.deal
    )
    points -= min(data.accepted_dropouts * config.dropout_penalty, config.dropout_penalty_cap)
    points -= min(data.discarded_candidates * config.discard_penalty, config.discard_penalty_cap)
    points -= min(
        data.lost_role_candidates * config.lost_role_penalty, config.lost_role_penalty_cap
    )
    return points


def recruiter_table2(data: RecruiterAggregates, config: RecruiterScoringConfig) -> float:
    # Actively worked roles exclude formally assigned ones upstream.
    return (
        data.assigned_roles * config.assigned_role
        + data.actively_worked_roles * config.actively_worked_role
    )


def compute_recruiter_score(
    data: RecruiterAggregates,
    config: RecruiterScoringConfig | None = None,
) -> ScoreResult:
    """Score a recruiter from aggregated activity counts."""
    config = config or RecruiterScoringConfig()
    table1 = recruiter_table1(data, config)
    table2 = recruiter_table2(data, config)
    raw = table1 / max(table2, 1.0) * 100

    base_cap = config.negative_event_cap if data.has_negative_events else config.base_cap
    bonus = quality_bonus(data.avg_cv_quality)
    cap = min(base_cap + bonus, 100.0)
    capped = clamp(raw, cap)

    return ScoreResult(
        score=round1(capped),
        label=label_for(capped),
        table1_points=round1(table1),
        table2_points=table2,
        cap=cap,
        quality_bonus=bonus,
    )


class RecruiterScorer:
    """Scorer wrapper binding the recruiter formula to a configuration."""

    method = "recruiter"

    def __init__(self, *, config: RecruiterScoringConfig | None = None) -> None:
        self._config = config or RecruiterScoringConfig()

    def score(self, aggregates: RecruiterAggregates | dict[str, Any]) -> ScoreResult:
        data = RecruiterAggregates.model_validate(aggregates)
        return compute_recruiter_score(data, self._config)
