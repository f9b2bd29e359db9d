"""Recruitment manager score over team-aggregated activity."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from ...schemas import RecruitmentManagerAggregates
from ..scoring import ScoreResult, clamp, label_for, quality_bonus, round1


@dataclass
class RecruitmentManagerScoringConfig:
    """Point weights and caps for the recruitment manager formula."""

    submission_6h: float = 2.0
    submission_24h: float = 1.5
    submission_after_24h: float = 1.0
    interview_level_1: float = 3.0
    interview_level_2: float = 1.5
    deal: float = 7.0
    dropout_penalty: float = 5.0
    role: float = 3.0
    active_role: float = 1.0
    base_cap: float = 100.0
    negative_event_cap: float = 95.0
    apply_quality_bonus: bool = True


def recruitment_manager_table1(
    data: RecruitmentManagerAggregates,
    config: RecruitmentManagerScoringConfig,
) -> float:
    # Level 3 interviews never contribute.
    return (
        data.submissions_6h * config.submission_6h
        + data.submissions_24h * config.submission_24h
        + data.submissions_after_24h * config.submission_after_24h
        + data.interviews_level_1 * config.interview_level_1
        + data.interviews_level_2 * config.interview_level_2
        + data.total_deals * config.deal
        - data.total_dropouts * config.dropout_penalty
    )


def recruitment_manager_table2(
    data: RecruitmentManagerAggregates,
    config: RecruitmentManagerScoringConfig,
) -> float:
    return data.total_roles * config.role + data.total_active_roles * config.active_role


def compute_recruitment_manager_score(
    data: RecruitmentManagerAggregates,
    config: RecruitmentManagerScoringConfig | None = None,
) -> ScoreResult:
    """Base team score, without the CV-quality bonus."""
    config = config or RecruitmentManagerScoringConfig()
    table1 = recruitment_manager_table1(data, config)
    table2 = recruitment_manager_table2(data, config)
    raw = table1 / max(table2, 1.0) * 100

    cap = config.negative_event_cap if data.total_dropouts > 0 else config.base_cap
    capped = clamp(raw, cap)

    return ScoreResult(
        score=round1(capped),
        label=label_for(capped),
        table1_points=round1(table1),
        table2_points=table2,
        cap=cap,
    )


def apply_quality_bonus(result: ScoreResult, avg_cv_quality: float | None) -> ScoreResult:
    """Layer the team CV-quality bonus on top of a base score and relabel."""
    bonus = quality_bonus(avg_cv_quality)
    if not bonus:
        return result
    adjusted = round1(clamp(result.score + bonus, 100.0))
    return replace(
        result,
        score=adjusted,
        label=label_for(adjusted),
        cap=min(result.cap + bonus, 100.0),
        quality_bonus=bonus,
    )


class RecruitmentManagerScorer:
    """Scorer wrapper; applies the quality bonus unless disabled."""

    method = "recruitment_manager"

    def __init__(self, *, config: RecruitmentManagerScoringConfig | None = None) -> None:
        self._config = config or RecruitmentManagerScoringConfig()

    def score(
        self, aggregates: RecruitmentManagerAggregates | dict[str, Any]
    ) -> ScoreResult:
        data = RecruitmentManagerAggregates.model_validate(aggregates)
        result = compute_recruitment_manager_score(data, self._config)
        if self._config.apply_quality_bonus:
            result = apply_quality_bonus(result, data.avg_cv_quality)
        return result
