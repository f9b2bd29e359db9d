"""Scoring engine components."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .aggregator import ActivityAggregator
from .engine import ScoringEngine
from .scoring import ScoreResult, cv_quality_label, label_for, quality_bonus
from .scorers import (
    AccountManagerScorer,
    RecruiterScorer,
    RecruitmentManagerScorer,
    apply_quality_bonus,
    compute_account_manager_score,
    compute_recruiter_score,
    compute_recruitment_manager_score,
)


@runtime_checkable
class Scorer(Protocol):
    """Scorer contract: one role type, aggregates in, score out."""

    method: str

    def score(self, aggregates: object) -> ScoreResult:
        """Return the capped, labelled score for the given aggregates."""


__all__ = [
    "ActivityAggregator",
    "Scorer",
    "ScoringEngine",
    "ScoreResult",
    "cv_quality_label",
    "label_for",
    "quality_bonus",
    "AccountManagerScorer",
    "RecruiterScorer",
    "RecruitmentManagerScorer",
    "apply_quality_bonus",
    "compute_account_manager_score",
    "compute_recruiter_score",
    "compute_recruitment_manager_score",
]
