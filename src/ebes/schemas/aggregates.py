"""Aggregated activity counts consumed by the scoring functions."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt


class RecruiterAggregates(BaseModel):
    """Per-recruiter counts over an optional date range."""

    submissions_6h: NonNegativeInt = 0
    submissions_24h: NonNegativeInt = 0
    submissions_after_24h: NonNegativeInt = 0
    interviews_level_1: NonNegativeInt = 0
    interviews_level_2: NonNegativeInt = 0
    deals: NonNegativeInt = 0
    accepted_dropouts: NonNegativeInt = 0
    discarded_candidates: NonNegativeInt = 0
    lost_role_candidates: NonNegativeInt = 0
    assigned_roles: NonNegativeInt = 0
    actively_worked_roles: NonNegativeInt = 0
    avg_cv_quality: float | None = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def has_negative_events(self) -> bool:
        return bool(
            self.accepted_dropouts or self.discarded_candidates or self.lost_role_candidates
        )


class AccountManagerAggregates(BaseModel):
    """Role outcome counts for one account manager."""

    total_roles: NonNegativeInt = 0
    interview_1_count: NonNegativeInt = 0
    interview_2_count: NonNegativeInt = 0
    deal_roles: NonNegativeInt = 0
    lost_roles: NonNegativeInt = 0
    no_answer_roles: NonNegativeInt = 0
    on_hold_roles: NonNegativeInt = 0
    cancelled_roles: NonNegativeInt = 0
    dropout_roles: NonNegativeInt = 0
    active_roles: NonNegativeInt = 0

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def has_negative_events(self) -> bool:
        return bool(
            self.dropout_roles or self.lost_roles or self.no_answer_roles or self.cancelled_roles
        )


class RecruitmentManagerAggregates(BaseModel):
    """Team-level counts for one recruitment manager."""

    submissions_6h: NonNegativeInt = 0
    submissions_24h: NonNegativeInt = 0
    submissions_after_24h: NonNegativeInt = 0
    interviews_level_1: NonNegativeInt = 0
    interviews_level_2: NonNegativeInt = 0
    interviews_level_3: NonNegativeInt = 0
    total_deals: NonNegativeInt = 0
    total_dropouts: NonNegativeInt = 0
    total_roles: NonNegativeInt = 0
    total_active_roles: NonNegativeInt = 0
    avg_cv_quality: float | None = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def total_interviews(self) -> int:
        return self.interviews_level_1 + self.interviews_level_2 + self.interviews_level_3
