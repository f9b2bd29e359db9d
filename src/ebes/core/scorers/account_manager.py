"""Account manager score: a single point total over a fixed divisor."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...schemas import AccountManagerAggregates
from ..scoring import Label, ScoreResult, clamp, round1


@dataclass
class AccountManagerScoringConfig:
    """Point weights, penalties and label thresholds for account managers."""

    role: float = 2.0
    interview_1: float = 2.0
    interview_2: float = 2.0
    deal: float = 12.0
    lost_penalty: float = 12.0
    no_answer_penalty: float = 10.0
    cancelled_penalty: float = 10.0
    on_hold_penalty: float = 0.5
    dropout_penalty: float = 5.0
    overload_active_roles: int = 15
    overload_penalty: float = 20.0
    max_expected_points: float = 60.0
    base_cap: float = 100.0
    negative_event_cap: float = 95.0
    excellent_threshold: float = 100.0
    strong_threshold: float = 50.0
    at_risk_threshold: float = 20.0


def account_manager_points(
    data: AccountManagerAggregates,
    config: AccountManagerScoringConfig,
) -> float:
    points = (
        data.total_roles * config.role
        + data.interview_1_count * config.interview_1
        + data.interview_2_count * config.interview_2
        + data.deal_roles * config.deal
        - data.lost_roles * config.lost_penalty
        - data.no_answer_roles * config.no_answer_penalty
        - data.cancelled_roles * config.cancelled_penalty
        - data.on_hold_roles * config.on_hold_penalty
        - data.dropout_roles * config.dropout_penalty
    )
    # Overloaded but unproductive.
    if data.active_roles > config.overload_active_roles and data.deal_roles == 0:
        points -= config.overload_penalty
    return points


def account_manager_label(score: float, config: AccountManagerScoringConfig) -> Label:
    # Thresholds sit on a different scale than the recruiter labels.
    if score >= config.excellent_threshold:
        return "Excellent"
    if score >= config.strong_threshold:
        return "Strong"
    if score < config.at_risk_threshold:
        return "At Risk"
    return "Average"


def compute_account_manager_score(
    data: AccountManagerAggregates,
    config: AccountManagerScoringConfig | None = None,
) -> ScoreResult:
    """Score an account manager from role outcome counts."""
    config = config or AccountManagerScoringConfig()
    points = account_manager_points(data, config)
    divisor = max(config.max_expected_points, 1.0)
    base = points / divisor * 100

    cap = config.negative_event_cap if data.has_negative_events else config.base_cap
    capped = clamp(base, cap)

    return ScoreResult(
        score=round1(capped),
        label=account_manager_label(capped, config),
        table1_points=round1(points),
        table2_points=divisor,
        cap=cap,
    )


class AccountManagerScorer:
    """Scorer wrapper binding the account manager formula to a configuration."""

    method = "account_manager"

    def __init__(self, *, config: AccountManagerScoringConfig | None = None) -> None:
        self._config = config or AccountManagerScoringConfig()

    def score(self, aggregates: AccountManagerAggregates | dict[str, Any]) -> ScoreResult:
        data = AccountManagerAggregates.model_validate(aggregates)
        return compute_account_manager_score(data, self._config)
