from __future__ import annotations

import pytest

from ebes.core.scorers.account_manager import (
    AccountManagerScorer,
    AccountManagerScoringConfig,
    account_manager_label,
    compute_account_manager_score,
)
from ebes.schemas import AccountManagerAggregates


def test_mixed_portfolio_scores_average():
    data = AccountManagerAggregates(
        total_roles=10,
        interview_1_count=4,
        interview_2_count=2,
        deal_roles=1,
        lost_roles=2,
        on_hold_roles=1,
        active_roles=6,
    )

    result = compute_account_manager_score(data)

    assert result.table1_points == 19.5
    assert result.table2_points == 60
    assert result.cap == 95
    assert result.score == 32.5
    assert result.label == "Average"


def test_overloaded_without_deals_is_penalised():
    data = AccountManagerAggregates(total_roles=16, active_roles=16)

    result = compute_account_manager_score(data)

    assert result.table1_points == 12.0
    assert result.score == 20.0
    assert result.cap == 100


def test_overload_penalty_skipped_when_deals_exist():
    data = AccountManagerAggregates(total_roles=16, active_roles=15, deal_roles=1)

    result = compute_account_manager_score(data)

    assert result.table1_points == 44.0


def test_losses_clamp_to_zero():
    result = compute_account_manager_score(AccountManagerAggregates(total_roles=2, lost_roles=2))

    assert result.score == 0
    assert result.label == "At Risk"


@pytest.mark.parametrize(
    ("score", "label"),
    [(100, "Excellent"), (50, "Strong"), (49.9, "Average"), (20, "Average"), (19.9, "At Risk")],
)
def test_account_manager_label_thresholds(score, label):
    assert account_manager_label(score, AccountManagerScoringConfig()) == label


def test_scorer_with_custom_divisor():
    scorer = AccountManagerScorer(config=AccountManagerScoringConfig(max_expected_points=20))

    result = scorer.score({"total_roles": 5, "deal_roles": 1, "active_roles": 4})

    assert scorer.method == "account_manager"
    assert result.table1_points == 22.0
    assert result.score == 100
    assert result.label == "Excellent"
