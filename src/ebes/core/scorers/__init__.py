"""Per-role scoring formulas."""

from .account_manager import (
    AccountManagerScorer,
    AccountManagerScoringConfig,
    compute_account_manager_score,
)
from .recruiter import RecruiterScorer, RecruiterScoringConfig, compute_recruiter_score
from .recruitment_manager import (
    RecruitmentManagerScorer,
    RecruitmentManagerScoringConfig,
    apply_quality_bonus,
    compute_recruitment_manager_score,
)

__all__ = [
    "AccountManagerScorer",
    "AccountManagerScoringConfig",
    "compute_account_manager_score",
    "RecruiterScorer",
    "RecruiterScoringConfig",
    "compute_recruiter_score",
    "RecruitmentManagerScorer",
    "RecruitmentManagerScoringConfig",
    "apply_quality_bonus",
    "compute_recruitment_manager_score",
]
