"""Shared score result type, labelling and CV-quality bands."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

Label = Literal["Excellent", "Strong", "Average", "At Risk"]
CvQualityLabel = Literal["Excellent", "Good", "Okay", "Poor"]
ScoredRole = Literal["recruiter", "account_manager", "recruitment_manager"]

# (minimum average CV match, bonus points), highest band first.
QUALITY_BONUS_BANDS: tuple[tuple[float, float], ...] = (
    (98.0, 5.0),
    (95.0, 4.0),
    (90.0, 2.0),
)

DEFAULT_LABEL_THRESHOLDS: dict[str, float] = {
    "Excellent": 90.0,
    "Strong": 75.0,
    "Average": 60.0,
}


@dataclass(slots=True, frozen=True)
class ScoreResult:
    """Capped, labelled score with the intermediate point totals."""

    score: float
    label: Label
    table1_points: float
    table2_points: float
    cap: float
    quality_bonus: float = 0.0

    def to_dict(self) -> dict[str, float | str]:
        return {
            "score": self.score,
            "label": self.label,
            "table1_points": self.table1_points,
            "table2_points": self.table2_points,
            "cap": self.cap,
            "quality_bonus": self.quality_bonus,
        }


def round1(value: float) -> float:
    """Round to one decimal, halves rounding up."""
    return math.floor(value * 10 + 0.5) / 10


def clamp(value: float, upper: float, lower: float = 0.0) -> float:
    return min(upper, max(lower, value))


def quality_bonus(avg_cv_quality: float | None) -> float:
    if avg_cv_quality is None:
        return 0.0
    for minimum, bonus in QUALITY_BONUS_BANDS:
        if avg_cv_quality >= minimum:
            return bonus
    return 0.0


def label_for(score: float, thresholds: dict[str, float] | None = None) -> Label:
    """Label on the recruiter / recruitment manager scale."""
    limits = thresholds or DEFAULT_LABEL_THRESHOLDS
    if score >= limits["Excellent"]:
        return "Excellent"
    if score >= limits["Strong"]:
        return "Strong"
    if score >= limits["Average"]:
        return "Average"
    return "At Risk"


def cv_quality_label(avg_cv_quality: float | None) -> CvQualityLabel:
    quality = avg_cv_quality or 0.0
    if quality >= 95:
        return "Excellent"
    if quality >= 90:
        return "Good"
    if quality >= 85:
        return "Okay"
    return "Poor"


def average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


__all__ = [
    "Label",
    "CvQualityLabel",
    "ScoredRole",
    "ScoreResult",
    "QUALITY_BONUS_BANDS",
    "round1",
    "clamp",
    "quality_bonus",
    "label_for",
    "cv_quality_label",
    "average",
]
