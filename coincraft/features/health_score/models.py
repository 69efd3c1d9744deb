"""
Financial health score models.

Score bands (inclusive lower bounds): poor 0, fair 40, good 60, excellent 80.
HealthLevel.for_score is the only place these cutpoints live.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class HealthLevel(str, Enum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"

    @classmethod
    def for_score(cls, total_score: int) -> "HealthLevel":
        if total_score >= LEVEL_CUTPOINTS[cls.EXCELLENT]:
            return cls.EXCELLENT
        if total_score >= LEVEL_CUTPOINTS[cls.GOOD]:
            return cls.GOOD
        if total_score >= LEVEL_CUTPOINTS[cls.FAIR]:
            return cls.FAIR
        return cls.POOR

    @property
    def message(self) -> str:
        return LEVEL_MESSAGES[self]


LEVEL_CUTPOINTS = {
    HealthLevel.POOR: 0,
    HealthLevel.FAIR: 40,
    HealthLevel.GOOD: 60,
    HealthLevel.EXCELLENT: 80,
}

LEVEL_MESSAGES = {
    HealthLevel.POOR: "Let's work on building better habits.",
    HealthLevel.FAIR: "There's room for improvement.",
    HealthLevel.GOOD: "You're doing well. Keep it up!",
    HealthLevel.EXCELLENT: "Your finances are in great shape!",
}


class HealthScore(BaseModel):
    """Score breakdown. Module factors are None when their module is inactive or empty."""

    model_config = ConfigDict(frozen=True)

    spending_under_income: int = Field(..., ge=0, le=15)
    consistent_logging: int = Field(..., ge=0, le=15)
    spending_trend: int = Field(..., ge=0, le=10)

    envelope_adherence: Optional[int] = Field(None, ge=0, le=20)
    envelope_utilization: Optional[int] = Field(None, ge=0, le=10)
    goal_contributions: Optional[int] = Field(None, ge=0, le=20)
    goal_on_track: Optional[int] = Field(None, ge=0, le=10)

    base_score: int = Field(..., ge=0, le=40)
    module_score: int = Field(..., ge=0, le=60)
    total_score: int = Field(..., ge=0, le=100)

    level: HealthLevel
    message: str
