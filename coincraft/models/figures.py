"""
Pre-aggregated figures consumed by the nudge and health score rules.

Callers compute these from their own queries; amounts are centavos.
"""

from datetime import date
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field

ENVELOPE_MODULE = "envelope"
GOALS_MODULE = "goals"


class AllocationFigures(BaseModel):
    """Current vs target amount for one envelope or goal."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    name: str = ""
    current_amount: int = 0
    target_amount: Optional[int] = Field(default=None, description="Missing or zero means no ratio is available")
    is_active: bool = True

    def ratio(self) -> Optional[float]:
        """current / target, or None when there is no usable target."""
        if not self.target_amount or self.target_amount <= 0:
            return None
        return self.current_amount / self.target_amount


class GoalFigures(AllocationFigures):
    deadline: Optional[date] = None
    started_on: Optional[date] = None


class ActivityAggregates(BaseModel):
    """Rollups the nudge rules evaluate."""

    model_config = ConfigDict(frozen=True)

    today_transaction_count: int = Field(0, ge=0)
    this_week_expenses: int = Field(0, ge=0)
    last_week_expenses: int = Field(0, ge=0)
    month_income_transaction_count: int = Field(0, ge=0)
    envelopes: List[AllocationFigures] = Field(default_factory=list)
    goals: List[GoalFigures] = Field(default_factory=list)


class CashFlowAggregates(BaseModel):
    """Month-level cash flow plus the logging streak, for the base health score."""

    model_config = ConfigDict(frozen=True)

    monthly_income: int = Field(0, ge=0)
    monthly_expenses: int = Field(0, ge=0)
    last_month_expenses: int = Field(0, ge=0)
    current_streak: int = Field(0, ge=0)

    @property
    def net_cash_flow(self) -> int:
        return self.monthly_income - self.monthly_expenses
