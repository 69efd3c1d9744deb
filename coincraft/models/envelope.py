from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import date
from enum import Enum
from typing import Optional


class EnvelopePeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    NONE = "none"


@dataclass(frozen=True)
class EnvelopeState:
    """
    Spending bucket with a recurring budget period.

    Amounts are centavos. current_amount is what has been spent in the
    active period; rollover_amount is unspent budget carried in from the
    previous one. version increases on every persisted write.
    """

    envelope_id: str
    user_id: str
    name: str
    period: EnvelopePeriod = EnvelopePeriod.MONTHLY
    period_start: Optional[date] = None
    current_amount: int = 0
    target_amount: Optional[int] = None
    rollover_enabled: bool = False
    rollover_amount: int = 0
    icon: Optional[str] = None
    is_active: bool = True
    version: int = 0

    @property
    def available_amount(self) -> Optional[int]:
        """Budget for the active period, including any rolled-over balance."""
        if not self.target_amount:
            return None
        return self.target_amount + self.rollover_amount

    @property
    def remaining_amount(self) -> Optional[int]:
        available = self.available_amount
        if available is None:
            return None
        return max(0, available - self.current_amount)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["period"] = self.period.value
        data["period_start"] = self.period_start.isoformat() if self.period_start else None
        data["available_amount"] = self.available_amount
        data["remaining_amount"] = self.remaining_amount
        return data
