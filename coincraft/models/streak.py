from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import Optional

STREAK_MILESTONES: tuple[int, ...] = (7, 30, 100)


@dataclass(frozen=True)
class StreakState:
    """
    Logging streak for a user. Day-level, no direct DB concerns.

    longest_streak is the highest current_streak ever observed.
    """

    user_id: str
    current_streak: int = 0
    longest_streak: int = 0
    last_log_date: Optional[date] = None

    def __post_init__(self) -> None:
        if self.current_streak < 0:
            raise ValueError(f"current_streak must be non-negative: {self.current_streak}")
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) must be >= current_streak ({self.current_streak})"
            )

    def advanced(self, current_streak: int, log_date: date) -> StreakState:
        return replace(
            self,
            current_streak=current_streak,
            longest_streak=max(self.longest_streak, current_streak),
            last_log_date=log_date,
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "current_streak": self.current_streak,
            "longest_streak": self.longest_streak,
            "last_log_date": self.last_log_date.isoformat() if self.last_log_date else None,
        }


@dataclass(frozen=True)
class StreakUpdate:
    state: StreakState
    milestone: Optional[int] = None
    changed: bool = True
