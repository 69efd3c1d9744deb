"""
Achievement catalog and award rules.

The catalog is static. evaluate_achievements returns entries whose condition
holds for the supplied context and that the user has not earned yet, in
catalog order. Persisting awards is the caller's job.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from coincraft.core.logging import log_event


class AchievementContext(BaseModel):
    """Aggregates the award rules read. Amounts are centavos."""

    model_config = ConfigDict(frozen=True)

    transaction_count: int = Field(0, ge=0)
    streak_count: int = Field(0, ge=0)
    goals_completed: int = Field(0, ge=0)
    modules_enabled: int = Field(0, ge=0)
    monthly_income: int = Field(0, ge=0)
    monthly_expenses: int = Field(0, ge=0)
    last_month_expenses: int = Field(0, ge=0)
    all_envelopes_under_budget: bool = False


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    icon: str
    category: str
    requirement: str
    check: Callable[[AchievementContext], bool]

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "category": self.category,
            "requirement": self.requirement,
        }


def _saves_a_fifth(ctx: AchievementContext) -> bool:
    if ctx.monthly_income <= 0:
        return False
    return (ctx.monthly_income - ctx.monthly_expenses) / ctx.monthly_income >= 0.2


ACHIEVEMENTS: List[Achievement] = [
    Achievement("first-steps", "First Steps", "Log your first transaction", "🎯", "streak",
                "Log 1 transaction", lambda c: c.transaction_count >= 1),
    Achievement("consistency", "Consistency", "Keep a 7-day logging streak", "🔥", "streak",
                "7-day streak", lambda c: c.streak_count >= 7),
    Achievement("habit-formed", "Habit Formed", "Keep a 30-day logging streak", "⭐", "streak",
                "30-day streak", lambda c: c.streak_count >= 30),
    Achievement("legendary", "Legendary", "Keep a 100-day logging streak", "👑", "streak",
                "100-day streak", lambda c: c.streak_count >= 100),
    Achievement("goal-getter", "Goal Getter", "Complete your first savings goal", "🎯", "savings",
                "Complete 1 goal", lambda c: c.goals_completed >= 1),
    Achievement("category-king", "Category King", "Categorize 100 transactions", "📊", "milestone",
                "Categorize 100 transactions", lambda c: c.transaction_count >= 100),
    Achievement("multi-crafter", "Multi-Crafter", "Enable 3 or more modules", "🎨", "milestone",
                "Enable 3+ modules", lambda c: c.modules_enabled >= 3),
    Achievement("penny-pincher", "Penny Pincher", "Spend less than last month", "💰", "savings",
                "Reduce spending month-over-month",
                lambda c: c.last_month_expenses > 0 and c.monthly_expenses < c.last_month_expenses),
    Achievement("big-saver", "Big Saver", "Save more than 20% of income in a month", "💎", "savings",
                "Save 20%+ of monthly income", _saves_a_fifth),
    Achievement("budget-keeper", "Budget Keeper", "Stay within all envelopes for a full month", "📋", "budget",
                "Stay within budget for 1 month", lambda c: c.all_envelopes_under_budget),
]

_BY_ID = {a.id: a for a in ACHIEVEMENTS}

_MILESTONE_ACHIEVEMENTS = {7: "consistency", 30: "habit-formed", 100: "legendary"}


def get_achievement(achievement_id: str) -> Optional[Achievement]:
    return _BY_ID.get(achievement_id)


def milestone_achievement(milestone: Optional[int]) -> Optional[Achievement]:
    """Achievement unlocked by a streak milestone (7, 30, 100)."""
    if milestone is None:
        return None
    achievement_id = _MILESTONE_ACHIEVEMENTS.get(milestone)
    return _BY_ID.get(achievement_id) if achievement_id else None


def evaluate_achievements(
    context: AchievementContext,
    earned_ids: Iterable[str] = (),
    user_id: Optional[str] = None,
) -> List[Achievement]:
    earned = set(earned_ids)
    awarded: List[Achievement] = []
    for achievement in ACHIEVEMENTS:
        if achievement.id in earned:
            continue
        try:
            if achievement.check(context):
                awarded.append(achievement)
        except Exception as exc:
            log_event(
                "error",
                "achievement.check_failed",
                user_id=user_id,
                event_type="achievement.check_failed",
                error_code=type(exc).__name__,
                extra={"achievement_id": achievement.id, "error": exc},
                exc_info=True,
            )
    if awarded:
        log_event(
            "info",
            "achievement.awarded",
            user_id=user_id,
            event_type="achievement.awarded",
            extra={"achievement_ids": [a.id for a in awarded]},
        )
    return awarded
