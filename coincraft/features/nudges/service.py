"""
Nudge generation.

Each rule is independent: it reads the pre-aggregated figures and returns
zero or more nudges. Rules run in declaration order and the combined list is
cut to the first MAX_NUDGES entries without re-sorting. A rule that requires
a module only runs when that module is active, and a rule that raises is
logged and skipped so the others still contribute.
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional

from coincraft.core.config import settings
from coincraft.core.logging import log_event
from coincraft.core.money import format_php
from coincraft.features.nudges.models import Nudge, NudgeAction, NudgeType
from coincraft.models.figures import ActivityAggregates, ENVELOPE_MODULE, GOALS_MODULE


@dataclass(frozen=True)
class NudgeRule:
    name: str
    evaluate: Callable[[ActivityAggregates, date], List[Nudge]]
    required_module: Optional[str] = None


class NudgeGenerator:
    """Pure nudge rules over aggregate figures."""

    SPENDING_INCREASE_FACTOR = 1.2
    ENVELOPE_WARNING_RATIO = 0.8
    ENVELOPE_WARNING_LAST_DAY = 15
    GOAL_CLOSE_RATIO = 0.9
    NO_CONTRIBUTION_FIRST_DAY = 15

    def __init__(self, max_nudges: Optional[int] = None):
        self.max_nudges = settings.MAX_NUDGES if max_nudges is None else max_nudges
        self.rules: List[NudgeRule] = [
            NudgeRule("no_log_today", self._no_log_today),
            NudgeRule("spending_increase", self._spending_increase),
            NudgeRule("envelope_warning", self._envelope_warnings, ENVELOPE_MODULE),
            NudgeRule("goal_close", self._goals_close, GOALS_MODULE),
            NudgeRule("no_goal_contribution", self._no_goal_contribution, GOALS_MODULE),
        ]

    def generate(
        self,
        aggregates: ActivityAggregates,
        active_modules: Iterable[str],
        today: Optional[date] = None,
        user_id: Optional[str] = None,
    ) -> List[Nudge]:
        day = today or datetime.now(timezone.utc).date()
        modules = set(active_modules)
        nudges: List[Nudge] = []

        for rule in self.rules:
            if rule.required_module and rule.required_module not in modules:
                continue
            try:
                nudges.extend(rule.evaluate(aggregates, day))
            except Exception as exc:
                log_event(
                    "error",
                    "nudge.rule_failed",
                    user_id=user_id,
                    event_type="nudge.rule_failed",
                    error_code=type(exc).__name__,
                    extra={"rule": rule.name, "error": exc},
                    exc_info=True,
                )
            if len(nudges) >= self.max_nudges:
                break

        return nudges[: self.max_nudges]

    # Rules -------------------------------------------------------------
    def _no_log_today(self, aggregates: ActivityAggregates, today: date) -> List[Nudge]:
        if aggregates.today_transaction_count != 0:
            return []
        return [
            Nudge(
                id="no-log-today",
                type=NudgeType.INFO,
                icon="📝",
                title="You haven't logged anything today",
                description="Keep your streak going by logging a transaction!",
                action=NudgeAction(label="Log Now", href="#quick-add"),
            )
        ]

    def _spending_increase(self, aggregates: ActivityAggregates, today: date) -> List[Nudge]:
        last_week = aggregates.last_week_expenses
        this_week = aggregates.this_week_expenses
        if last_week <= 0 or this_week <= last_week * self.SPENDING_INCREASE_FACTOR:
            return []
        return [
            Nudge(
                id="spending-increase",
                type=NudgeType.WARNING,
                icon="📈",
                title="Spending is up this week",
                description=f"You've spent {format_php(this_week - last_week)} more than last week.",
                action=NudgeAction(label="View Statistics", href="/statistics"),
            )
        ]

    def _envelope_warnings(self, aggregates: ActivityAggregates, today: date) -> List[Nudge]:
        if today.day > self.ENVELOPE_WARNING_LAST_DAY:
            return []
        nudges = []
        for envelope in aggregates.envelopes:
            ratio = envelope.ratio()
            if not envelope.is_active or ratio is None or ratio < self.ENVELOPE_WARNING_RATIO:
                continue
            nudges.append(
                Nudge(
                    id=f"envelope-warning-{envelope.id}",
                    type=NudgeType.WARNING,
                    icon="⚠️",
                    title=f"{envelope.name or 'Envelope'} is running low",
                    description=f"{ratio * 100:.0f}% spent and it's only the {_ordinal(today.day)}.",
                    action=NudgeAction(label="View Envelope", href=f"/modules/envelopes/{envelope.id}"),
                )
            )
        return nudges

    def _goals_close(self, aggregates: ActivityAggregates, today: date) -> List[Nudge]:
        nudges = []
        for goal in aggregates.goals:
            ratio = goal.ratio()
            if not goal.is_active or ratio is None or not (self.GOAL_CLOSE_RATIO <= ratio < 1.0):
                continue
            remaining = goal.target_amount - goal.current_amount
            nudges.append(
                Nudge(
                    id=f"goal-close-{goal.id}",
                    type=NudgeType.CELEBRATION,
                    icon="🎉",
                    title="Almost there!",
                    description=f"You're {format_php(remaining)} away from {goal.name or 'your goal'}!",
                    action=NudgeAction(label="View Goal", href=f"/modules/goals/{goal.id}"),
                )
            )
        return nudges

    def _no_goal_contribution(self, aggregates: ActivityAggregates, today: date) -> List[Nudge]:
        has_goals = any(goal.is_active for goal in aggregates.goals)
        if (
            not has_goals
            or aggregates.month_income_transaction_count != 0
            or today.day < self.NO_CONTRIBUTION_FIRST_DAY
        ):
            return []
        return [
            Nudge(
                id="no-goal-contribution",
                type=NudgeType.INFO,
                icon="🎯",
                title="Haven't saved this month yet",
                description="Consider contributing to one of your savings goals.",
                action=NudgeAction(label="View Goals", href="/modules/goals"),
            )
        ]


def _ordinal(day: int) -> str:
    if 10 <= day % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
    return f"{day}{suffix}"


nudge_generator = NudgeGenerator()


def generate_nudges(
    aggregates: ActivityAggregates,
    active_modules: Iterable[str],
    today: Optional[date] = None,
    user_id: Optional[str] = None,
) -> List[Nudge]:
    return nudge_generator.generate(aggregates, active_modules, today=today, user_id=user_id)
