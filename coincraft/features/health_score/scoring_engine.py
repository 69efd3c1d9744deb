"""
Health Score Engine

Pure, deterministic computation of the financial health score.
No external calls, no side effects beyond logging a failed factor.

Scoring:
- Base (0..40): spending under income 0..15, consistent logging 0..15,
  spending trend 0..10
- Modules (0..60): envelope adherence 0..20, envelope utilization 0..10,
  goal contributions 0..20, goal on track 0..10
- Total = min(100, base + modules)

Module factors only count when the module is active and has at least one item.
A factor that fails to compute is left out; the rest of the score still returns.
"""

import math
from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from coincraft.core.logging import log_event
from coincraft.features.health_score.models import HealthLevel, HealthScore
from coincraft.models.figures import (
    AllocationFigures,
    CashFlowAggregates,
    ENVELOPE_MODULE,
    GOALS_MODULE,
    GoalFigures,
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class HealthScoreEngine:
    """Pure deterministic health scoring."""

    BASE_MAX = 40
    MODULE_MAX = 60
    TOTAL_MAX = 100

    ENVELOPE_ADHERENCE_MAX = 20
    ENVELOPE_UTILIZATION_MAX = 10
    GOAL_CONTRIBUTIONS_MAX = 20
    GOAL_ON_TRACK_MAX = 10
    GOAL_ON_TRACK_NEUTRAL = 5

    WELL_UTILIZED_RATIO = 0.8
    ON_TRACK_TOLERANCE = 0.8

    # (streak days, points), checked top-down
    LOGGING_TIERS = ((30, 15), (14, 12), (7, 9), (3, 5), (1, 2))

    @staticmethod
    def compute(
        cash_flow: CashFlowAggregates,
        envelopes: Sequence[AllocationFigures] = (),
        goals: Sequence[GoalFigures] = (),
        active_modules: Iterable[str] = (),
        today: Optional[date] = None,
        user_id: Optional[str] = None,
    ) -> HealthScore:
        """
        Compute the health score.

        Args:
            cash_flow: Month income/expenses, last month's expenses, current streak
            envelopes: Active envelope figures (used when the envelope module is active)
            goals: Active goal figures (used when the goals module is active)
            active_modules: Module ids enabled for the user
            today: Reference date for goal timelines (defaults to today, UTC)
            user_id: Only used for log correlation

        Returns:
            HealthScore with per-factor breakdown, totals and level
        """
        day = today or datetime.now(timezone.utc).date()
        modules = set(active_modules)
        engine = HealthScoreEngine

        spending_under_income = engine._score_spending_under_income(
            cash_flow.monthly_income, cash_flow.monthly_expenses
        )
        consistent_logging = engine._score_consistent_logging(cash_flow.current_streak)
        spending_trend = engine._score_spending_trend(
            cash_flow.monthly_expenses, cash_flow.last_month_expenses
        )
        base_score = min(engine.BASE_MAX, spending_under_income + consistent_logging + spending_trend)

        envelope_items = [e for e in envelopes if e.is_active]
        goal_items = [g for g in goals if g.is_active]
        envelope_on = ENVELOPE_MODULE in modules and bool(envelope_items)
        goals_on = GOALS_MODULE in modules and bool(goal_items)

        def factor(name: str, enabled: bool, fn: Callable[[], int]) -> Optional[int]:
            if not enabled:
                return None
            try:
                return fn()
            except Exception as exc:
                log_event(
                    "error",
                    "health_score.factor_failed",
                    user_id=user_id,
                    event_type="health_score.factor_failed",
                    error_code=type(exc).__name__,
                    extra={"factor": name, "error": exc},
                    exc_info=True,
                )
                return None

        envelope_adherence = factor(
            "envelope_adherence", envelope_on, lambda: engine._score_envelope_adherence(envelope_items)
        )
        envelope_utilization = factor(
            "envelope_utilization", envelope_on, lambda: engine._score_envelope_utilization(envelope_items)
        )
        goal_contributions = factor(
            "goal_contributions", goals_on, lambda: engine._score_goal_contributions(goal_items)
        )
        goal_on_track = factor(
            "goal_on_track", goals_on, lambda: engine._score_goal_on_track(goal_items, day)
        )

        module_parts = [envelope_adherence, envelope_utilization, goal_contributions, goal_on_track]
        module_score = min(engine.MODULE_MAX, sum(p for p in module_parts if p is not None))
        total_score = max(0, min(engine.TOTAL_MAX, base_score + module_score))
        level = HealthLevel.for_score(total_score)

        return HealthScore(
            spending_under_income=spending_under_income,
            consistent_logging=consistent_logging,
            spending_trend=spending_trend,
            envelope_adherence=envelope_adherence,
            envelope_utilization=envelope_utilization,
            goal_contributions=goal_contributions,
            goal_on_track=goal_on_track,
            base_score=base_score,
            module_score=module_score,
            total_score=total_score,
            level=level,
            message=level.message,
        )

    @staticmethod
    def _score_spending_under_income(income: int, expenses: int) -> int:
        """0..15. Non-decreasing in net cash flow for a given income."""
        if income <= 0:
            return 0
        if expenses <= income * 0.8:
            return 15
        if expenses <= income:
            return 10
        if expenses <= income * 1.1:
            return 5
        return 0

    @staticmethod
    def _score_consistent_logging(current_streak: int) -> int:
        for days, points in HealthScoreEngine.LOGGING_TIERS:
            if current_streak >= days:
                return points
        return 0

    @staticmethod
    def _score_spending_trend(expenses: int, last_month_expenses: int) -> int:
        """0..10 from month-over-month change in expenses; 5 when there is nothing to compare."""
        if last_month_expenses <= 0:
            return 5
        change_percent = (expenses - last_month_expenses) / last_month_expenses * 100
        if change_percent <= -10:
            return 10
        if change_percent <= 0:
            return 8
        if change_percent <= 10:
            return 5
        return 2

    @staticmethod
    def _score_envelope_adherence(envelopes: List[AllocationFigures]) -> int:
        under_budget = sum(1 for e in envelopes if e.current_amount <= (e.target_amount or 0))
        return _round_half_up(under_budget / len(envelopes) * HealthScoreEngine.ENVELOPE_ADHERENCE_MAX)

    @staticmethod
    def _score_envelope_utilization(envelopes: List[AllocationFigures]) -> int:
        def well_utilized(envelope: AllocationFigures) -> bool:
            ratio = envelope.ratio()
            return ratio is not None and 0 < ratio <= HealthScoreEngine.WELL_UTILIZED_RATIO

        count = sum(1 for e in envelopes if well_utilized(e))
        return _round_half_up(count / len(envelopes) * HealthScoreEngine.ENVELOPE_UTILIZATION_MAX)

    @staticmethod
    def _score_goal_contributions(goals: List[GoalFigures]) -> int:
        with_progress = sum(1 for g in goals if g.current_amount > 0)
        return _round_half_up(with_progress / len(goals) * HealthScoreEngine.GOAL_CONTRIBUTIONS_MAX)

    @staticmethod
    def _score_goal_on_track(goals: List[GoalFigures], today: date) -> int:
        with_deadline = [g for g in goals if g.deadline]
        if not with_deadline:
            return HealthScoreEngine.GOAL_ON_TRACK_NEUTRAL

        on_track = sum(1 for g in with_deadline if HealthScoreEngine._is_on_track(g, today))
        return _round_half_up(on_track / len(with_deadline) * HealthScoreEngine.GOAL_ON_TRACK_MAX)

    @staticmethod
    def _is_on_track(goal: GoalFigures, today: date) -> bool:
        actual = goal.ratio()
        if actual is None:
            return False

        if goal.started_on and goal.deadline > goal.started_on:
            total_days = (goal.deadline - goal.started_on).days
            elapsed_days = (today - goal.started_on).days
            expected = min(1.0, max(0.0, elapsed_days / total_days))
        else:
            expected = 1.0 if today >= goal.deadline else 0.0

        return actual >= expected * HealthScoreEngine.ON_TRACK_TOLERANCE


def compute_health_score(
    cash_flow: CashFlowAggregates,
    envelopes: Sequence[AllocationFigures] = (),
    goals: Sequence[GoalFigures] = (),
    active_modules: Iterable[str] = (),
    today: Optional[date] = None,
    user_id: Optional[str] = None,
) -> HealthScore:
    return HealthScoreEngine.compute(
        cash_flow,
        envelopes=envelopes,
        goals=goals,
        active_modules=active_modules,
        today=today,
        user_id=user_id,
    )
