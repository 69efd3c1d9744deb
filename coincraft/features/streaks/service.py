from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Dict, Optional

from coincraft.core.config import settings
from coincraft.core.errors import ConflictError, NonMonotonicDateError, ValidationError
from coincraft.core.logging import log_event
from coincraft.features.streaks.store import get_streak_store
from coincraft.models.streak import STREAK_MILESTONES, StreakState, StreakUpdate


def update_streak(prior: Optional[StreakState], activity_date: date, *, user_id: Optional[str] = None) -> StreakUpdate:
    """Advance a streak for an activity logged on ``activity_date``.

    Same-day repeats are no-ops. A gap of one day extends the streak, a longer
    gap restarts it at 1, and a date before the last log raises
    NonMonotonicDateError.
    """
    if prior is None:
        if not user_id:
            raise ValidationError("user_id is required when no prior streak exists")
        prior = StreakState(user_id=user_id)

    if prior.last_log_date is None:
        state = prior.advanced(1, activity_date)
        return StreakUpdate(state=state, milestone=newly_reached_milestone(prior.current_streak, 1))

    day_gap = (activity_date - prior.last_log_date).days
    if day_gap == 0:
        return StreakUpdate(state=prior, changed=False)
    if day_gap < 0:
        raise NonMonotonicDateError(
            f"Activity date {activity_date.isoformat()} precedes last log date "
            f"{prior.last_log_date.isoformat()}"
        )

    current = prior.current_streak + 1 if day_gap == 1 else 1
    state = prior.advanced(current, activity_date)
    return StreakUpdate(state=state, milestone=newly_reached_milestone(prior.current_streak, current))


def newly_reached_milestone(old_streak: int, new_streak: int) -> Optional[int]:
    """Highest milestone crossed going from old_streak to new_streak, if any."""
    for milestone in sorted(STREAK_MILESTONES, reverse=True):
        if new_streak >= milestone and old_streak < milestone:
            return milestone
    return None


def milestones_reached(current_streak: int) -> Dict[int, bool]:
    return {milestone: current_streak >= milestone for milestone in STREAK_MILESTONES}


class StreakService:
    """Applies update_streak against the store with compare-and-set writes."""

    def __init__(self, store=None, max_retries: Optional[int] = None):
        self._store = store
        self._max_retries = settings.STATE_WRITE_RETRIES if max_retries is None else max_retries

    @property
    def store(self):
        return self._store if self._store is not None else get_streak_store()

    def get_state(self, user_id: str) -> StreakState:
        return self.store.get(user_id) or StreakState(user_id=user_id)

    def record_activity(self, user_id: str, activity_date: Optional[date] = None) -> StreakUpdate:
        day = activity_date or datetime.now(timezone.utc).date()
        store = self.store

        for attempt in range(self._max_retries + 1):
            prior = store.get(user_id)
            result = update_streak(prior, day, user_id=user_id)
            if not result.changed:
                return result

            if prior is None:
                written = store.insert(result.state)
            else:
                written = store.compare_and_set(prior.last_log_date, result.state)

            if written:
                log_event(
                    "info",
                    "streak.updated",
                    user_id=user_id,
                    event_type="streak.updated",
                    extra={
                        "current_streak": result.state.current_streak,
                        "longest_streak": result.state.longest_streak,
                        "milestone": result.milestone,
                    },
                )
                return result

            log_event(
                "warning",
                "streak.write_conflict",
                user_id=user_id,
                event_type="streak.write_conflict",
                extra={"attempt": attempt + 1},
            )

        raise ConflictError(f"Streak for user {user_id} changed concurrently; try again")


# Singleton service used by routes
streak_service = StreakService()
