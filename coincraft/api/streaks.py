from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from coincraft.features.achievements.service import milestone_achievement
from coincraft.features.streaks.service import milestones_reached, streak_service

router = APIRouter()


class ActivityEvent(BaseModel):
    user_id: str = Field(..., min_length=1)
    activity_date: Optional[date] = None


@router.get("/v1/streaks/current")
def get_current_streak(user_id: str = Query(..., min_length=1)):
    """Return the current streak state for a user."""
    state = streak_service.get_state(user_id)
    return {
        **state.to_dict(),
        "milestones": {str(k): v for k, v in milestones_reached(state.current_streak).items()},
    }


@router.post("/v1/streaks/activity")
def record_activity(event: ActivityEvent):
    """Record a logged transaction; only the first one per day advances the streak."""
    result = streak_service.record_activity(event.user_id, event.activity_date)
    achievement = milestone_achievement(result.milestone)
    return {
        "state": result.state.to_dict(),
        "changed": result.changed,
        "milestone": result.milestone,
        "achievement": achievement.to_dict() if achievement else None,
    }
