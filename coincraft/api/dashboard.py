"""
Dashboard rule endpoints: nudges and the financial health score.

Both take caller-computed aggregates and return freshly computed results;
nothing here is stored.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter
from pydantic import BaseModel, Field

from coincraft.features.health_score.models import HealthScore
from coincraft.features.health_score.scoring_engine import compute_health_score
from coincraft.features.nudges.models import Nudge
from coincraft.features.nudges.service import generate_nudges
from coincraft.models.figures import ActivityAggregates, AllocationFigures, CashFlowAggregates, GoalFigures

router = APIRouter(tags=["dashboard"])


class NudgeRequest(BaseModel):
    user_id: Optional[str] = None
    aggregates: ActivityAggregates
    active_modules: List[str] = Field(default_factory=list)
    today: Optional[date] = None


class NudgeResponse(BaseModel):
    nudges: List[Nudge]


class HealthScoreRequest(BaseModel):
    user_id: Optional[str] = None
    cash_flow: CashFlowAggregates
    envelopes: List[AllocationFigures] = Field(default_factory=list)
    goals: List[GoalFigures] = Field(default_factory=list)
    active_modules: List[str] = Field(default_factory=list)
    today: Optional[date] = None


@router.post("/v1/nudges", response_model=NudgeResponse)
def post_nudges(request: NudgeRequest):
    nudges = generate_nudges(
        request.aggregates,
        request.active_modules,
        today=request.today,
        user_id=request.user_id,
    )
    return NudgeResponse(nudges=nudges)


@router.post("/v1/health-score", response_model=HealthScore)
def post_health_score(request: HealthScoreRequest):
    return compute_health_score(
        request.cash_flow,
        envelopes=request.envelopes,
        goals=request.goals,
        active_modules=request.active_modules,
        today=request.today,
        user_id=request.user_id,
    )
