from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from coincraft.features.envelopes.service import envelope_service
from coincraft.models.envelope import EnvelopePeriod

router = APIRouter(prefix="/v1/envelopes", tags=["envelopes"])


class CreateEnvelopeRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: int = Field(..., gt=0, description="Per-period budget in centavos")
    period: EnvelopePeriod = EnvelopePeriod.MONTHLY
    rollover_enabled: bool = False
    icon: Optional[str] = None
    envelope_id: Optional[str] = None
    today: Optional[date] = None


class SpendRequest(BaseModel):
    amount: int = Field(..., gt=0, description="Centavos")
    today: Optional[date] = None


@router.post("", status_code=201)
def create_envelope(request: CreateEnvelopeRequest):
    envelope = envelope_service.create_envelope(
        user_id=request.user_id,
        name=request.name,
        target_amount=request.target_amount,
        period=request.period,
        rollover_enabled=request.rollover_enabled,
        icon=request.icon,
        envelope_id=request.envelope_id,
        today=request.today,
    )
    return {"envelope": envelope.to_dict()}


@router.get("")
def list_envelopes(user_id: str = Query(..., min_length=1), today: Optional[date] = Query(None)):
    """List a user's envelopes, rolling each into the current period first."""
    return {"envelopes": [e.to_dict() for e in envelope_service.list_envelopes(user_id, today)]}


@router.get("/{envelope_id}")
def get_envelope(envelope_id: str, today: Optional[date] = Query(None)):
    return {"envelope": envelope_service.get_envelope(envelope_id, today).to_dict()}


@router.post("/{envelope_id}/spend")
def record_spending(envelope_id: str, request: SpendRequest):
    envelope = envelope_service.record_spending(envelope_id, request.amount, request.today)
    return {"envelope": envelope.to_dict()}
