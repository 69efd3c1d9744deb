"""
Nudge data models.

Nudges are recomputed on every request and never stored.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class NudgeType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    CELEBRATION = "celebration"


class NudgeAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    href: str


class Nudge(BaseModel):
    """
    Advisory message for the dashboard.

    `id` is stable per rule and subject (e.g. `envelope-warning-<envelope id>`)
    so the client can dismiss a nudge and recognise it next time.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    type: NudgeType
    icon: str
    title: str = Field(..., description="Short human-readable title")
    description: str
    action: Optional[NudgeAction] = None
