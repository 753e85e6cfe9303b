"""Request bodies shared by every family's transition endpoints."""
from typing import Optional
from pydantic import BaseModel

from approvals.schemas.actor import Actor


class ActorPayload(BaseModel):
    actor: Actor


class DecisionPayload(BaseModel):
    actor: Actor
    decision: str
    notes: Optional[str] = None
