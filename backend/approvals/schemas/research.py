"""Pydantic schemas for the research plan and topic proposals."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from approvals.models.research import Degree
from approvals.schemas.actor import Actor


class ProposalCreate(BaseModel):
    title: str
    axis_id: str
    degree: Degree = Degree.msc
    justification: str = ""
    applied_goal: str = ""
    student_name: Optional[str] = None


class ProposalUpdate(BaseModel):
    title: Optional[str] = None
    axis_id: Optional[str] = None
    degree: Optional[Degree] = None
    justification: Optional[str] = None
    applied_goal: Optional[str] = None
    student_name: Optional[str] = None


class ProposalSubmit(BaseModel):
    actor: Actor
    payload: ProposalCreate


class ProposalEdit(BaseModel):
    actor: Actor
    payload: ProposalUpdate


class AxisCreate(BaseModel):
    actor: Actor
    title: str


class TopicStatusUpdate(BaseModel):
    actor: Actor
    status: str


class ProposalOut(BaseModel):
    request_id: str
    requester_id: str
    requester_name: str
    title: str
    axis_id: str
    degree: str
    justification: str
    applied_goal: str
    student_name: Optional[str] = None
    review_notes: Optional[str] = None
    status: str
    version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProposalResult(BaseModel):
    """A saved proposal plus advisory near-duplicate titles."""
    proposal: ProposalOut
    similar_titles: list[str] = []


class TopicOut(BaseModel):
    topic_id: str
    axis_id: str
    title: str
    status: str
    proposal_id: Optional[str] = None

    model_config = {"from_attributes": True}


class AxisOut(BaseModel):
    axis_id: str
    title: str
    topics: list[TopicOut] = []

    model_config = {"from_attributes": True}


class SimilarTitlesOut(BaseModel):
    candidate: str
    similar_titles: list[str]
