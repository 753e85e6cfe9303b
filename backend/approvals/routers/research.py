"""Research plan and proposal API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from approvals.database import get_db
from approvals.schemas.common import ActorPayload, DecisionPayload
from approvals.schemas.research import (
    AxisCreate, AxisOut, ProposalEdit, ProposalOut, ProposalResult, ProposalSubmit,
    SimilarTitlesOut, TopicOut, TopicStatusUpdate,
)
from approvals.services import research_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/plan", response_model=list[AxisOut])
def get_plan(db: Session = Depends(get_db)):
    return research_service.get_plan(db)


@router.post("/plan/axes", response_model=AxisOut, status_code=status.HTTP_201_CREATED)
def create_axis(body: AxisCreate, db: Session = Depends(get_db)):
    return research_service.create_axis(db, body.actor, body.title)


@router.post("/plan/topics/{topic_id}/status", response_model=TopicOut)
def set_topic_status(topic_id: str, body: TopicStatusUpdate, db: Session = Depends(get_db)):
    return research_service.set_topic_status(db, topic_id, body.actor, body.status)


@router.get("/similar", response_model=SimilarTitlesOut)
def similar_titles(title: str = Query(...), db: Session = Depends(get_db)):
    """Advisory near-duplicate check against the plan's topic titles."""
    return {"candidate": title, "similar_titles": research_service.similar_titles(db, title)}


@router.post("/proposals", response_model=ProposalResult, status_code=status.HTTP_201_CREATED)
def submit_proposal(body: ProposalSubmit, db: Session = Depends(get_db)):
    proposal, warnings = research_service.submit_proposal(db, body.actor, body.payload)
    return {"proposal": proposal, "similar_titles": warnings}


@router.get("/proposals", response_model=list[ProposalOut])
def list_proposals(
    requester_id: Optional[str] = None,
    status_filter: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return research_service.list_proposals(db, requester_id=requester_id, status=status_filter)


@router.get("/proposals/{request_id}", response_model=ProposalOut)
def get_proposal(request_id: str, db: Session = Depends(get_db)):
    return research_service.get_proposal(db, request_id)


@router.put("/proposals/{request_id}", response_model=ProposalResult)
def edit_proposal(request_id: str, body: ProposalEdit, db: Session = Depends(get_db)):
    proposal, warnings = research_service.edit_proposal(db, request_id, body.actor, body.payload)
    return {"proposal": proposal, "similar_titles": warnings}


@router.post("/proposals/{request_id}/decision", response_model=ProposalOut)
def decide_proposal(request_id: str, body: DecisionPayload, db: Session = Depends(get_db)):
    return research_service.decide_proposal(db, request_id, body.actor, body.decision, body.notes)


@router.post("/proposals/{request_id}/cancel", response_model=ProposalOut)
def cancel_proposal(request_id: str, body: ActorPayload, db: Session = Depends(get_db)):
    return research_service.cancel_proposal(db, request_id, body.actor)
