"""Leave request API routes: delegates to leave_service for every transition."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from approvals.clock import portal_today
from approvals.database import get_db
from approvals.schemas.common import ActorPayload, DecisionPayload
from approvals.schemas.leave import (
    LeaveBalanceOut, LeaveEdit, LeaveOut, LeaveSubmit, SubstituteResponse,
)
from approvals.services import leave_service, quota_ledger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=LeaveOut, status_code=status.HTTP_201_CREATED)
def submit_leave(body: LeaveSubmit, db: Session = Depends(get_db)):
    """Submit a leave request; CASUAL leave is checked against the yearly ceiling."""
    return leave_service.submit_leave(db, body.actor, body.payload)


@router.get("/", response_model=list[LeaveOut])
def list_leaves(
    requester_id: Optional[str] = None,
    status_filter: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return leave_service.list_leaves(db, requester_id=requester_id, status=status_filter)


@router.get("/substitute-inbox/{substitute_id}", response_model=list[LeaveOut])
def substitute_inbox(substitute_id: str, db: Session = Depends(get_db)):
    """Requests waiting on this colleague to accept or decline coverage."""
    return leave_service.substitute_inbox(db, substitute_id)


@router.get("/balance/{requester_id}", response_model=LeaveBalanceOut)
def leave_balance(
    requester_id: str,
    year: Optional[int] = Query(None, description="Defaults to the current year"),
    db: Session = Depends(get_db),
):
    return quota_ledger.leave_balance(db, requester_id, year or portal_today().year)


@router.get("/{request_id}", response_model=LeaveOut)
def get_leave(request_id: str, db: Session = Depends(get_db)):
    return leave_service.get_leave(db, request_id)


@router.put("/{request_id}", response_model=LeaveOut)
def edit_leave(request_id: str, body: LeaveEdit, db: Session = Depends(get_db)):
    """Edit a pending request (requester only); status is not reset."""
    return leave_service.edit_leave(db, request_id, body.actor, body.payload)


@router.post("/{request_id}/substitute-response", response_model=LeaveOut)
def respond_as_substitute(request_id: str, body: SubstituteResponse, db: Session = Depends(get_db)):
    return leave_service.respond_as_substitute(db, request_id, body.actor, body.accept, body.reason)


@router.post("/{request_id}/decision", response_model=LeaveOut)
def decide_leave(request_id: str, body: DecisionPayload, db: Session = Depends(get_db)):
    return leave_service.decide_leave(db, request_id, body.actor, body.decision, body.notes)


@router.post("/{request_id}/cancel", response_model=LeaveOut)
def cancel_leave(request_id: str, body: ActorPayload, db: Session = Depends(get_db)):
    return leave_service.cancel_leave(db, request_id, body.actor)
