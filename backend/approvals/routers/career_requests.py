"""Career-movement API routes (loan, secondment, transfer)."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from approvals.database import get_db
from approvals.schemas.career import AdvancePayload, CareerEdit, CareerOut, CareerSubmit, LoanBalanceOut
from approvals.schemas.common import ActorPayload, DecisionPayload
from approvals.services import career_service, quota_ledger

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=CareerOut, status_code=status.HTTP_201_CREATED)
def submit_career(body: CareerSubmit, db: Session = Depends(get_db)):
    """Submit a request; loans are checked against the lifetime ceiling."""
    return career_service.submit_career(db, body.actor, body.payload)


@router.get("/", response_model=list[CareerOut])
def list_career(
    requester_id: Optional[str] = None,
    status_filter: Optional[str] = None,
    movement_kind: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return career_service.list_career(db, requester_id=requester_id, status=status_filter,
                                      movement_kind=movement_kind)


@router.get("/loan-balance/{requester_id}", response_model=LoanBalanceOut)
def loan_balance(requester_id: str, db: Session = Depends(get_db)):
    return quota_ledger.loan_balance(db, requester_id)


@router.get("/{request_id}", response_model=CareerOut)
def get_career(request_id: str, db: Session = Depends(get_db)):
    return career_service.get_career(db, request_id)


@router.put("/{request_id}", response_model=CareerOut)
def edit_career(request_id: str, body: CareerEdit, db: Session = Depends(get_db)):
    return career_service.edit_career(db, request_id, body.actor, body.payload)


@router.post("/{request_id}/decision", response_model=CareerOut)
def decide_career(request_id: str, body: DecisionPayload, db: Session = Depends(get_db)):
    """Sequential council decision: one stage forward, or reject."""
    return career_service.decide_career(db, request_id, body.actor, body.decision, body.notes)


@router.post("/{request_id}/advance", response_model=CareerOut)
def advance_career(request_id: str, body: AdvancePayload, db: Session = Depends(get_db)):
    """Administrative override: jump to any stage (ADMIN only)."""
    return career_service.advance_career(db, request_id, body.actor, body.target_status, body.notes)


@router.post("/{request_id}/cancel", response_model=CareerOut)
def cancel_career(request_id: str, body: ActorPayload, db: Session = Depends(get_db)):
    return career_service.cancel_career(db, request_id, body.actor)
