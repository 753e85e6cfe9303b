"""Quota ledger: usage of capped resources derived from approved history.

There are no stored counters. Every answer is recomputed from the
APPROVED rows, so cancelling, editing or rejecting a request can never
leave the ledger out of step with the request history.
"""
import logging
import math
from datetime import date
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from approvals.config import settings
from approvals.models.career import CareerMovementRequest, CareerStatus, MovementKind
from approvals.models.leave import LeaveRequest, LeaveStatus, LeaveType

logger = logging.getLogger(__name__)


def casual_ceiling_days() -> int:
    return settings.CASUAL_LEAVE_CEILING_DAYS


def loan_ceiling_days() -> int:
    """Lifetime loan ceiling in days (365.25-day years, floored)."""
    return math.floor(settings.LOAN_CEILING_YEARS * 365.25)


def casual_days_used(
    db: Session,
    requester_id: str,
    year: int,
    exclude_request_id: Optional[str] = None,
) -> int:
    """Sum of ``days_count`` over approved CASUAL leave starting in ``year``."""
    query = db.query(func.coalesce(func.sum(LeaveRequest.days_count), 0)).filter(
        LeaveRequest.requester_id == requester_id,
        LeaveRequest.leave_type == LeaveType.casual,
        LeaveRequest.status == LeaveStatus.approved,
        LeaveRequest.start_date >= date(year, 1, 1),
        LeaveRequest.start_date <= date(year, 12, 31),
    )
    if exclude_request_id:
        query = query.filter(LeaveRequest.request_id != exclude_request_id)
    return int(query.scalar() or 0)


def loan_days_used(
    db: Session,
    requester_id: str,
    exclude_request_id: Optional[str] = None,
) -> int:
    """Sum of ``end - start`` over every approved LOAN, unbounded by year."""
    query = db.query(CareerMovementRequest).filter(
        CareerMovementRequest.requester_id == requester_id,
        CareerMovementRequest.movement_kind == MovementKind.loan,
        CareerMovementRequest.status == CareerStatus.approved,
    )
    if exclude_request_id:
        query = query.filter(CareerMovementRequest.request_id != exclude_request_id)
    return sum(req.duration_days for req in query.all())


def leave_balance(db: Session, requester_id: str, year: int) -> dict[str, Any]:
    used = casual_days_used(db, requester_id, year)
    ceiling = casual_ceiling_days()
    return {
        "requester_id": requester_id,
        "year": year,
        "casual_days_used": used,
        "casual_days_remaining": max(ceiling - used, 0),
        "casual_ceiling_days": ceiling,
    }


def loan_balance(db: Session, requester_id: str) -> dict[str, Any]:
    used = loan_days_used(db, requester_id)
    ceiling = loan_ceiling_days()
    return {
        "requester_id": requester_id,
        "loan_days_used": used,
        "loan_days_remaining": max(ceiling - used, 0),
        "loan_ceiling_days": ceiling,
        "loan_years_used": round(used / 365.25, 2),
    }
