"""Lab booking API routes."""
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from approvals.database import get_db
from approvals.schemas.lab_booking import BookingOut, BookingStatusUpdate, BookingSubmit
from approvals.services import booking_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=BookingOut, status_code=status.HTTP_201_CREATED)
def book_lab(body: BookingSubmit, db: Session = Depends(get_db)):
    """Book a time slot; overlapping the same resource on the same date is a 409."""
    return booking_service.book_lab(db, body.actor, body.payload)


@router.get("/", response_model=list[BookingOut])
def list_bookings(
    booking_date: Optional[date] = Query(None),
    resource_key: Optional[str] = Query(None),
    include_cancelled: bool = Query(True),
    db: Session = Depends(get_db),
):
    return booking_service.list_bookings(db, booking_date=booking_date, resource_key=resource_key,
                                         include_cancelled=include_cancelled)


@router.get("/{request_id}", response_model=BookingOut)
def get_booking(request_id: str, db: Session = Depends(get_db)):
    return booking_service.get_booking(db, request_id)


@router.post("/{request_id}/status", response_model=BookingOut)
def set_booking_status(request_id: str, body: BookingStatusUpdate, db: Session = Depends(get_db)):
    return booking_service.set_booking_status(db, request_id, body.actor, body.status)
