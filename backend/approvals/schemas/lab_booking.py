"""Pydantic schemas for lab bookings."""
from __future__ import annotations
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel

from approvals.schemas.actor import Actor


class BookingCreate(BaseModel):
    resource_key: str
    booking_date: date
    start_time: str  # HH:MM
    end_time: str
    researcher_name: Optional[str] = None
    lab_name: Optional[str] = None


class BookingSubmit(BaseModel):
    actor: Actor
    payload: BookingCreate


class BookingStatusUpdate(BaseModel):
    actor: Actor
    status: str


class BookingOut(BaseModel):
    request_id: str
    requester_id: str
    requester_name: str
    resource_key: str
    booking_date: date
    start_time: str
    end_time: str
    researcher_name: str
    lab_name: str
    status: str
    version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
