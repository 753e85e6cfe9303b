"""Pydantic schemas for leave requests."""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Optional
from pydantic import BaseModel

from approvals.models.leave import LeaveType
from approvals.schemas.actor import Actor


class LeaveCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    substitute_id: Optional[str] = None
    substitute_name: Optional[str] = None
    # Per-type fields: address/phone, hospital, conference_name/location, spouse_name/country ...
    details: dict[str, Any] = {}
    attachment_urls: list[str] = []


class LeaveUpdate(BaseModel):
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    substitute_id: Optional[str] = None
    substitute_name: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    attachment_urls: Optional[list[str]] = None


class LeaveSubmit(BaseModel):
    actor: Actor
    payload: LeaveCreate


class LeaveEdit(BaseModel):
    actor: Actor
    payload: LeaveUpdate


class SubstituteResponse(BaseModel):
    actor: Actor
    accept: bool
    reason: Optional[str] = None


class LeaveOut(BaseModel):
    request_id: str
    requester_id: str
    requester_name: str
    leave_type: str
    start_date: date
    end_date: date
    days_count: int
    substitute_id: Optional[str] = None
    substitute_name: Optional[str] = None
    substitute_responded_at: Optional[datetime] = None
    substitute_decline_reason: Optional[str] = None
    head_notes: Optional[str] = None
    details: dict[str, Any] = {}
    attachment_urls: list[str] = []
    status: str
    initial_status: str
    version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LeaveBalanceOut(BaseModel):
    requester_id: str
    year: int
    casual_days_used: int
    casual_days_remaining: int
    casual_ceiling_days: int
