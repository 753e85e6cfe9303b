"""Pydantic schemas for career-movement requests (loan, secondment, transfer)."""
from __future__ import annotations
from datetime import date, datetime
from typing import Any, Literal, Optional
from pydantic import BaseModel, Field

from approvals.models.career import MovementKind
from approvals.schemas.actor import Actor


class LoanDetails(BaseModel):
    loan_type: Literal["EXTERNAL", "INTERNAL"] = "EXTERNAL"
    request_type: Literal["NEW", "RENEWAL"] = "NEW"
    country: str = Field(min_length=1)
    institution: str = Field(min_length=1)
    college: str = Field(min_length=1)
    salary_currency: str = "USD"
    nomination_letter_url: Optional[str] = None


class SecondmentDetails(BaseModel):
    secondment_type: Literal["FULL_TIME", "PART_TIME", "OFF_HOURS"] = "PART_TIME"
    target_institution: str = Field(min_length=1)
    target_college: str = ""
    secondment_days: list[str] = []


class TransferDetails(BaseModel):
    target_university: str = Field(min_length=1)
    target_college: str = Field(min_length=1)
    target_department: str = ""
    transfer_type: Literal["VACANT_DEGREE", "WITH_DEGREE"] = "VACANT_DEGREE"


DETAIL_SCHEMAS = {
    MovementKind.loan: LoanDetails,
    MovementKind.secondment: SecondmentDetails,
    MovementKind.transfer: TransferDetails,
}


class CareerCreate(BaseModel):
    movement_kind: MovementKind
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    details: dict[str, Any] = {}
    attachment_urls: list[str] = []


class CareerUpdate(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    details: Optional[dict[str, Any]] = None
    attachment_urls: Optional[list[str]] = None


class CareerSubmit(BaseModel):
    actor: Actor
    payload: CareerCreate


class CareerEdit(BaseModel):
    actor: Actor
    payload: CareerUpdate


class AdvancePayload(BaseModel):
    actor: Actor
    target_status: str
    notes: Optional[str] = None


class CareerOut(BaseModel):
    request_id: str
    requester_id: str
    requester_name: str
    movement_kind: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    duration_days: int
    details: dict[str, Any] = {}
    attachment_urls: list[str] = []
    review_notes: Optional[str] = None
    status: str
    initial_status: str
    version: int
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class LoanBalanceOut(BaseModel):
    requester_id: str
    loan_days_used: int
    loan_days_remaining: int
    loan_ceiling_days: int
    loan_years_used: float
