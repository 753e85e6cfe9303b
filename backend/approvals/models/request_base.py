"""Columns shared by every request family."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Integer
from sqlalchemy.sql import func


class RequestKind(str, enum.Enum):
    leave = "LEAVE"
    career_movement = "CAREER_MOVEMENT"
    lab_booking = "LAB_BOOKING"
    research_proposal = "RESEARCH_PROPOSAL"


class RequestMixin:
    """Identity, ownership and bookkeeping columns.

    ``status`` is declared on each concrete family with its own closed enum,
    so a leave row can never hold a career-movement state.
    """

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id = Column(String(36), nullable=False, index=True)
    requester_name = Column(String(150), nullable=False)
    initial_status = Column(String(30), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    kind: RequestKind
