"""LeaveRequest ORM model: peer substitute consent, then head approval."""
import enum
from sqlalchemy import Column, String, Date, DateTime, Integer, JSON, Enum as SAEnum
from approvals.database import Base
from approvals.models.request_base import RequestMixin, RequestKind


class LeaveType(str, enum.Enum):
    casual = "CASUAL"
    annual = "ANNUAL"
    sick = "SICK"
    scientific = "SCIENTIFIC"
    spouse = "SPOUSE"
    child_care = "CHILD_CARE"
    hajj = "HAJJ"


# Types whose teaching load must be covered by a colleague
COVERAGE_REQUIRED = frozenset({LeaveType.casual, LeaveType.annual, LeaveType.scientific, LeaveType.hajj})


class LeaveStatus(str, enum.Enum):
    pending_substitute = "PENDING_SUBSTITUTE"
    pending_head = "PENDING_HEAD"
    approved = "APPROVED"
    rejected = "REJECTED"
    cancelled = "CANCELLED"


class LeaveRequest(RequestMixin, Base):
    __tablename__ = "leave_requests"

    kind = RequestKind.leave

    leave_type = Column(SAEnum(LeaveType), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days_count = Column(Integer, nullable=False)
    substitute_id = Column(String(36), nullable=True, index=True)
    substitute_name = Column(String(150), nullable=True)
    substitute_responded_at = Column(DateTime(timezone=True), nullable=True)
    substitute_decline_reason = Column(String(500), nullable=True)
    head_notes = Column(String(500), nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    attachment_urls = Column(JSON, nullable=False, default=list)
    status = Column(SAEnum(LeaveStatus), nullable=False)
