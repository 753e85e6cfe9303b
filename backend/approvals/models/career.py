"""CareerMovementRequest ORM model: loan, secondment and transfer requests."""
import enum
from sqlalchemy import Column, String, Date, JSON, Enum as SAEnum
from approvals.database import Base
from approvals.models.request_base import RequestMixin, RequestKind


class MovementKind(str, enum.Enum):
    loan = "LOAN"
    secondment = "SECONDMENT"
    transfer = "TRANSFER"


class CareerStatus(str, enum.Enum):
    pending_dept = "PENDING_DEPT"
    pending_college = "PENDING_COLLEGE"
    pending_univ = "PENDING_UNIV"
    approved = "APPROVED"
    rejected = "REJECTED"
    cancelled = "CANCELLED"


# Department council -> college council -> university council
APPROVAL_CHAIN = (
    CareerStatus.pending_dept,
    CareerStatus.pending_college,
    CareerStatus.pending_univ,
    CareerStatus.approved,
)


class CareerMovementRequest(RequestMixin, Base):
    __tablename__ = "career_requests"

    kind = RequestKind.career_movement

    movement_kind = Column(SAEnum(MovementKind), nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    details = Column(JSON, nullable=False, default=dict)
    attachment_urls = Column(JSON, nullable=False, default=list)
    review_notes = Column(String(500), nullable=True)
    status = Column(SAEnum(CareerStatus), nullable=False)

    @property
    def duration_days(self) -> int:
        if self.start_date is None or self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days
