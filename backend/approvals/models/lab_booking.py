"""LabBooking ORM model: single-stage reservation of a lab resource."""
import enum
from sqlalchemy import Column, String, Date, Enum as SAEnum
from approvals.database import Base
from approvals.models.request_base import RequestMixin, RequestKind


class BookingStatus(str, enum.Enum):
    confirmed = "CONFIRMED"
    completed = "COMPLETED"
    cancelled = "CANCELLED"


class LabBooking(RequestMixin, Base):
    __tablename__ = "lab_bookings"

    kind = RequestKind.lab_booking

    resource_key = Column(String(200), nullable=False)
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)
    researcher_name = Column(String(150), nullable=False)
    lab_name = Column(String(200), nullable=False)
    status = Column(SAEnum(BookingStatus), nullable=False)
