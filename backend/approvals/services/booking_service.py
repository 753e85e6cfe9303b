"""Lab booking service: the conflict detector is the only gate.

CONFIRMED -> COMPLETED | CANCELLED. Reviewers may set either outcome;
an owner may only cancel their own booking.
"""
import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from approvals.config import settings
from approvals.errors import ResourceConflict, Unauthorized, ValidationError
from approvals.models.lab_booking import BookingStatus, LabBooking
from approvals.schemas.actor import Actor
from approvals.schemas.lab_booking import BookingCreate
from approvals.services import audit_trail
from approvals.services.common import atomic, bump, get_or_404, parse_status
from approvals.services.conflict_detector import first_conflict, normalize_resource_key
from approvals.services.locks import booking_key, guard_locks, request_key
from approvals.workflows import BOOKING_WORKFLOW

logger = logging.getLogger(__name__)


def normalize_time(value: str, field: str) -> str:
    """Accept ``H:MM`` or ``HH:MM`` and return zero-padded ``HH:MM``."""
    try:
        return datetime.strptime(str(value).strip(), "%H:%M").strftime("%H:%M")
    except ValueError:
        raise ValidationError(f"{field} must be a time in HH:MM format", field=field)


def get_booking(db: Session, request_id: str) -> LabBooking:
    return get_or_404(db, LabBooking, request_id, "Lab booking")


def list_bookings(
    db: Session,
    booking_date: Optional[date] = None,
    resource_key: Optional[str] = None,
    include_cancelled: bool = True,
) -> list[LabBooking]:
    query = db.query(LabBooking)
    if booking_date:
        query = query.filter(LabBooking.booking_date == booking_date)
    if not include_cancelled:
        query = query.filter(LabBooking.status != BookingStatus.cancelled)
    bookings = query.order_by(LabBooking.booking_date, LabBooking.start_time).all()
    if resource_key:
        wanted = normalize_resource_key(resource_key)
        bookings = [b for b in bookings if normalize_resource_key(b.resource_key) == wanted]
    return bookings


def book_lab(db: Session, actor: Actor, payload: BookingCreate) -> LabBooking:
    """Reserve ``[start_time, end_time)`` on a resource, refusing any overlap."""
    resource_key = (payload.resource_key or "").strip()
    if not resource_key:
        raise ValidationError("resource_key is required", field="resource_key")
    start = normalize_time(payload.start_time, "start_time")
    end = normalize_time(payload.end_time, "end_time")
    if end <= start:
        raise ValidationError("end_time must be after start_time", field="end_time")

    booking = LabBooking(
        requester_id=actor.actor_id,
        requester_name=actor.actor_name,
        resource_key=resource_key,
        booking_date=payload.booking_date,
        start_time=start,
        end_time=end,
        researcher_name=payload.researcher_name or actor.actor_name,
        lab_name=payload.lab_name or settings.DEFAULT_LAB_NAME,
        status=BookingStatus.confirmed,
        initial_status=BookingStatus.confirmed.value,
        version=1,
    )

    with guard_locks.hold(booking_key(normalize_resource_key(resource_key), payload.booking_date)), atomic(db):
        same_day = (
            db.query(LabBooking)
            .filter(
                LabBooking.booking_date == payload.booking_date,
                LabBooking.status != BookingStatus.cancelled,
            )
            .all()
        )
        clash = first_conflict(same_day, booking)
        if clash is not None:
            logger.warning(
                "Booking conflict on %r %s %s-%s with %s",
                resource_key, payload.booking_date, start, end, clash.request_id,
            )
            raise ResourceConflict(
                f"{clash.resource_key} is already booked {clash.start_time}-{clash.end_time} "
                f"on {clash.booking_date}",
                conflicting_id=clash.request_id,
                start_time=clash.start_time,
                end_time=clash.end_time,
            )

        db.add(booking)
        db.flush()
        audit_trail.record(
            db, "Lab booked", actor,
            f"{resource_key} on {payload.booking_date} {start}-{end}",
            request=booking, to_status=BookingStatus.confirmed,
        )

    db.refresh(booking)
    logger.info("Booking %s created for %r on %s %s-%s", booking.request_id, resource_key,
                payload.booking_date, start, end)
    return booking


def set_booking_status(db: Session, request_id: str, actor: Actor, new_status: str) -> LabBooking:
    target = parse_status(BookingStatus, new_status)

    with guard_locks.hold(request_key(request_id)), atomic(db):
        booking = get_booking(db, request_id)
        if not actor.is_reviewer:
            if booking.requester_id != actor.actor_id or target != BookingStatus.cancelled:
                raise Unauthorized(
                    "Owners may only cancel their own bookings",
                    request_id=request_id,
                    actor_id=actor.actor_id,
                )
        before = booking.status
        BOOKING_WORKFLOW.ensure(before, target, "set_status")
        booking.status = target
        bump(booking)
        audit_trail.record(
            db, "Booking status changed", actor,
            f"{booking.resource_key} on {booking.booking_date} {booking.start_time}-{booking.end_time}: "
            f"{before.value} -> {target.value}",
            request=booking, from_status=before, to_status=target,
        )

    db.refresh(booking)
    logger.info("Booking %s -> %s by %s", request_id, target.value, actor.actor_id)
    return booking
