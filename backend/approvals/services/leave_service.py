"""Leave request lifecycle.

PENDING_SUBSTITUTE -> PENDING_HEAD -> APPROVED | REJECTED, with CANCELLED
reachable from either pending state. Types that need no colleague
coverage start directly at PENDING_HEAD.

A substitute's decline does not end the request: it stays in
PENDING_SUBSTITUTE with the substitute cleared until the requester edits it
with a new colleague (or cancels).
"""
import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from approvals.clock import utc_now
from approvals.errors import QuotaExceeded, Unauthorized, ValidationError
from approvals.models.leave import COVERAGE_REQUIRED, LeaveRequest, LeaveStatus, LeaveType
from approvals.schemas.actor import Actor
from approvals.schemas.leave import LeaveCreate, LeaveUpdate
from approvals.services import audit_trail, quota_ledger
from approvals.services.common import atomic, bump, ensure_owner, ensure_role, get_or_404, parse_status
from approvals.services.locks import guard_locks, quota_key, request_key
from approvals.workflows import LEAVE_WORKFLOW

logger = logging.getLogger(__name__)

REQUIRED_DETAILS = {
    LeaveType.casual: ("address", "phone"),
    LeaveType.annual: ("address", "phone"),
    LeaveType.hajj: ("address", "phone"),
    LeaveType.sick: ("hospital",),
    LeaveType.scientific: ("conference_name", "conference_location"),
    LeaveType.spouse: ("spouse_name", "country"),
    LeaveType.child_care: (),
}


def days_count(start: date, end: date) -> int:
    """Inclusive day count: a leave from the 10th to the 12th is 3 days."""
    return (end - start).days + 1


def initial_status(leave_type: LeaveType, substitute_id: Optional[str]) -> LeaveStatus:
    if substitute_id and leave_type in COVERAGE_REQUIRED:
        return LeaveStatus.pending_substitute
    return LeaveStatus.pending_head


def _validate(actor: Actor, leave_type: LeaveType, start: date, end: date,
              substitute_id: Optional[str], details: dict) -> None:
    if end < start:
        raise ValidationError("end_date must be on or after start_date", field="end_date")
    if substitute_id and substitute_id == actor.actor_id:
        raise ValidationError("A requester cannot be their own substitute", field="substitute_id")
    missing = [f for f in REQUIRED_DETAILS[leave_type] if not str(details.get(f) or "").strip()]
    if missing:
        raise ValidationError(
            f"{leave_type.value} leave requires: {', '.join(missing)}",
            field="details",
            missing=missing,
        )


def _check_casual_quota(db: Session, requester_id: str, leave_type: LeaveType, start: date,
                        days: int, exclude_request_id: Optional[str] = None) -> None:
    if leave_type != LeaveType.casual:
        return
    used = quota_ledger.casual_days_used(db, requester_id, start.year, exclude_request_id)
    ceiling = quota_ledger.casual_ceiling_days()
    if used + days > ceiling:
        logger.warning(
            "Casual quota exceeded for %s in %d: used=%d requested=%d ceiling=%d",
            requester_id, start.year, used, days, ceiling,
        )
        raise QuotaExceeded(
            f"Casual leave balance for {start.year} is {max(ceiling - used, 0)} day(s); {days} requested",
            used=used,
            requested=days,
            ceiling=ceiling,
        )


def get_leave(db: Session, request_id: str) -> LeaveRequest:
    return get_or_404(db, LeaveRequest, request_id, "Leave request")


def list_leaves(
    db: Session,
    requester_id: Optional[str] = None,
    status: Optional[str] = None,
) -> list[LeaveRequest]:
    query = db.query(LeaveRequest)
    if requester_id:
        query = query.filter(LeaveRequest.requester_id == requester_id)
    if status:
        query = query.filter(LeaveRequest.status == parse_status(LeaveStatus, status))
    return query.order_by(LeaveRequest.created_at.desc()).all()


def substitute_inbox(db: Session, substitute_id: str) -> list[LeaveRequest]:
    """Requests waiting on ``substitute_id`` to accept or decline coverage."""
    return (
        db.query(LeaveRequest)
        .filter(
            LeaveRequest.substitute_id == substitute_id,
            LeaveRequest.status == LeaveStatus.pending_substitute,
        )
        .order_by(LeaveRequest.created_at)
        .all()
    )


def submit_leave(db: Session, actor: Actor, payload: LeaveCreate) -> LeaveRequest:
    """Create a leave request in its type's first gate."""
    _validate(actor, payload.leave_type, payload.start_date, payload.end_date,
              payload.substitute_id, payload.details)
    days = days_count(payload.start_date, payload.end_date)
    status = initial_status(payload.leave_type, payload.substitute_id)

    with guard_locks.hold(quota_key(actor.actor_id)), atomic(db):
        _check_casual_quota(db, actor.actor_id, payload.leave_type, payload.start_date, days)

        leave = LeaveRequest(
            requester_id=actor.actor_id,
            requester_name=actor.actor_name,
            leave_type=payload.leave_type,
            start_date=payload.start_date,
            end_date=payload.end_date,
            days_count=days,
            substitute_id=payload.substitute_id or None,
            substitute_name=payload.substitute_name if payload.substitute_id else None,
            details=dict(payload.details),
            attachment_urls=list(payload.attachment_urls),
            status=status,
            initial_status=status.value,
            version=1,
        )
        db.add(leave)
        db.flush()

        audit_trail.record(
            db, "Leave requested", actor,
            f"{payload.leave_type.value} leave for {days} day(s), {payload.start_date} to {payload.end_date}",
            request=leave, to_status=status,
        )

    db.refresh(leave)
    logger.info("Leave %s submitted by %s in %s", leave.request_id, actor.actor_id, status.value)
    return leave


def respond_as_substitute(
    db: Session,
    request_id: str,
    actor: Actor,
    accept: bool,
    reason: Optional[str] = None,
) -> LeaveRequest:
    """The named substitute accepts (-> PENDING_HEAD) or declines coverage."""
    with guard_locks.hold(request_key(request_id)), atomic(db):
        leave = get_leave(db, request_id)
        if not leave.substitute_id or leave.substitute_id != actor.actor_id:
            raise Unauthorized(
                "Only the named substitute may respond to this request",
                request_id=request_id,
                actor_id=actor.actor_id,
            )
        before = leave.status
        leave.substitute_responded_at = utc_now()

        if accept:
            LEAVE_WORKFLOW.ensure(before, LeaveStatus.pending_head, "accept_substitute")
            leave.status = LeaveStatus.pending_head
            leave.substitute_decline_reason = None
            action = "Substitute accepted"
            details = f"{actor.actor_name} agreed to cover for {leave.requester_name}"
        else:
            LEAVE_WORKFLOW.ensure(before, before, "decline_substitute")
            leave.substitute_id = None
            leave.substitute_name = None
            leave.substitute_decline_reason = reason
            action = "Substitute declined"
            details = f"{actor.actor_name} declined to cover for {leave.requester_name}"
            if reason:
                details += f": {reason}"

        bump(leave)
        audit_trail.record(db, action, actor, details, request=leave, from_status=before, to_status=leave.status)

    db.refresh(leave)
    logger.info("Leave %s: %s by %s", request_id, action.lower(), actor.actor_id)
    return leave


def decide_leave(
    db: Session,
    request_id: str,
    actor: Actor,
    decision: str,
    notes: Optional[str] = None,
) -> LeaveRequest:
    """Head approval gate: PENDING_HEAD -> APPROVED | REJECTED."""
    target = parse_status(LeaveStatus, decision, "decision")
    if target not in (LeaveStatus.approved, LeaveStatus.rejected):
        raise ValidationError("decision must be APPROVED or REJECTED", field="decision")

    with guard_locks.hold(request_key(request_id)):
        leave = get_leave(db, request_id)
        ensure_role(actor)
        with guard_locks.hold(quota_key(leave.requester_id)), atomic(db):
            before = leave.status
            LEAVE_WORKFLOW.ensure(before, target, "decide")
            if target == LeaveStatus.approved:
                # Two pending requests may each fit alone but not together
                _check_casual_quota(db, leave.requester_id, leave.leave_type, leave.start_date,
                                    leave.days_count, exclude_request_id=leave.request_id)
            leave.status = target
            leave.head_notes = notes
            bump(leave)
            verb = "approved" if target == LeaveStatus.approved else "rejected"
            audit_trail.record(
                db, f"Leave {verb}", actor,
                f"{leave.leave_type.value} leave of {leave.requester_name} {verb}"
                + (f" ({notes})" if notes else ""),
                request=leave, from_status=before, to_status=target,
            )

    db.refresh(leave)
    logger.info("Leave %s %s by %s", request_id, target.value, actor.actor_id)
    return leave


def edit_leave(db: Session, request_id: str, actor: Actor, changes: LeaveUpdate) -> LeaveRequest:
    """Requester edits a pending request; guards are re-run, status is kept.

    Once the request has left its first gate the date range is locked. The
    substitute may only change while the request awaits substitute consent,
    so a request that started at PENDING_HEAD keeps going without one.
    """
    updates = changes.model_dump(exclude_unset=True)

    with guard_locks.hold(request_key(request_id)):
        leave = get_leave(db, request_id)
        ensure_owner(leave, actor)
        LEAVE_WORKFLOW.ensure_action(leave.status, "edit")

        if updates.get("leave_type") not in (None, leave.leave_type):
            raise ValidationError("Leave type cannot be changed on edit", field="leave_type")

        start = updates.get("start_date") or leave.start_date
        end = updates.get("end_date") or leave.end_date
        substitute_id = updates["substitute_id"] if "substitute_id" in updates else leave.substitute_id
        details = updates["details"] if updates.get("details") is not None else dict(leave.details or {})

        locked = leave.status.value != leave.initial_status
        if locked and (start != leave.start_date or end != leave.end_date):
            raise ValidationError("Date range is locked once the first approval stage has passed",
                                  field="start_date")
        # A substitute named outside the consent gate would never be asked
        if substitute_id != leave.substitute_id and leave.status != LeaveStatus.pending_substitute:
            raise ValidationError("Substitute can only be changed while awaiting substitute consent",
                                  field="substitute_id")

        _validate(actor, leave.leave_type, start, end, substitute_id, details)
        if (leave.status == LeaveStatus.pending_substitute
                and leave.leave_type in COVERAGE_REQUIRED and not substitute_id):
            raise ValidationError("A substitute is required while awaiting substitute consent",
                                  field="substitute_id")

        days = days_count(start, end)
        with guard_locks.hold(quota_key(leave.requester_id)), atomic(db):
            _check_casual_quota(db, leave.requester_id, leave.leave_type, start, days,
                                exclude_request_id=leave.request_id)
            LEAVE_WORKFLOW.ensure(leave.status, leave.status, "edit")

            changed = []
            if (start, end) != (leave.start_date, leave.end_date):
                changed.append("dates")
            if substitute_id != leave.substitute_id:
                changed.append("substitute")
                leave.substitute_id = substitute_id or None
                leave.substitute_name = updates.get("substitute_name")
                leave.substitute_responded_at = None
                leave.substitute_decline_reason = None
            elif "substitute_name" in updates:
                leave.substitute_name = updates["substitute_name"]
            if updates.get("details") is not None:
                changed.append("details")
            if updates.get("attachment_urls") is not None:
                changed.append("attachments")
                leave.attachment_urls = list(updates["attachment_urls"])

            leave.start_date = start
            leave.end_date = end
            leave.days_count = days
            leave.details = details
            bump(leave)
            audit_trail.record(
                db, "Leave edited", actor,
                f"{leave.leave_type.value} leave edited ({', '.join(changed) or 'no field changes'})",
                request=leave, from_status=leave.status, to_status=leave.status,
            )

    db.refresh(leave)
    logger.info("Leave %s edited by %s", request_id, actor.actor_id)
    return leave


def cancel_leave(db: Session, request_id: str, actor: Actor) -> LeaveRequest:
    with guard_locks.hold(request_key(request_id)), atomic(db):
        leave = get_leave(db, request_id)
        ensure_owner(leave, actor)
        before = leave.status
        LEAVE_WORKFLOW.ensure(before, LeaveStatus.cancelled, "cancel")
        leave.status = LeaveStatus.cancelled
        bump(leave)
        audit_trail.record(
            db, "Leave cancelled", actor,
            f"{leave.leave_type.value} leave {leave.start_date} to {leave.end_date} cancelled",
            request=leave, from_status=before, to_status=LeaveStatus.cancelled,
        )

    db.refresh(leave)
    logger.info("Leave %s cancelled by %s", request_id, actor.actor_id)
    return leave
