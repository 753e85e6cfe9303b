"""Career-movement lifecycle (loan, secondment, transfer).

PENDING_DEPT -> PENDING_COLLEGE -> PENDING_UNIV -> APPROVED, REJECTED from
any pending stage. Two ways to move a request:

* ``decide_career`` - the ordinary gate, one stage forward or reject;
* ``advance_career`` - administrative override that jumps straight to any
  stage. It is a separate operation so the audit trail shows who bypassed
  a council.
"""
import logging
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from approvals.errors import QuotaExceeded, ValidationError
from approvals.models.career import APPROVAL_CHAIN, CareerMovementRequest, CareerStatus, MovementKind
from approvals.schemas.actor import Actor
from approvals.schemas.career import DETAIL_SCHEMAS, CareerCreate, CareerUpdate
from approvals.services import audit_trail, quota_ledger
from approvals.services.common import (
    atomic, bump, ensure_admin, ensure_owner, ensure_role, get_or_404, parse_status,
)
from approvals.services.locks import guard_locks, quota_key, request_key
from approvals.workflows import CAREER_WORKFLOW

logger = logging.getLogger(__name__)

LABELS = {
    MovementKind.loan: "Loan",
    MovementKind.secondment: "Secondment",
    MovementKind.transfer: "Transfer",
}

DATED_KINDS = frozenset({MovementKind.loan, MovementKind.secondment})


def _validate_details(kind: MovementKind, details: dict[str, Any]) -> dict[str, Any]:
    try:
        return DETAIL_SCHEMAS[kind].model_validate(details).model_dump()
    except PydanticValidationError as exc:
        fields = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise ValidationError(
            f"Invalid {LABELS[kind].lower()} details: {', '.join(fields)}",
            field="details",
            invalid=fields,
        )


def _validate_dates(kind: MovementKind, start: Optional[date], end: Optional[date]) -> None:
    if kind in DATED_KINDS and (start is None or end is None):
        raise ValidationError(f"{LABELS[kind]} requests need start_date and end_date", field="start_date")
    if start is not None and end is not None and end <= start:
        raise ValidationError("end_date must be after start_date", field="end_date")


def _duration(start: Optional[date], end: Optional[date]) -> int:
    if start is None or end is None:
        return 0
    return (end - start).days


def _check_loan_quota(db: Session, requester_id: str, kind: MovementKind, proposed_days: int,
                      exclude_request_id: Optional[str] = None) -> None:
    if kind != MovementKind.loan:
        return
    used = quota_ledger.loan_days_used(db, requester_id, exclude_request_id)
    ceiling = quota_ledger.loan_ceiling_days()
    if used + proposed_days > ceiling:
        logger.warning(
            "Loan ceiling exceeded for %s: used=%d proposed=%d ceiling=%d",
            requester_id, used, proposed_days, ceiling,
        )
        raise QuotaExceeded(
            f"Lifetime loan ceiling is {ceiling} day(s); {used} used, {proposed_days} requested",
            used=used,
            requested=proposed_days,
            ceiling=ceiling,
        )


def get_career(db: Session, request_id: str) -> CareerMovementRequest:
    return get_or_404(db, CareerMovementRequest, request_id, "Career request")


def list_career(
    db: Session,
    requester_id: Optional[str] = None,
    status: Optional[str] = None,
    movement_kind: Optional[str] = None,
) -> list[CareerMovementRequest]:
    query = db.query(CareerMovementRequest)
    if requester_id:
        query = query.filter(CareerMovementRequest.requester_id == requester_id)
    if status:
        query = query.filter(CareerMovementRequest.status == parse_status(CareerStatus, status))
    if movement_kind:
        kind = parse_status(MovementKind, movement_kind, "movement_kind")
        query = query.filter(CareerMovementRequest.movement_kind == kind)
    return query.order_by(CareerMovementRequest.created_at.desc()).all()


def submit_career(db: Session, actor: Actor, payload: CareerCreate) -> CareerMovementRequest:
    kind = payload.movement_kind
    details = _validate_details(kind, payload.details)
    start, end = (payload.start_date, payload.end_date) if kind in DATED_KINDS else (None, None)
    _validate_dates(kind, start, end)
    status = APPROVAL_CHAIN[0]

    with guard_locks.hold(quota_key(actor.actor_id)), atomic(db):
        _check_loan_quota(db, actor.actor_id, kind, _duration(start, end))

        req = CareerMovementRequest(
            requester_id=actor.actor_id,
            requester_name=actor.actor_name,
            movement_kind=kind,
            start_date=start,
            end_date=end,
            details=details,
            attachment_urls=list(payload.attachment_urls),
            status=status,
            initial_status=status.value,
            version=1,
        )
        db.add(req)
        db.flush()

        target = details.get("country") or details.get("target_institution") or details.get("target_university")
        audit_trail.record(
            db, f"{LABELS[kind]} requested", actor,
            f"New {LABELS[kind].lower()} request to {target}",
            request=req, to_status=status,
        )

    db.refresh(req)
    logger.info("%s request %s submitted by %s", LABELS[kind], req.request_id, actor.actor_id)
    return req


def _move(db: Session, req: CareerMovementRequest, actor: Actor, target: CareerStatus,
          action: str, notes: Optional[str]) -> CareerStatus:
    before = req.status
    CAREER_WORKFLOW.ensure(before, target, action)
    if target == CareerStatus.approved:
        _check_loan_quota(db, req.requester_id, req.movement_kind, req.duration_days,
                          exclude_request_id=req.request_id)
    req.status = target
    if notes is not None:
        req.review_notes = notes
    bump(req)
    return before


def decide_career(
    db: Session,
    request_id: str,
    actor: Actor,
    decision: str,
    notes: Optional[str] = None,
) -> CareerMovementRequest:
    """Sequential gate: APPROVED moves one council forward, REJECTED ends it."""
    verdict = parse_status(CareerStatus, decision, "decision")
    if verdict not in (CareerStatus.approved, CareerStatus.rejected):
        raise ValidationError("decision must be APPROVED or REJECTED", field="decision")

    with guard_locks.hold(request_key(request_id)):
        req = get_career(db, request_id)
        ensure_role(actor)
        with guard_locks.hold(quota_key(req.requester_id)), atomic(db):
            if verdict == CareerStatus.rejected:
                target = CareerStatus.rejected
            elif req.status in APPROVAL_CHAIN[:-1]:
                target = APPROVAL_CHAIN[APPROVAL_CHAIN.index(req.status) + 1]
            else:
                target = CareerStatus.approved
            before = _move(db, req, actor, target, "decide", notes)
            audit_trail.record(
                db, "Career request decision", actor,
                f"{LABELS[req.movement_kind]} request of {req.requester_name} moved from "
                f"{before.value} to {target.value}",
                request=req, from_status=before, to_status=target,
            )

    db.refresh(req)
    logger.info("Career request %s -> %s by %s", request_id, req.status.value, actor.actor_id)
    return req


def advance_career(
    db: Session,
    request_id: str,
    actor: Actor,
    target_status: str,
    notes: Optional[str] = None,
) -> CareerMovementRequest:
    """Administrative override: set any chain stage (or REJECTED) directly."""
    target = parse_status(CareerStatus, target_status, "target_status")
    if target == CareerStatus.cancelled:
        raise ValidationError("Use cancel to withdraw a request", field="target_status")

    with guard_locks.hold(request_key(request_id)):
        req = get_career(db, request_id)
        ensure_admin(actor)
        with guard_locks.hold(quota_key(req.requester_id)), atomic(db):
            before = _move(db, req, actor, target, "advance", notes)
            audit_trail.record(
                db, "Career stage override", actor,
                f"{LABELS[req.movement_kind]} request of {req.requester_name} set from "
                f"{before.value} to {target.value} by administrative override",
                request=req, from_status=before, to_status=target,
            )

    db.refresh(req)
    logger.info("Career request %s overridden to %s by %s", request_id, target.value, actor.actor_id)
    return req


def edit_career(db: Session, request_id: str, actor: Actor, changes: CareerUpdate) -> CareerMovementRequest:
    """Requester edits a pending request; dates lock after the department stage."""
    updates = changes.model_dump(exclude_unset=True)

    with guard_locks.hold(request_key(request_id)):
        req = get_career(db, request_id)
        ensure_owner(req, actor)
        CAREER_WORKFLOW.ensure_action(req.status, "edit")

        kind = req.movement_kind
        start = updates.get("start_date") or req.start_date
        end = updates.get("end_date") or req.end_date
        if kind not in DATED_KINDS:
            start, end = None, None
        if req.status.value != req.initial_status and (start, end) != (req.start_date, req.end_date):
            raise ValidationError("Date range is locked once the department stage has passed",
                                  field="start_date")
        _validate_dates(kind, start, end)
        details = req.details or {}
        if updates.get("details") is not None:
            details = _validate_details(kind, {**details, **updates["details"]})

        with guard_locks.hold(quota_key(req.requester_id)), atomic(db):
            _check_loan_quota(db, req.requester_id, kind, _duration(start, end),
                              exclude_request_id=req.request_id)
            CAREER_WORKFLOW.ensure(req.status, req.status, "edit")
            req.start_date = start
            req.end_date = end
            req.details = details
            if updates.get("attachment_urls") is not None:
                req.attachment_urls = list(updates["attachment_urls"])
            bump(req)
            audit_trail.record(
                db, f"{LABELS[kind]} request edited", actor,
                f"{LABELS[kind]} request edited while {req.status.value}",
                request=req, from_status=req.status, to_status=req.status,
            )

    db.refresh(req)
    logger.info("Career request %s edited by %s", request_id, actor.actor_id)
    return req


def cancel_career(db: Session, request_id: str, actor: Actor) -> CareerMovementRequest:
    with guard_locks.hold(request_key(request_id)), atomic(db):
        req = get_career(db, request_id)
        ensure_owner(req, actor)
        before = req.status
        CAREER_WORKFLOW.ensure(before, CareerStatus.cancelled, "cancel")
        req.status = CareerStatus.cancelled
        bump(req)
        audit_trail.record(
            db, f"{LABELS[req.movement_kind]} request cancelled", actor,
            f"{LABELS[req.movement_kind]} request withdrawn at {before.value}",
            request=req, from_status=before, to_status=CareerStatus.cancelled,
        )

    db.refresh(req)
    logger.info("Career request %s cancelled by %s", request_id, actor.actor_id)
    return req
