"""Audit trail: append-only record of every mutating call.

``record`` only adds the entry to the caller's session; it is committed in
the same transaction as the mutation it describes, so a transition can
never be persisted without its entry (or vice versa).
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from approvals.clock import as_utc, utc_now
from approvals.models.audit_entry import AuditEntry
from approvals.schemas.actor import Actor

logger = logging.getLogger(__name__)

_clock_lock = threading.Lock()
_last_issued: Optional[datetime] = None


def _next_timestamp(db: Session) -> datetime:
    """Wall-clock UTC now, nudged forward so entries are strictly ordered."""
    global _last_issued
    now = utc_now()
    latest = db.query(func.max(AuditEntry.timestamp)).scalar()
    with _clock_lock:
        floor = _last_issued
        if latest is not None:
            latest = as_utc(latest)
            floor = latest if floor is None else max(floor, latest)
        if floor is not None and now <= floor:
            now = floor + timedelta(microseconds=1)
        _last_issued = now
    return now


def record(
    db: Session,
    action: str,
    actor: Actor,
    details: str,
    request=None,
    from_status=None,
    to_status=None,
) -> AuditEntry:
    """Append one entry describing ``action`` by ``actor``."""
    entry = AuditEntry(
        action=action,
        actor_id=actor.actor_id,
        actor_name=actor.actor_name,
        timestamp=_next_timestamp(db),
        details=details,
        request_kind=request.kind.value if request is not None else None,
        request_id=request.request_id if request is not None else None,
        from_status=getattr(from_status, "value", from_status),
        to_status=getattr(to_status, "value", to_status),
    )
    db.add(entry)
    return entry


def list_entries(
    db: Session,
    search: Optional[str] = None,
    request_id: Optional[str] = None,
    limit: int = 200,
) -> list[AuditEntry]:
    """Newest first, optionally filtered by request or a free-text term."""
    query = db.query(AuditEntry)
    if request_id:
        query = query.filter(AuditEntry.request_id == request_id)
    if search:
        term = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(AuditEntry.action).like(term),
            func.lower(AuditEntry.actor_name).like(term),
            func.lower(AuditEntry.details).like(term),
        ))
    return query.order_by(AuditEntry.timestamp.desc(), AuditEntry.entry_id).limit(limit).all()


def entries_for(db: Session, request_id: str) -> list[AuditEntry]:
    """Insertion-ordered history of one request."""
    return (
        db.query(AuditEntry)
        .filter(AuditEntry.request_id == request_id)
        .order_by(AuditEntry.timestamp)
        .all()
    )
