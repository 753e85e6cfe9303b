"""AuditEntry ORM model: append-only activity log.

Updates and deletes are blocked at the ORM layer by mapper listeners,
so no code path in the core can rewrite history.
"""
import logging
import uuid
from sqlalchemy import Column, String, DateTime, Text, event
from approvals.clock import to_portal_iso
from approvals.database import Base
from approvals.errors import AuditImmutableError

logger = logging.getLogger(__name__)


class AuditEntry(Base):
    __tablename__ = "audit_entries"

    entry_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(String(100), nullable=False)
    actor_id = Column(String(36), nullable=True)
    actor_name = Column(String(150), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    details = Column(Text, nullable=False, default="")
    request_kind = Column(String(30), nullable=True)
    request_id = Column(String(36), nullable=True, index=True)
    from_status = Column(String(30), nullable=True)
    to_status = Column(String(30), nullable=True)

    @property
    def timestamp_iso(self) -> str:
        return to_portal_iso(self.timestamp)


@event.listens_for(AuditEntry, "before_update")
def _block_audit_update(mapper, connection, target):
    logger.error("Blocked UPDATE of audit entry %s", target.entry_id)
    raise AuditImmutableError(target.entry_id, "UPDATE")


@event.listens_for(AuditEntry, "before_delete")
def _block_audit_delete(mapper, connection, target):
    logger.error("Blocked DELETE of audit entry %s", target.entry_id)
    raise AuditImmutableError(target.entry_id, "DELETE")
