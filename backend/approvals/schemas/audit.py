"""Pydantic schemas for the audit trail."""
from typing import Optional
from pydantic import BaseModel


class AuditEntryOut(BaseModel):
    entry_id: str
    action: str
    actor_id: Optional[str] = None
    actor_name: str
    timestamp_iso: str
    details: str
    request_kind: Optional[str] = None
    request_id: Optional[str] = None
    from_status: Optional[str] = None
    to_status: Optional[str] = None

    model_config = {"from_attributes": True}
