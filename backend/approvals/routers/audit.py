"""Audit trail API routes: read-only; entries are never edited or deleted."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from approvals.database import get_db
from approvals.schemas.audit import AuditEntryOut
from approvals.services import audit_trail

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[AuditEntryOut])
def list_entries(
    search: Optional[str] = Query(None, description="Matches action, actor or details"),
    request_id: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return audit_trail.list_entries(db, search=search, request_id=request_id, limit=limit)
