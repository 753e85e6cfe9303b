"""Typed workflow errors.

Every error is an ``HTTPException`` so services can raise it directly and
FastAPI renders it unchanged. ``detail`` is always a dict with an ``error``
kind so a UI can branch on it and show an actionable message.
"""
from typing import Any, Optional

from fastapi import HTTPException, status


class WorkflowError(HTTPException):
    """Base class for all errors raised by the approval core."""

    kind = "WorkflowError"
    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra = extra
        super().__init__(
            status_code=self.status_code_default,
            detail={"error": self.kind, "message": message, **extra},
        )

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class NotFound(WorkflowError):
    kind = "NotFound"
    status_code_default = status.HTTP_404_NOT_FOUND


class Unauthorized(WorkflowError):
    """Caller identity or role may not perform the attempted transition."""

    kind = "Unauthorized"
    status_code_default = status.HTTP_403_FORBIDDEN


class InvalidTransition(WorkflowError):
    kind = "InvalidTransition"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, message: str, current_status: Optional[str] = None, **extra: Any):
        super().__init__(message, current_status=current_status, **extra)
        self.current_status = current_status


class QuotaExceeded(WorkflowError):
    kind = "QuotaExceeded"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, message: str, used: float, requested: float, ceiling: float):
        remaining = max(ceiling - used, 0)
        super().__init__(message, used=used, requested=requested, ceiling=ceiling, remaining=remaining)
        self.used = used
        self.requested = requested
        self.ceiling = ceiling
        self.remaining = remaining


class ResourceConflict(WorkflowError):
    kind = "ResourceConflict"
    status_code_default = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflicting_id: str, start_time: str, end_time: str):
        super().__init__(message, conflicting_id=conflicting_id, start_time=start_time, end_time=end_time)
        self.conflicting_id = conflicting_id


class ValidationError(WorkflowError):
    """Missing or malformed payload field."""

    kind = "ValidationError"
    status_code_default = status.HTTP_422_UNPROCESSABLE_ENTITY


class AuditImmutableError(RuntimeError):
    """Raised by the ORM listeners when an audit entry is updated or deleted."""

    def __init__(self, entry_id: str, operation: str):
        self.entry_id = entry_id
        self.operation = operation
        super().__init__(f"Audit entry {entry_id} is append-only ({operation} blocked)")
