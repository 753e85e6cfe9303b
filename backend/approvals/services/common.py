"""Helpers shared by the family services: loading, authorization, commit."""
import logging
from contextlib import contextmanager
from typing import Iterator, Type, TypeVar

from sqlalchemy.orm import Session

from approvals.errors import NotFound, Unauthorized, ValidationError
from approvals.schemas.actor import Actor, ActorRole, REVIEWER_ROLES

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_or_404(db: Session, model: Type[T], request_id: str, label: str) -> T:
    obj = db.get(model, request_id)
    if obj is None:
        raise NotFound(f"{label} {request_id} not found", request_id=request_id)
    return obj


def ensure_owner(request, actor: Actor) -> None:
    """Only the submitting identity may edit or cancel its own request."""
    if request.requester_id != actor.actor_id:
        raise Unauthorized(
            "Only the requester may perform this action",
            request_id=request.request_id,
            actor_id=actor.actor_id,
        )


def ensure_role(actor: Actor, allowed=REVIEWER_ROLES) -> None:
    if actor.role not in allowed:
        raise Unauthorized(
            f"Role {actor.role.value} may not perform this action",
            actor_id=actor.actor_id,
            allowed_roles=sorted(r.value for r in allowed),
        )


def ensure_admin(actor: Actor) -> None:
    ensure_role(actor, frozenset({ActorRole.admin}))


def parse_status(enum_cls, value: str, field: str = "status"):
    """Map caller-supplied text onto a family's closed status enum."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        allowed = [s.value for s in enum_cls]
        raise ValidationError(f"Unknown {field} {value!r}", field=field, allowed=allowed)


def bump(request) -> None:
    request.version = (request.version or 0) + 1


@contextmanager
def atomic(db: Session) -> Iterator[None]:
    """Commit the mutation and its audit entry together, or neither."""
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise
