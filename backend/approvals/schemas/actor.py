"""Caller identity: supplied and trusted, never authenticated here."""
import enum
from pydantic import BaseModel


class ActorRole(str, enum.Enum):
    admin = "ADMIN"      # head of department, full authority
    head = "HEAD"
    staff = "STAFF"
    student = "STUDENT"


REVIEWER_ROLES = frozenset({ActorRole.admin, ActorRole.head})


class Actor(BaseModel):
    actor_id: str
    actor_name: str
    role: ActorRole = ActorRole.staff

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES
