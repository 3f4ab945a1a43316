"""Acting identity value objects supplied by the authentication layer."""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(Enum):
    """Role of the caller performing a booking operation."""
    USER = "user"
    ADMIN = "admin"


@dataclass(frozen=True)
class Actor:
    """Already-authenticated caller identity and role."""
    identity: UUID
    role: ActorRole = ActorRole.USER

    @property
    def is_admin(self) -> bool:
        """Check if the actor holds the administrative role."""
        return self.role == ActorRole.ADMIN

    def owns(self, owner_id: UUID) -> bool:
        """Check if the actor is the given owner."""
        return self.identity == owner_id
