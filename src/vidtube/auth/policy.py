"""Ownership authorization.

Every mutation on an owned resource (video, tweet, comment, playlist)
goes through the same rule: the caller's id must equal the resource's
owner_id. check_ownership() returns a decision; ensure_owner() turns a
missing resource or a FORBIDDEN decision into the matching AppError.
"""

import enum
import uuid
from typing import Optional, Protocol, TypeVar

from vidtube.errors import Forbidden, NotFound


class OwnershipDecision(str, enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"


class Owned(Protocol):
    owner_id: uuid.UUID


R = TypeVar("R", bound=Owned)


def check_ownership(
    owner_id: uuid.UUID, caller_id: Optional[uuid.UUID]
) -> OwnershipDecision:
    """Compare owner and caller by identifier value."""
    if caller_id is None:
        return OwnershipDecision.FORBIDDEN
    if uuid.UUID(str(owner_id)) == uuid.UUID(str(caller_id)):
        return OwnershipDecision.ALLOWED
    return OwnershipDecision.FORBIDDEN


def ensure_owner(
    resource: Optional[R],
    caller_id: Optional[uuid.UUID],
    what: str = "Resource",
    message: Optional[str] = None,
) -> R:
    """Return the resource if the caller owns it.

    Raises NotFound when the resource is missing and Forbidden when the
    caller is not the owner.
    """
    if resource is None:
        raise NotFound(f"{what} not found")
    if check_ownership(resource.owner_id, caller_id) is OwnershipDecision.FORBIDDEN:
        raise Forbidden(message or f"You can only modify your own {what.lower()}s")
    return resource
