"""
Access policy: the single place that decides who may do what.

Every router and service asks this module instead of comparing roles or
owner ids inline. Admins are always authorized. Route and trip mutations
are admin-only. Passenger and ticket operations are allowed to the account
that owns the passenger (tickets are owned transitively through their
passenger).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sqlalchemy import Select

from app.core.exceptions import ForbiddenError
from app.core.logging import get_logger

logger = get_logger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLES = (ROLE_USER, ROLE_ADMIN)


@dataclass(frozen=True)
class CallerIdentity:
    account_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


class Action(str, Enum):
    ROUTE_WRITE = "route:write"
    TRIP_WRITE = "trip:write"
    TRIP_LIST_ALL = "trip:list_all"
    ACCOUNT_CREATE_PRIVILEGED = "account:create_privileged"

    PASSENGER_READ = "passenger:read"
    PASSENGER_WRITE = "passenger:write"
    PASSENGER_DELETE = "passenger:delete"
    TICKET_BOOK = "ticket:book"
    TICKET_READ = "ticket:read"
    TICKET_WRITE = "ticket:write"
    TICKET_CANCEL = "ticket:cancel"


ADMIN_ONLY_ACTIONS = frozenset({
    Action.ROUTE_WRITE,
    Action.TRIP_WRITE,
    Action.TRIP_LIST_ALL,
    Action.ACCOUNT_CREATE_PRIVILEGED,
})

DENIAL_MESSAGES = {
    Action.PASSENGER_READ: "Access denied: You are not the owner of this passenger record.",
    Action.PASSENGER_WRITE: "Access denied: You can only update passengers you created.",
    Action.PASSENGER_DELETE: "Access denied: You can only delete passengers you created.",
    Action.TICKET_BOOK: "You do not own this passenger record.",
    Action.TICKET_READ: "Access denied: You can only view your own bookings.",
    Action.TICKET_WRITE: "Access denied: You can only update tickets associated with your passengers.",
    Action.TICKET_CANCEL: "Access denied: You can only cancel tickets associated with your passengers.",
}


def authorize(
    identity: CallerIdentity,
    action: Action,
    resource_owner_id: Optional[int] = None,
) -> bool:
    if identity.is_admin:
        return True
    if action in ADMIN_ONLY_ACTIONS:
        return False
    return resource_owner_id is not None and resource_owner_id == identity.account_id


def enforce(
    identity: CallerIdentity,
    action: Action,
    resource_owner_id: Optional[int] = None,
) -> None:
    """Raise ForbiddenError unless `authorize` allows the action."""
    if authorize(identity, action, resource_owner_id):
        return

    logger.warning(
        "access_denied",
        account_id=identity.account_id,
        role=identity.role,
        action=action.value,
        owner_id=resource_owner_id,
    )
    if action in ADMIN_ONLY_ACTIONS:
        raise ForbiddenError("Admin access required.")
    raise ForbiddenError(DENIAL_MESSAGES.get(action, "Access denied."))


def scope_to_owner(query: Select, owner_column, identity: CallerIdentity) -> Select:
    """Restrict a listing query to records owned by a non-admin caller."""
    if identity.is_admin:
        return query
    return query.where(owner_column == identity.account_id)
