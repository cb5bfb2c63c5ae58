"""
Integrity guard: refuses deletes that would orphan dependent records.

    route     -> blocked while any trip uses it
    trip      -> blocked while any ticket is booked on it
    passenger -> blocked while any ticket is issued to them

The foreign keys are declared ON DELETE RESTRICT as well, but checking here
first lets the API answer with a 409 and a useful message instead of an
IntegrityError from the driver.
"""

from enum import Enum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.trip import Trip
from app.models.ticket import Ticket
from app.core.exceptions import ConflictError
from app.core.logging import get_logger
from app.core.metrics import record_delete_blocked

logger = get_logger(__name__)


class EntityKind(str, Enum):
    ROUTE = "route"
    TRIP = "trip"
    PASSENGER = "passenger"


_DEPENDENTS = {
    EntityKind.ROUTE: (
        Trip.route_id,
        "Cannot delete bus route: Existing trips are scheduled for this route. Delete trips first.",
    ),
    EntityKind.TRIP: (
        Ticket.trip_id,
        "Cannot delete trip: Existing tickets are booked for this schedule.",
    ),
    EntityKind.PASSENGER: (
        Ticket.passenger_id,
        "Cannot delete passenger: Existing tickets are associated with this passenger.",
    ),
}


async def can_delete(db: AsyncSession, kind: EntityKind, entity_id: int) -> None:
    """Raise ConflictError if anything still references the entity."""
    column, message = _DEPENDENTS[kind]
    result = await db.execute(select(column).where(column == entity_id).limit(1))
    if result.first() is not None:
        record_delete_blocked(kind.value)
        logger.warning("delete_blocked", kind=kind.value, entity_id=entity_id)
        raise ConflictError(message)
