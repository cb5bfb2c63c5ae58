"""
Passenger CRUD with owner scoping.

Every read and write goes through the access policy: a rider only ever
sees or touches passengers they registered, an admin sees all of them.
"""

from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.passenger import Passenger
from app.schemas.passenger import PassengerCreate, PassengerUpdate
from app.services.access_policy import Action, CallerIdentity, enforce, scope_to_owner
from app.services.integrity_guard import EntityKind, can_delete
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_passenger(
    db: AsyncSession,
    passenger_data: PassengerCreate,
    identity: CallerIdentity,
) -> Passenger:
    """Register a passenger owned by the caller."""
    passenger = Passenger(**passenger_data.model_dump(), owner_id=identity.account_id)
    db.add(passenger)
    await db.flush()
    await db.refresh(passenger)

    logger.info("passenger_created", passenger_id=passenger.id, owner_id=identity.account_id)
    return passenger


async def load_passenger(db: AsyncSession, passenger_id: int) -> Passenger:
    passenger = await db.get(Passenger, passenger_id)
    if not passenger:
        raise NotFoundError("Passenger not found.")
    return passenger


async def get_passenger(db: AsyncSession, passenger_id: int, identity: CallerIdentity) -> Passenger:
    passenger = await load_passenger(db, passenger_id)
    enforce(identity, Action.PASSENGER_READ, passenger.owner_id)
    return passenger


async def list_passengers(
    db: AsyncSession,
    identity: CallerIdentity,
    search: Optional[str] = None,
) -> list[Passenger]:
    """List passengers visible to the caller, optionally matching name or contact."""
    query = scope_to_owner(select(Passenger), Passenger.owner_id, identity)

    if search:
        pattern = f"%{search}%"
        query = query.where(or_(Passenger.name.ilike(pattern), Passenger.contact.ilike(pattern)))

    result = await db.execute(query.order_by(Passenger.id))
    return list(result.scalars().all())


async def update_passenger(
    db: AsyncSession,
    passenger_id: int,
    passenger_data: PassengerUpdate,
    identity: CallerIdentity,
) -> Passenger:
    passenger = await load_passenger(db, passenger_id)
    enforce(identity, Action.PASSENGER_WRITE, passenger.owner_id)

    # owner_id is not part of PassengerUpdate, so ownership cannot move
    changes = passenger_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(passenger, field, value)
    await db.flush()
    await db.refresh(passenger)

    logger.info("passenger_updated", passenger_id=passenger.id, fields=sorted(changes))
    return passenger


async def delete_passenger(db: AsyncSession, passenger_id: int, identity: CallerIdentity) -> None:
    passenger = await load_passenger(db, passenger_id)
    enforce(identity, Action.PASSENGER_DELETE, passenger.owner_id)
    await can_delete(db, EntityKind.PASSENGER, passenger_id)

    await db.delete(passenger)
    await db.flush()
    logger.info("passenger_deleted", passenger_id=passenger_id, by=identity.account_id)
