"""
Trip scheduling and the trip read-side projection.

Writes (create/update/delete) are admin-only and never touch
available_seats directly; that counter belongs to the inventory
controller. Reads return TripView projections built by joining the
trip with its route.

Writes commit before returning; the router invalidates the search cache
after that.
"""

from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models.route import Route
from app.models.trip import Trip
from app.schemas.trip import TripCreate, TripUpdate, TripView, BusDetails
from app.services.integrity_guard import EntityKind, can_delete
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)


def to_trip_view(trip: Trip) -> Optional[TripView]:
    """Project a trip and its route. Returns None when the route is missing."""
    route = trip.route
    if route is None:
        return None
    return TripView(
        id=trip.id,
        route_id=route.id,
        source=route.source,
        destination=route.destination,
        date=trip.date,
        departure_time=trip.departure_time,
        available_seats=trip.available_seats,
        fare=route.fare,
        bus_details=BusDetails(category=route.category, total_seats=route.total_seats),
    )


async def create_trip(db: AsyncSession, trip_data: TripCreate) -> Trip:
    """Schedule a trip with every seat of the route available."""
    route = await db.get(Route, trip_data.route_id)
    if not route:
        raise NotFoundError("Bus Route not found for the selected ID.")

    trip = Trip(
        route_id=route.id,
        date=trip_data.date,
        departure_time=trip_data.departure_time,
        total_seats=route.total_seats,
        available_seats=route.total_seats,
    )
    db.add(trip)
    await db.commit()
    await db.refresh(trip)

    logger.info("trip_created", trip_id=trip.id, route_id=route.id, date=str(trip.date), seats=trip.total_seats)
    return trip


async def load_trip(db: AsyncSession, trip_id: int, with_route: bool = False) -> Trip:
    query = select(Trip).where(Trip.id == trip_id)
    if with_route:
        query = query.options(joinedload(Trip.route))
    result = await db.execute(query)
    trip = result.scalar_one_or_none()

    if not trip:
        raise NotFoundError("Trip not found.")
    return trip


async def get_trip_view(db: AsyncSession, trip_id: int) -> TripView:
    trip = await load_trip(db, trip_id, with_route=True)
    view = to_trip_view(trip)
    if view is None:
        raise NotFoundError("Trip or its associated Bus Route not found.")
    return view


async def list_trips(db: AsyncSession) -> list[TripView]:
    """Every scheduled trip, soonest first."""
    result = await db.execute(
        select(Trip)
        .options(joinedload(Trip.route))
        .order_by(Trip.date.asc(), Trip.departure_time.asc())
    )
    views = (to_trip_view(trip) for trip in result.scalars().all())
    return [view for view in views if view is not None]


async def search_trips(
    db: AsyncSession,
    travel_date: date,
    source: str,
    destination: str,
) -> list[TripView]:
    """
    Trips on `travel_date` with at least one free seat whose route matches
    source and destination (case-insensitive substring).
    Uses ix_routes_source_destination and ix_trips_route_date.
    """
    result = await db.execute(
        select(Trip)
        .join(Trip.route)
        .options(joinedload(Trip.route))
        .where(
            Trip.date == travel_date,
            Trip.available_seats > 0,
            Route.source.ilike(f"%{source}%"),
            Route.destination.ilike(f"%{destination}%"),
        )
        .order_by(Trip.departure_time.asc())
    )
    views = (to_trip_view(trip) for trip in result.scalars().all())
    return [view for view in views if view is not None]


async def update_trip(db: AsyncSession, trip_id: int, trip_data: TripUpdate) -> Trip:
    trip = await load_trip(db, trip_id)
    changes = trip_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(trip, field, value)
    await db.commit()
    await db.refresh(trip)

    logger.info("trip_updated", trip_id=trip.id, fields=sorted(changes))
    return trip


async def delete_trip(db: AsyncSession, trip_id: int) -> None:
    trip = await load_trip(db, trip_id)
    await can_delete(db, EntityKind.TRIP, trip_id)
    await db.delete(trip)
    await db.commit()

    logger.info("trip_deleted", trip_id=trip_id)
