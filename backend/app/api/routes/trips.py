"""
Trip endpoints with Redis caching on search.
"""

from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import MessageResponse
from app.schemas.trip import TripCreate, TripUpdate, TripResponse, TripView
from app.services.access_policy import Action, CallerIdentity
from app.services.trip_service import (
    create_trip,
    delete_trip,
    get_trip_view,
    list_trips,
    search_trips,
    update_trip,
)
from app.services.cache_service import get_cached_search, set_cached_search, invalidate_trip_cache
from app.core.security import get_current_identity, require
from app.core.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/trips", tags=["Trips"])


@router.post("/", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
async def create_trip_endpoint(
    trip_data: TripCreate,
    identity: CallerIdentity = Depends(require(Action.TRIP_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    """Schedule a trip on a route. Seats are copied from the route."""
    trip = await create_trip(db, trip_data)
    await invalidate_trip_cache()
    return trip


@router.get("/", response_model=list[TripView])
async def list_trips_endpoint(
    identity: CallerIdentity = Depends(require(Action.TRIP_LIST_ALL)),
    db: AsyncSession = Depends(get_db),
):
    """Every scheduled trip with route details. Admin only."""
    return await list_trips(db)


@router.get("/search", response_model=list[TripView])
async def search_trips_endpoint(
    travel_date: date = Query(..., alias="date"),
    source: str = Query(..., min_length=1),
    destination: str = Query(..., min_length=1),
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Trips with free seats on a date between matching places.
    Results are cached in Redis briefly and dropped on any seat change.
    """
    cache_date = travel_date.isoformat()
    cached = await get_cached_search(cache_date, source, destination)
    if cached is not None:
        logger.info("trip_search_cache_hit", date=cache_date)
        return [TripView(**item) for item in cached]

    views = await search_trips(db, travel_date, source, destination)
    await set_cached_search(
        cache_date,
        source,
        destination,
        [view.model_dump(mode="json") for view in views],
    )
    return views


@router.get("/{trip_id}", response_model=TripView)
async def get_trip_endpoint(
    trip_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Single trip with live seat count. Not cached."""
    return await get_trip_view(db, trip_id)


@router.put("/{trip_id}", response_model=TripResponse)
async def update_trip_endpoint(
    trip_id: int,
    trip_data: TripUpdate,
    identity: CallerIdentity = Depends(require(Action.TRIP_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    trip = await update_trip(db, trip_id, trip_data)
    await invalidate_trip_cache()
    return trip


@router.delete("/{trip_id}", response_model=MessageResponse)
async def delete_trip_endpoint(
    trip_id: int,
    identity: CallerIdentity = Depends(require(Action.TRIP_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a trip. Refused with 409 while tickets are booked on it."""
    await delete_trip(db, trip_id)
    await invalidate_trip_cache()
    return MessageResponse(message="Trip deleted successfully.")
