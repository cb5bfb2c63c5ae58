"""
Bus route endpoints. Anyone signed in can read; only admins can write.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import MessageResponse
from app.schemas.route import RouteCreate, RouteUpdate, RouteResponse
from app.services.access_policy import Action, CallerIdentity
from app.services.route_service import create_route, get_route, list_routes, update_route, delete_route
from app.services.cache_service import invalidate_trip_cache
from app.core.security import get_current_identity, require

router = APIRouter(prefix="/routes", tags=["Routes"])


@router.post("/", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def create_route_endpoint(
    route_data: RouteCreate,
    identity: CallerIdentity = Depends(require(Action.ROUTE_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    return await create_route(db, route_data)


@router.get("/", response_model=list[RouteResponse])
async def list_routes_endpoint(
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await list_routes(db)


@router.get("/{route_id}", response_model=RouteResponse)
async def get_route_endpoint(
    route_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_route(db, route_id)


@router.put("/{route_id}", response_model=RouteResponse)
async def update_route_endpoint(
    route_id: int,
    route_data: RouteUpdate,
    identity: CallerIdentity = Depends(require(Action.ROUTE_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    route = await update_route(db, route_id, route_data)
    # Search results embed source, destination and fare
    await invalidate_trip_cache()
    return route


@router.delete("/{route_id}", response_model=MessageResponse)
async def delete_route_endpoint(
    route_id: int,
    identity: CallerIdentity = Depends(require(Action.ROUTE_WRITE)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a route. Refused with 409 while trips are scheduled on it."""
    await delete_route(db, route_id)
    await invalidate_trip_cache()
    return MessageResponse(message="Bus route deleted successfully.")
