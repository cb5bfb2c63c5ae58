"""
Bus route CRUD. Mutations are admin-only and checked by the router.
Writes commit before returning, so the router drops cached search results
only once the change is visible to other sessions.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.route import Route
from app.schemas.route import RouteCreate, RouteUpdate
from app.services.integrity_guard import EntityKind, can_delete
from app.core.exceptions import NotFoundError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_route(db: AsyncSession, route_data: RouteCreate) -> Route:
    route = Route(**route_data.model_dump())
    db.add(route)
    await db.commit()
    await db.refresh(route)

    logger.info("route_created", route_id=route.id, source=route.source, destination=route.destination)
    return route


async def get_route(db: AsyncSession, route_id: int) -> Route:
    route = await db.get(Route, route_id)
    if not route:
        raise NotFoundError("Bus route not found.")
    return route


async def list_routes(db: AsyncSession) -> list[Route]:
    result = await db.execute(select(Route).order_by(Route.id))
    return list(result.scalars().all())


async def update_route(db: AsyncSession, route_id: int, route_data: RouteUpdate) -> Route:
    """
    Update route details. Existing trips keep their seat snapshot and
    existing tickets keep their fare snapshot.
    """
    route = await get_route(db, route_id)
    changes = route_data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(route, field, value)
    await db.commit()
    await db.refresh(route)

    logger.info("route_updated", route_id=route.id, fields=sorted(changes))
    return route


async def delete_route(db: AsyncSession, route_id: int) -> None:
    route = await get_route(db, route_id)
    await can_delete(db, EntityKind.ROUTE, route_id)
    await db.delete(route)
    await db.commit()

    logger.info("route_deleted", route_id=route_id)
