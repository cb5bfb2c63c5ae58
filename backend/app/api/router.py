"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import auth, bus_routes, trips, passengers, tickets

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(bus_routes.router)
api_router.include_router(trips.router)
api_router.include_router(passengers.router)
api_router.include_router(tickets.router)
