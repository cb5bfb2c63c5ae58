"""
Passenger endpoints. Riders manage their own passengers; admins manage all.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import MessageResponse
from app.schemas.passenger import PassengerCreate, PassengerUpdate, PassengerResponse
from app.services.access_policy import CallerIdentity
from app.services.passenger_service import (
    create_passenger,
    delete_passenger,
    get_passenger,
    list_passengers,
    update_passenger,
)
from app.core.security import get_current_identity

router = APIRouter(prefix="/passengers", tags=["Passengers"])


@router.post("/", response_model=PassengerResponse, status_code=status.HTTP_201_CREATED)
async def create_passenger_endpoint(
    passenger_data: PassengerCreate,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await create_passenger(db, passenger_data, identity)


@router.get("/", response_model=list[PassengerResponse])
async def list_passengers_endpoint(
    search: Optional[str] = Query(None, max_length=100),
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await list_passengers(db, identity, search)


@router.get("/{passenger_id}", response_model=PassengerResponse)
async def get_passenger_endpoint(
    passenger_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_passenger(db, passenger_id, identity)


@router.put("/{passenger_id}", response_model=PassengerResponse)
async def update_passenger_endpoint(
    passenger_id: int,
    passenger_data: PassengerUpdate,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await update_passenger(db, passenger_id, passenger_data, identity)


@router.delete("/{passenger_id}", response_model=MessageResponse)
async def delete_passenger_endpoint(
    passenger_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Delete a passenger. Refused with 409 while they hold tickets."""
    await delete_passenger(db, passenger_id, identity)
    return MessageResponse(message="Passenger deleted successfully.")
