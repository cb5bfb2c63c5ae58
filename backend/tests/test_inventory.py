"""
Tests for the inventory controller and concurrent seat reservation.
"""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.models.ticket import Ticket
from app.models.trip import Trip
from app.schemas.ticket import TicketCreate
from app.services.booking_service import book_seat
from app.services.inventory_service import InventoryController
from app.core.exceptions import ConflictError, NotFoundError, OverbookedError


@pytest.mark.asyncio
async def test_reserve_decrements(db_session, test_trip):
    snapshot = await InventoryController(db_session).reserve_seat(test_trip.id)
    assert snapshot.trip_id == test_trip.id
    assert snapshot.available_seats == 39
    assert snapshot.total_seats == 40


@pytest.mark.asyncio
async def test_reserve_sold_out(db_session, sold_out_trip):
    with pytest.raises(OverbookedError):
        await InventoryController(db_session).reserve_seat(sold_out_trip.id)

    await db_session.refresh(sold_out_trip)
    assert sold_out_trip.available_seats == 0


@pytest.mark.asyncio
async def test_reserve_unknown_trip(db_session):
    with pytest.raises(NotFoundError):
        await InventoryController(db_session).reserve_seat(99999)


@pytest.mark.asyncio
async def test_release_after_reserve(db_session, test_trip):
    inventory = InventoryController(db_session)
    await inventory.reserve_seat(test_trip.id)
    await inventory.reserve_seat(test_trip.id)

    snapshot = await inventory.release_seat(test_trip.id)
    assert snapshot.available_seats == 39


@pytest.mark.asyncio
async def test_release_never_exceeds_capacity(db_session, test_trip):
    snapshot = await InventoryController(db_session).release_seat(test_trip.id)
    assert snapshot.available_seats == 40


@pytest.mark.asyncio
async def test_release_unknown_trip(db_session):
    with pytest.raises(NotFoundError):
        await InventoryController(db_session).release_seat(99999)


@pytest.mark.asyncio
async def test_drain_then_refuse(db_session, single_seat_trip):
    inventory = InventoryController(db_session)
    snapshot = await inventory.reserve_seat(single_seat_trip.id)
    assert snapshot.available_seats == 0

    with pytest.raises(OverbookedError):
        await inventory.reserve_seat(single_seat_trip.id)


@pytest.mark.asyncio
async def test_concurrent_last_seat(session_factory, single_seat_trip, test_passenger, rider_identity):
    """
    Several riders race for the only seat, each on its own connection.
    Exactly one gets a ticket; everyone else gets a conflict.
    """
    racers = 5
    trip_id = single_seat_trip.id
    passenger_id = test_passenger.id

    async def attempt():
        async with session_factory() as session:
            booking = TicketCreate(
                trip_id=trip_id,
                passenger_id=passenger_id,
                seat_number=1,
                fare=Decimal("500"),
            )
            return await book_seat(session, booking, rider_identity)

    results = await asyncio.gather(*(attempt() for _ in range(racers)), return_exceptions=True)

    tickets = [r for r in results if isinstance(r, Ticket)]
    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assert len(tickets) == 1
    assert len(conflicts) == racers - 1

    async with session_factory() as session:
        trip = await session.get(Trip, trip_id)
        assert trip.available_seats == 0
        count = await session.execute(
            select(func.count()).select_from(Ticket).where(Ticket.trip_id == trip_id)
        )
        assert count.scalar_one() == 1
