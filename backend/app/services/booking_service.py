"""
Booking service: seat booking and cancellation as single transactions.

BOOKING FLOW
============

Validation runs first and short-circuits on the first failure, so a
rejected request never touches the seat counter:

  1. structural     request schema (positive ids and seat number)
  2. existence      trip (with its route) and passenger must resolve
  3. authorization  admin, or owner of the passenger
  4. capacity       fast-fail when the trip shows no free seat
  5. range          seat_number <= route.total_seats
  6. fare           supplied fare must equal route.fare exactly
  7. occupancy      no ticket already holds (trip_id, seat_number)

Then, inside one database transaction:

  8. InventoryController.reserve_seat  (conditional UPDATE)
  9. INSERT ticket with fare and journey_date snapshots, COMMIT

Steps 4 and 7 are advisory reads. Two bookings can pass them together;
the conditional UPDATE in step 8 settles the last seat and the
uq_ticket_trip_seat constraint in step 9 settles the same seat. Either
loser rolls back, which undoes its own reservation, so the counter and
the ticket set never diverge once committed.

CANCELLATION FLOW
=================

  authorize -> DELETE ticket -> release_seat -> COMMIT

The seat is released only after the ticket delete has been flushed, so a
seat is never returned for a ticket that still exists.
"""

import time
from decimal import Decimal
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models.passenger import Passenger
from app.models.ticket import Ticket
from app.models.trip import Trip
from app.schemas.ticket import TicketCreate, TicketUpdate
from app.services.access_policy import Action, CallerIdentity, enforce
from app.services.inventory_service import InventoryController, TripSnapshot
from app.core.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    SeatTakenError,
    TransientError,
    ValidationError,
)
from app.core.logging import get_logger
from app.core.metrics import booking_latency, record_booking_attempt, ticket_cancellations

logger = get_logger(__name__)


async def _load_trip_with_route(db: AsyncSession, trip_id: int) -> Trip:
    result = await db.execute(
        select(Trip).where(Trip.id == trip_id).options(joinedload(Trip.route))
    )
    trip = result.scalar_one_or_none()
    # A trip whose route cannot be resolved is not bookable
    if not trip or trip.route is None:
        raise NotFoundError("Trip, Bus, or Passenger record not found.")
    return trip


async def _seat_is_taken(
    db: AsyncSession,
    trip_id: int,
    seat_number: int,
    exclude_ticket_id: Optional[int] = None,
) -> bool:
    query = select(Ticket.id).where(Ticket.trip_id == trip_id, Ticket.seat_number == seat_number)
    if exclude_ticket_id is not None:
        query = query.where(Ticket.id != exclude_ticket_id)
    result = await db.execute(query.limit(1))
    return result.first() is not None


def _check_seat_range(seat_number: int, capacity: int) -> None:
    if seat_number > capacity:
        raise ValidationError(f"Invalid seat number. Max seats is {capacity}.")


async def book_seat(
    db: AsyncSession,
    booking_data: TicketCreate,
    identity: CallerIdentity,
) -> Ticket:
    """
    Book one seat on a trip for a passenger.

    Exactly one ticket is created and one seat taken on success; on any
    failure nothing is committed.
    """
    started = time.perf_counter()
    try:
        ticket = await _book_seat(db, booking_data, identity)
    except ConflictError:
        record_booking_attempt("conflict")
        raise
    except TransientError:
        record_booking_attempt("error")
        raise
    except AppError:
        record_booking_attempt("rejected")
        raise
    finally:
        booking_latency.observe(time.perf_counter() - started)

    record_booking_attempt("success")
    return ticket


async def _book_seat(db: AsyncSession, booking_data: TicketCreate, identity: CallerIdentity) -> Ticket:
    trip_id = booking_data.trip_id
    seat_number = booking_data.seat_number

    trip = await _load_trip_with_route(db, trip_id)
    passenger = await db.get(Passenger, booking_data.passenger_id)
    if not passenger:
        raise NotFoundError("Trip, Bus, or Passenger record not found.")

    enforce(identity, Action.TICKET_BOOK, passenger.owner_id)

    route = trip.route
    if trip.available_seats <= 0:
        logger.warning("booking_failed_no_seats", trip_id=trip_id, available=trip.available_seats)
        raise ConflictError("Booking failed: No available seats on this trip.")

    _check_seat_range(seat_number, route.total_seats)

    if Decimal(booking_data.fare) != Decimal(route.fare):
        raise ValidationError(f"Fare mismatch. Expected ${Decimal(route.fare):.2f}.")

    if await _seat_is_taken(db, trip_id, seat_number):
        raise SeatTakenError(seat_number)

    # Fields needed after a possible rollback, which expires loaded objects
    fare = route.fare
    journey_date = trip.date

    inventory = InventoryController(db)
    try:
        snapshot = await inventory.reserve_seat(trip_id)
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("booking_reserve_failed", trip_id=trip_id, error=str(e))
        raise TransientError("Booking could not be completed. Please try again.")

    ticket = Ticket(
        trip_id=trip_id,
        passenger_id=passenger.id,
        seat_number=seat_number,
        fare=fare,
        journey_date=journey_date,
    )
    try:
        db.add(ticket)
        await db.flush()
        await db.commit()
    except IntegrityError:
        # Lost the race for this seat; rollback also returns the reserved seat
        await db.rollback()
        logger.warning("booking_seat_race_lost", trip_id=trip_id, seat=seat_number)
        raise SeatTakenError(seat_number)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("booking_persist_failed", trip_id=trip_id, seat=seat_number, error=str(e))
        raise TransientError("Booking could not be completed. Please try again.")

    await db.refresh(ticket)
    logger.info(
        "ticket_booked",
        ticket_id=ticket.id,
        trip_id=trip_id,
        passenger_id=passenger.id,
        seat=seat_number,
        available=snapshot.available_seats,
        account_id=identity.account_id,
    )
    return ticket


async def load_ticket(db: AsyncSession, ticket_id: int) -> Ticket:
    result = await db.execute(
        select(Ticket).where(Ticket.id == ticket_id).options(joinedload(Ticket.passenger))
    )
    ticket = result.scalar_one_or_none()
    if not ticket:
        raise NotFoundError("Ticket not found.")
    return ticket


def _ticket_owner_id(ticket: Ticket) -> Optional[int]:
    # Tickets are owned through their passenger
    return ticket.passenger.owner_id if ticket.passenger is not None else None


async def cancel_ticket(db: AsyncSession, ticket_id: int, identity: CallerIdentity) -> TripSnapshot:
    """Delete a ticket and give its seat back. Returns the trip's new counters."""
    ticket = await load_ticket(db, ticket_id)
    enforce(identity, Action.TICKET_CANCEL, _ticket_owner_id(ticket))

    trip_id = ticket.trip_id
    seat_number = ticket.seat_number
    try:
        await db.delete(ticket)
        await db.flush()
        snapshot = await InventoryController(db).release_seat(trip_id)
        await db.commit()
    except AppError:
        await db.rollback()
        raise
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("cancel_failed", ticket_id=ticket_id, trip_id=trip_id, error=str(e))
        raise TransientError("Failed to cancel ticket. Please try again.")

    ticket_cancellations.inc()
    logger.info(
        "ticket_cancelled",
        ticket_id=ticket_id,
        trip_id=trip_id,
        seat=seat_number,
        available=snapshot.available_seats,
        account_id=identity.account_id,
    )
    return snapshot


async def get_ticket(db: AsyncSession, ticket_id: int, identity: CallerIdentity) -> Ticket:
    ticket = await load_ticket(db, ticket_id)
    enforce(identity, Action.TICKET_READ, _ticket_owner_id(ticket))
    return ticket


async def list_tickets(
    db: AsyncSession,
    identity: CallerIdentity,
    trip_id: Optional[int] = None,
) -> list[Ticket]:
    """
    Tickets visible to the caller. Riders see tickets of passengers they own.
    Filtering by trip_id gives the occupied seats of one trip.
    """
    query = select(Ticket)
    if not identity.is_admin:
        owned = select(Passenger.id).where(Passenger.owner_id == identity.account_id)
        query = query.where(Ticket.passenger_id.in_(owned))
    if trip_id is not None:
        query = query.where(Ticket.trip_id == trip_id)

    result = await db.execute(query.order_by(Ticket.trip_id, Ticket.seat_number))
    return list(result.scalars().all())


async def update_ticket(
    db: AsyncSession,
    ticket_id: int,
    ticket_data: TicketUpdate,
    identity: CallerIdentity,
) -> Ticket:
    """
    Update a ticket. Riders may only reassign it to another passenger they
    own; seat, fare and journey date are admin-only. The trip never
    changes, so the seat counter is unaffected.
    """
    ticket = await load_ticket(db, ticket_id)
    enforce(identity, Action.TICKET_WRITE, _ticket_owner_id(ticket))

    changes = ticket_data.model_dump(exclude_unset=True, exclude_none=True)
    if not identity.is_admin:
        for field in ("seat_number", "fare", "journey_date"):
            changes.pop(field, None)

    if "passenger_id" in changes and changes["passenger_id"] != ticket.passenger_id:
        passenger = await db.get(Passenger, changes["passenger_id"])
        if not passenger:
            raise NotFoundError("Passenger not found.")
        enforce(identity, Action.TICKET_WRITE, passenger.owner_id)

    if "seat_number" in changes and changes["seat_number"] != ticket.seat_number:
        trip = await _load_trip_with_route(db, ticket.trip_id)
        _check_seat_range(changes["seat_number"], trip.route.total_seats)
        if await _seat_is_taken(db, ticket.trip_id, changes["seat_number"], exclude_ticket_id=ticket.id):
            raise SeatTakenError(changes["seat_number"])

    for field, value in changes.items():
        setattr(ticket, field, value)

    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        if "seat_number" in changes:
            raise SeatTakenError(changes["seat_number"])
        logger.warning("ticket_update_conflict", ticket_id=ticket_id, fields=sorted(changes), error=str(e))
        raise ConflictError("Ticket could not be updated: it conflicts with existing records.")

    await db.refresh(ticket)
    logger.info("ticket_updated", ticket_id=ticket.id, fields=sorted(changes), account_id=identity.account_id)
    return ticket
