"""
Inventory controller: the only code allowed to change Trip.available_seats.

CONCURRENCY STRATEGY: Conditional UPDATE
========================================

Problem:
  Two riders try to book the last seat simultaneously.
  Both read available_seats=1, both write 0, both get a ticket.
  Result: Overbooking.

Solution:
  The check and the decrement are one statement evaluated by the store:

    UPDATE trips SET available_seats = available_seats - 1
    WHERE id = :trip_id AND available_seats > 0

  PostgreSQL re-evaluates the WHERE clause against the latest committed row
  after waiting on the row lock, and SQLite serializes writers, so at most
  one of N concurrent decrements on a trip with one seat matches a row.
  rowcount == 0 means either the trip is gone or it is sold out.

  Release is the mirror image, guarded by `available_seats < total_seats`
  so a double release can never push the counter above capacity.

  No version column and no retry loop: the conditional statement cannot
  lose an update, so there is nothing to retry. The CHECK constraints on
  the trips table remain the last line of defence.

Both operations run in the caller's transaction. If the caller fails after
a reservation (for example the ticket insert violates uq_ticket_trip_seat),
rolling the transaction back releases the seat along with everything else.
"""

from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.trip import Trip
from app.core.exceptions import NotFoundError, OverbookedError
from app.core.logging import get_logger
from app.core.metrics import record_inventory_operation

logger = get_logger(__name__)


@dataclass(frozen=True)
class TripSnapshot:
    trip_id: int
    total_seats: int
    available_seats: int


class InventoryController:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def reserve_seat(self, trip_id: int) -> TripSnapshot:
        """
        Take one seat from the trip.

        Raises:
            NotFoundError: the trip does not exist
            OverbookedError: no seat left
        """
        result = await self.db.execute(
            update(Trip)
            .where(Trip.id == trip_id, Trip.available_seats > 0)
            .values(available_seats=Trip.available_seats - 1)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            snapshot = await self._snapshot(trip_id)
            if snapshot is None:
                record_inventory_operation("reserve", "not_found")
                raise NotFoundError("Trip not found.")
            record_inventory_operation("reserve", "overbooked")
            logger.warning("seat_reserve_rejected", trip_id=trip_id, available=snapshot.available_seats)
            raise OverbookedError("Booking failed: No available seats on this trip.")

        snapshot = await self._snapshot(trip_id)
        if snapshot.available_seats < 0:
            # Only reachable on a store without CHECK support
            await self.db.execute(
                update(Trip)
                .where(Trip.id == trip_id, Trip.available_seats < 0)
                .values(available_seats=0)
                .execution_options(synchronize_session=False)
            )
            record_inventory_operation("reserve", "overbooked")
            logger.error("seat_counter_negative", trip_id=trip_id, available=snapshot.available_seats)
            raise OverbookedError("Booking failed due to concurrent update or over-booking attempt.")

        record_inventory_operation("reserve", "ok")
        logger.info("seat_reserved", trip_id=trip_id, available=snapshot.available_seats)
        return snapshot

    async def release_seat(self, trip_id: int) -> TripSnapshot:
        """
        Give one seat back to the trip, never exceeding its capacity.

        Raises:
            NotFoundError: the trip does not exist
        """
        result = await self.db.execute(
            update(Trip)
            .where(Trip.id == trip_id, Trip.available_seats < Trip.total_seats)
            .values(available_seats=Trip.available_seats + 1)
            .execution_options(synchronize_session=False)
        )

        snapshot = await self._snapshot(trip_id)
        if snapshot is None:
            record_inventory_operation("release", "not_found")
            raise NotFoundError("Trip not found.")

        if result.rowcount == 0:
            record_inventory_operation("release", "ceiling")
            logger.warning("seat_release_at_capacity", trip_id=trip_id, total=snapshot.total_seats)
            return snapshot

        record_inventory_operation("release", "ok")
        logger.info("seat_released", trip_id=trip_id, available=snapshot.available_seats)
        return snapshot

    async def _snapshot(self, trip_id: int):
        # populate_existing refreshes any Trip already in the identity map,
        # which the bulk UPDATE above does not touch
        result = await self.db.execute(
            select(Trip)
            .where(Trip.id == trip_id)
            .execution_options(populate_existing=True)
        )
        trip = result.scalar_one_or_none()
        if trip is None:
            return None
        return TripSnapshot(
            trip_id=trip.id,
            total_seats=trip.total_seats,
            available_seats=trip.available_seats,
        )
