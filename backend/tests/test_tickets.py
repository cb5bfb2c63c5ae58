"""
Tests for booking, cancellation and ticket management.
"""

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.models.ticket import Ticket


async def _book(client: AsyncClient, headers: dict, trip_id: int, passenger_id: int, seat: int, fare=500):
    return await client.post(
        "/api/v1/tickets/",
        json={"trip_id": trip_id, "passenger_id": passenger_id, "seat_number": seat, "fare": fare},
        headers=headers,
    )


async def _available(db_session, trip) -> int:
    await db_session.refresh(trip)
    return trip.available_seats


async def _ticket_count(db_session, trip_id: int) -> int:
    result = await db_session.execute(select(func.count()).select_from(Ticket).where(Ticket.trip_id == trip_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_book_ticket(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    """A successful booking takes exactly one seat and snapshots fare and date."""
    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=7)
    assert response.status_code == 201
    data = response.json()
    assert data["seat_number"] == 7
    assert data["journey_date"] == test_trip.date.isoformat()
    assert float(data["fare"]) == 500.0

    assert await _available(db_session, test_trip) == 39


@pytest.mark.asyncio
async def test_fare_mismatch_rejected(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1, fare=450)
    assert response.status_code == 400
    assert response.json()["message"] == "Fare mismatch. Expected $500.00."

    assert await _available(db_session, test_trip) == 40
    assert await _ticket_count(db_session, test_trip.id) == 0


@pytest.mark.asyncio
async def test_seat_out_of_range(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=41)
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid seat number. Max seats is 40."
    assert await _available(db_session, test_trip) == 40


@pytest.mark.asyncio
async def test_seat_zero_is_a_validation_error(client: AsyncClient, auth_headers, test_trip, test_passenger):
    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=0)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_seat_already_taken(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=3)
    assert response.status_code == 201

    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=3)
    assert response.status_code == 409
    assert response.json()["message"] == "Seat number 3 is already booked on this trip."

    assert await _available(db_session, test_trip) == 39
    assert await _ticket_count(db_session, test_trip.id) == 1


@pytest.mark.asyncio
async def test_sold_out_trip(client: AsyncClient, auth_headers, sold_out_trip, test_passenger):
    response = await _book(client, auth_headers, sold_out_trip.id, test_passenger.id, seat=1)
    assert response.status_code == 409
    assert "No available seats" in response.json()["message"]


@pytest.mark.asyncio
async def test_last_seat_then_sold_out(client: AsyncClient, db_session, auth_headers, single_seat_trip, test_passenger):
    response = await _book(client, auth_headers, single_seat_trip.id, test_passenger.id, seat=1)
    assert response.status_code == 201
    assert await _available(db_session, single_seat_trip) == 0

    response = await _book(client, auth_headers, single_seat_trip.id, test_passenger.id, seat=1)
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_book_for_unowned_passenger(client: AsyncClient, db_session, auth_headers, test_trip, other_passenger):
    response = await _book(client, auth_headers, test_trip.id, other_passenger.id, seat=1)
    assert response.status_code == 403
    assert response.json()["message"] == "You do not own this passenger record."
    assert await _available(db_session, test_trip) == 40


@pytest.mark.asyncio
async def test_admin_books_for_any_passenger(client: AsyncClient, admin_headers, test_trip, other_passenger):
    response = await _book(client, admin_headers, test_trip.id, other_passenger.id, seat=1)
    assert response.status_code == 201


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["trip", "passenger"])
async def test_book_missing_record(client: AsyncClient, auth_headers, test_trip, test_passenger, missing):
    trip_id = 99999 if missing == "trip" else test_trip.id
    passenger_id = 99999 if missing == "passenger" else test_passenger.id
    response = await _book(client, auth_headers, trip_id, passenger_id, seat=1)
    assert response.status_code == 404
    assert response.json()["message"] == "Trip, Bus, or Passenger record not found."


@pytest.mark.asyncio
async def test_book_unauthenticated(client: AsyncClient, test_trip, test_passenger):
    response = await _book(client, {}, test_trip.id, test_passenger.id, seat=1)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_cancel_restores_seat(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    """Cancelling returns the seat; the same seat can then be booked again."""
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=5)
    ticket_id = booked.json()["id"]

    response = await client.delete(f"/api/v1/tickets/{ticket_id}", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["ticket_id"] == ticket_id
    assert data["trip_id"] == test_trip.id
    assert data["available_seats"] == 40

    response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=5)
    assert response.status_code == 201
    assert await _available(db_session, test_trip) == 39


@pytest.mark.asyncio
async def test_counter_matches_tickets(client: AsyncClient, db_session, auth_headers, test_trip, test_passenger):
    """After any mix of bookings, failures and cancellations, seats add up."""
    ticket_ids = []
    for seat in (1, 2, 3, 4):
        response = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=seat)
        ticket_ids.append(response.json()["id"])

    await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=2)
    await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=9, fare=1)
    await client.delete(f"/api/v1/tickets/{ticket_ids[0]}", headers=auth_headers)

    available = await _available(db_session, test_trip)
    assert available == 37
    assert available + await _ticket_count(db_session, test_trip.id) == test_trip.total_seats


@pytest.mark.asyncio
async def test_cancel_by_non_owner(client: AsyncClient, db_session, auth_headers, other_headers, test_trip, test_passenger):
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)

    response = await client.delete(f"/api/v1/tickets/{booked.json()['id']}", headers=other_headers)
    assert response.status_code == 403
    assert await _available(db_session, test_trip) == 39


@pytest.mark.asyncio
async def test_cancel_not_found(client: AsyncClient, auth_headers):
    response = await client.delete("/api/v1/tickets/99999", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_list_tickets_scoped(
    client: AsyncClient,
    auth_headers,
    other_headers,
    admin_headers,
    test_trip,
    single_seat_trip,
    test_passenger,
    other_passenger,
):
    mine = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)
    await _book(client, other_headers, test_trip.id, other_passenger.id, seat=2)
    await _book(client, auth_headers, single_seat_trip.id, test_passenger.id, seat=1)

    response = await client.get("/api/v1/tickets/", params={"trip_id": test_trip.id}, headers=auth_headers)
    assert response.status_code == 200
    assert [t["id"] for t in response.json()] == [mine.json()["id"]]

    response = await client.get("/api/v1/tickets/", params={"trip_id": test_trip.id}, headers=admin_headers)
    assert [t["seat_number"] for t in response.json()] == [1, 2]

    response = await client.get("/api/v1/tickets/", headers=admin_headers)
    assert len(response.json()) == 3


@pytest.mark.asyncio
async def test_get_ticket(client: AsyncClient, auth_headers, other_headers, test_trip, test_passenger):
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)
    url = f"/api/v1/tickets/{booked.json()['id']}"

    response = await client.get(url, headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["passenger_id"] == test_passenger.id

    response = await client.get(url, headers=other_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_rider_update_ignores_admin_fields(client: AsyncClient, auth_headers, test_trip, test_passenger):
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)

    response = await client.put(
        f"/api/v1/tickets/{booked.json()['id']}",
        json={"seat_number": 10, "fare": 1},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["seat_number"] == 1
    assert float(data["fare"]) == 500.0


@pytest.mark.asyncio
async def test_rider_reassigns_to_own_passenger(client: AsyncClient, auth_headers, test_trip, test_passenger):
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)
    created = await client.post(
        "/api/v1/passengers/",
        json={"name": "Ravi Rao", "age": 8, "gender": "Male", "contact": "+91-9000000001"},
        headers=auth_headers,
    )
    new_passenger_id = created.json()["id"]

    response = await client.put(
        f"/api/v1/tickets/{booked.json()['id']}",
        json={"passenger_id": new_passenger_id},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["passenger_id"] == new_passenger_id


@pytest.mark.asyncio
async def test_rider_cannot_reassign_to_unowned_passenger(
    client: AsyncClient, auth_headers, test_trip, test_passenger, other_passenger
):
    booked = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)

    response = await client.put(
        f"/api/v1/tickets/{booked.json()['id']}",
        json={"passenger_id": other_passenger.id},
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_moves_seat(client: AsyncClient, db_session, auth_headers, admin_headers, test_trip, test_passenger):
    first = await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)
    await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=2)
    url = f"/api/v1/tickets/{first.json()['id']}"

    response = await client.put(url, json={"seat_number": 2}, headers=admin_headers)
    assert response.status_code == 409

    response = await client.put(url, json={"seat_number": 41}, headers=admin_headers)
    assert response.status_code == 400

    response = await client.put(url, json={"seat_number": 12}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["seat_number"] == 12

    # Moving a seat within a trip leaves the counter alone
    assert await _available(db_session, test_trip) == 38


@pytest.mark.asyncio
async def test_delete_trip_with_ticket_blocked(client: AsyncClient, auth_headers, admin_headers, test_trip, test_passenger):
    await _book(client, auth_headers, test_trip.id, test_passenger.id, seat=1)

    response = await client.delete(f"/api/v1/trips/{test_trip.id}", headers=admin_headers)
    assert response.status_code == 409
    assert "Existing tickets" in response.json()["message"]
