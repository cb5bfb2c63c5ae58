"""
Ticket endpoints: booking, cancellation and ticket lookup.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.ticket import TicketCreate, TicketUpdate, TicketResponse, TicketCancelResponse
from app.services.access_policy import CallerIdentity
from app.services.booking_service import book_seat, cancel_ticket, get_ticket, list_tickets, update_ticket
from app.services.cache_service import invalidate_trip_cache
from app.core.security import get_current_identity

router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.post("/", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
async def book_ticket(
    booking_data: TicketCreate,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Book one seat on a trip for a passenger you own.

    The seat counter is decremented with a conditional UPDATE, so two
    riders racing for the last seat cannot both succeed: the loser gets 409.
    """
    ticket = await book_seat(db, booking_data, identity)
    # Search results show available_seats
    await invalidate_trip_cache()
    return ticket


@router.get("/", response_model=list[TicketResponse])
async def list_tickets_endpoint(
    trip_id: Optional[int] = Query(None, gt=0),
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Tickets visible to the caller, optionally for a single trip."""
    return await list_tickets(db, identity, trip_id)


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket_endpoint(
    ticket_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_ticket(db, ticket_id, identity)


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket_endpoint(
    ticket_id: int,
    ticket_data: TicketUpdate,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Seat, fare and journey date changes are applied for admins only."""
    return await update_ticket(db, ticket_id, ticket_data, identity)


@router.delete("/{ticket_id}", response_model=TicketCancelResponse)
async def cancel_ticket_endpoint(
    ticket_id: int,
    identity: CallerIdentity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a ticket and release its seat back to the trip."""
    snapshot = await cancel_ticket(db, ticket_id, identity)
    await invalidate_trip_cache()
    return TicketCancelResponse(
        message="Ticket cancelled successfully. Seat restored.",
        ticket_id=ticket_id,
        trip_id=snapshot.trip_id,
        available_seats=snapshot.available_seats,
    )
