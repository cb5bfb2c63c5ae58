"""
Pydantic schemas for ticket booking, update and cancellation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field


class TicketCreate(BaseModel):
    trip_id: int = Field(..., gt=0)
    passenger_id: int = Field(..., gt=0)
    seat_number: int = Field(..., gt=0)
    # Must equal the route fare; it is checked, never corrected
    fare: Decimal = Field(..., ge=0)


class TicketUpdate(BaseModel):
    passenger_id: Optional[int] = Field(None, gt=0)
    # Admin-only fields; silently dropped for other callers
    seat_number: Optional[int] = Field(None, gt=0)
    fare: Optional[Decimal] = Field(None, ge=0)
    journey_date: Optional[date] = None


class TicketResponse(BaseModel):
    id: int
    trip_id: int
    passenger_id: int
    journey_date: date
    seat_number: int
    fare: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class TicketCancelResponse(BaseModel):
    message: str
    ticket_id: int
    trip_id: int
    available_seats: int
