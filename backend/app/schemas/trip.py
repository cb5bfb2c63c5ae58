"""
Pydantic schemas for trips and the trip read-side projection.
"""

from datetime import date as date_type
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

DEPARTURE_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TripCreate(BaseModel):
    route_id: int = Field(..., gt=0)
    date: date_type
    departure_time: str = Field(..., pattern=DEPARTURE_TIME_PATTERN)


class TripUpdate(BaseModel):
    # available_seats and total_seats are owned by the inventory controller
    date: Optional[date_type] = None
    departure_time: Optional[str] = Field(None, pattern=DEPARTURE_TIME_PATTERN)


class TripResponse(BaseModel):
    id: int
    route_id: int
    date: date_type
    departure_time: str
    total_seats: int
    available_seats: int

    model_config = {"from_attributes": True}


class BusDetails(BaseModel):
    category: str
    total_seats: int


class TripView(BaseModel):
    """Trip joined with its route, as shown to riders."""

    id: int
    route_id: int
    source: str
    destination: str
    date: date_type
    departure_time: str
    available_seats: int
    fare: Decimal
    bus_details: BusDetails
