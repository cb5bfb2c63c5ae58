"""
Pydantic schemas for bus routes.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from pydantic import BaseModel, Field

RouteCategory = Literal["AC", "Non-AC", "Sleeper", "Deluxe"]


class RouteCreate(BaseModel):
    category: RouteCategory
    source: str = Field(..., min_length=1, max_length=255)
    destination: str = Field(..., min_length=1, max_length=255)
    total_seats: int = Field(..., ge=1, le=1000)
    fare: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class RouteUpdate(BaseModel):
    category: Optional[RouteCategory] = None
    source: Optional[str] = Field(None, min_length=1, max_length=255)
    destination: Optional[str] = Field(None, min_length=1, max_length=255)
    total_seats: Optional[int] = Field(None, ge=1, le=1000)
    fare: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)


class RouteResponse(BaseModel):
    id: int
    category: str
    source: str
    destination: str
    total_seats: int
    fare: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}
