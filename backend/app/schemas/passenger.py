"""
Pydantic schemas for passengers.
"""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

Gender = Literal["Male", "Female", "Other"]


class PassengerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    age: int = Field(..., ge=1, le=150)
    gender: Gender
    contact: str = Field(..., min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)


class PassengerUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    age: Optional[int] = Field(None, ge=1, le=150)
    gender: Optional[Gender] = None
    contact: Optional[str] = Field(None, min_length=1, max_length=100)
    address: Optional[str] = Field(None, max_length=500)


class PassengerResponse(BaseModel):
    id: int
    name: str
    age: int
    gender: str
    contact: str
    address: Optional[str]
    owner_id: int
    created_at: datetime

    model_config = {"from_attributes": True}
