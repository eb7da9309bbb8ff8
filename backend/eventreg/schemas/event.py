"""
Pydantic schemas for event-related request/response validation.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from eventreg.db.base import as_utc


class EventCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    date: datetime
    location: Optional[str] = Field(None, max_length=255)
    capacity: int = Field(..., ge=0, le=100000)
    registration_deadline: Optional[datetime] = None
    registration_fee: Decimal = Field(Decimal("0"), ge=0, max_digits=10, decimal_places=2)

    @field_validator("date", "registration_deadline")
    @classmethod
    def normalize_to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        # Naive timestamps are taken as UTC
        return as_utc(value) if value is not None else None


class EventSummary(BaseModel):
    id: int
    title: str
    date: datetime
    location: Optional[str]

    model_config = {"from_attributes": True}


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    date: datetime
    location: Optional[str]
    capacity: int
    remaining_seats: int = 0
    registration_deadline: Optional[datetime]
    registration_fee: Decimal
    created_at: datetime

    model_config = {"from_attributes": True}


class EventListResponse(BaseModel):
    events: list[EventResponse]
    total: int
    page: int
    page_size: int
    cached: bool = False
