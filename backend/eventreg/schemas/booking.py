"""
Pydantic schemas for booking-related request/response validation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from eventreg.schemas.event import EventSummary


class BookingCreate(BaseModel):
    event_id: int
    # Range checked by the booking service, after the event lookup
    ticket_count: int = 1
    contact_phone: Optional[str] = Field(None, max_length=32)
    payment_method: Optional[str] = Field(None, max_length=50)


class BookingResponse(BaseModel):
    id: int
    event_id: int
    user_email: str
    ticket_count: int
    status: str
    contact_phone: Optional[str] = None
    payment_method: Optional[str] = None
    created_at: datetime
    cancelled_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingWithEventResponse(BookingResponse):
    event: EventSummary


class BookingCancelResponse(BaseModel):
    message: str
    booking_id: int
    status: str
