from eventreg.schemas.user import UserCreate, UserResponse, UserLogin, Token
from eventreg.schemas.event import EventCreate, EventResponse, EventListResponse, EventSummary
from eventreg.schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingWithEventResponse,
    BookingCancelResponse,
)
from eventreg.schemas.review import ReviewCreate, ReviewResponse, ReviewListResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token",
    "EventCreate", "EventResponse", "EventListResponse", "EventSummary",
    "BookingCreate", "BookingResponse", "BookingWithEventResponse", "BookingCancelResponse",
    "ReviewCreate", "ReviewResponse", "ReviewListResponse",
]
