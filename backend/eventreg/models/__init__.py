from eventreg.models.user import User
from eventreg.models.event import Event
from eventreg.models.booking import Booking, BookingStatus
from eventreg.models.review import Review

__all__ = ["User", "Event", "Booking", "BookingStatus", "Review"]
