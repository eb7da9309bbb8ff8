"""
Booking model: one entry in the reservation ledger.

Key design decisions:
- Bookings are never deleted. Cancellation is a one-way status transition
  (confirmed -> cancelled) that keeps the history for auditing.
- `user_email` is a weak reference to the user; a user may hold several
  bookings for the same event.
- Composite index on (event_id, status) serves the confirmed-ticket sum the
  admission path runs on every request.
"""

import enum

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from eventreg.db.base import Base, TimestampMixin


class BookingStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_email = Column(String(255), nullable=False, index=True)
    ticket_count = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.CONFIRMED.value)
    contact_phone = Column(String(32), nullable=True)
    payment_method = Column(String(50), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Loaded explicitly (selectinload) where an event summary is needed
    event = relationship("Event", lazy="raise")

    __table_args__ = (
        CheckConstraint("ticket_count > 0", name="check_booking_ticket_count_positive"),
        CheckConstraint("status IN ('confirmed', 'cancelled')", name="check_booking_status"),
        Index("ix_bookings_event_status", "event_id", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.CONFIRMED.value

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, event={self.event_id}, user={self.user_email}, "
            f"tickets={self.ticket_count}, status={self.status})>"
        )
