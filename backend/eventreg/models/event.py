"""
Event model: the catalog record the reservation engine reads.

Key design decisions:
- Remaining seats are never stored. They are `capacity` minus the sum of
  confirmed bookings, recomputed from the ledger on every admission.
- `version` is the per-event concurrency token. Every admission and every
  cancellation bumps it with a conditional UPDATE, so all writers that
  affect an event's seat count are ordered through this one row.
- Index on `date` for range queries (upcoming events).
"""

from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, Numeric, String

from eventreg.db.base import Base, TimestampMixin


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=False)
    registration_deadline = Column(DateTime(timezone=True), nullable=True)
    registration_fee = Column(Numeric(10, 2), nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_capacity_non_negative"),
        CheckConstraint("registration_fee >= 0", name="check_registration_fee_non_negative"),
        Index("ix_events_date", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, capacity={self.capacity}, version={self.version})>"
