"""
Event catalog service: create, fetch and list events.

Remaining seats are derived from the reservation ledger on every read,
the same way the admission path derives them.
"""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.exceptions import InvalidRequest, NotFound
from eventreg.core.logging import get_logger
from eventreg.core.security import Identity
from eventreg.models.booking import Booking, BookingStatus
from eventreg.models.event import Event
from eventreg.schemas.event import EventCreate
from eventreg.services.booking_service import remaining_seats

logger = get_logger(__name__)


async def create_event(db: AsyncSession, event_data: EventCreate, admin: Identity) -> Event:
    """Create a new event. Capacity is fixed at creation."""
    if event_data.date <= datetime.now(timezone.utc):
        raise InvalidRequest("Event date must be in the future")

    if event_data.registration_deadline and event_data.registration_deadline > event_data.date:
        raise InvalidRequest("Registration deadline must not be after the event date")

    event = Event(
        title=event_data.title,
        description=event_data.description,
        date=event_data.date,
        location=event_data.location,
        capacity=event_data.capacity,
        registration_deadline=event_data.registration_deadline,
        registration_fee=event_data.registration_fee,
        version=1,
    )
    db.add(event)
    await db.flush()
    await db.refresh(event)

    logger.info(
        "event_created",
        event_id=event.id,
        title=event.title,
        capacity=event.capacity,
        created_by=admin.email,
    )
    return event


async def get_event(db: AsyncSession, event_id: int) -> tuple[Event, int]:
    """Get a single event by ID together with its remaining seats."""
    result = await db.execute(select(Event).where(Event.id == event_id))
    event = result.scalar_one_or_none()

    if not event:
        raise NotFound(f"Event {event_id} not found")
    return event, await remaining_seats(db, event)


async def list_events(
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    upcoming_only: bool = True,
) -> tuple[list[tuple[Event, int]], int]:
    """
    List events with pagination, each paired with its remaining seats.
    The confirmed totals come from one grouped subquery, not one query per event.
    """
    reserved = (
        select(
            Booking.event_id.label("event_id"),
            func.sum(Booking.ticket_count).label("reserved"),
        )
        .where(Booking.status == BookingStatus.CONFIRMED.value)
        .group_by(Booking.event_id)
        .subquery()
    )

    filtered = select(Event.id)
    if upcoming_only:
        filtered = filtered.where(Event.date >= datetime.now(timezone.utc))
    total = (await db.execute(select(func.count()).select_from(filtered.subquery()))).scalar()

    query = (
        select(Event, func.coalesce(reserved.c.reserved, 0))
        .outerjoin(reserved, reserved.c.event_id == Event.id)
    )
    if upcoming_only:
        query = query.where(Event.date >= datetime.now(timezone.utc))
    query = query.order_by(Event.date.asc(), Event.id.asc()).offset((page - 1) * page_size).limit(page_size)

    rows = (await db.execute(query)).all()
    return [(event, event.capacity - int(active)) for event, active in rows], total
