"""
Booking service: the seat-inventory reservation engine.

CONCURRENCY STRATEGY: Recompute + Conditional Version Bump
==========================================================

Problem:
  Remaining seats are `capacity - SUM(ticket_count of confirmed bookings)`.
  Two requests read the same sum, both see room for one more ticket, both
  insert. Result: overbooking.

Solution:
  Every write that changes an event's confirmed total goes through the
  event row's `version` column.

  Admission, per attempt:
  1. Read the event (capacity, deadline, version)
  2. SUM(ticket_count) WHERE event_id = :id AND status = 'confirmed'
  3. Reject with CapacityExceeded if the request does not fit
  4. UPDATE events SET version = version + 1
     WHERE id = :id AND version = :version_read_in_step_1
  5. rows_affected == 0 -> a concurrent admission or cancellation won;
     roll back and retry with fresh reads (bounded, then Contention)
  6. INSERT the booking and COMMIT in the same transaction as step 4

  Cancellation flips status confirmed -> cancelled with a guarded UPDATE and
  bumps the same version, so admissions that read the pre-cancel total
  retry instead of acting on it.

  On top of this the admission strategy can serialize attempts per event
  inside the process (see admission_service) so local requests do not
  burn retries against each other.
"""

import asyncio
import random
import time
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from eventreg.core.config import get_settings
from eventreg.core.exceptions import (
    CapacityExceeded,
    Contention,
    DeadlineExpired,
    Forbidden,
    InvalidRequest,
    NotFound,
    ReservationError,
)
from eventreg.core.logging import get_logger
from eventreg.core.metrics import (
    admission_latency,
    record_admission_retry,
    record_booking_attempt,
    record_cancellation,
)
from eventreg.core.security import Identity, normalize_email
from eventreg.db.base import as_utc, utcnow
from eventreg.models.booking import Booking, BookingStatus
from eventreg.models.event import Event
from eventreg.services.interfaces.admission import AdmissionStrategy

logger = get_logger(__name__)


async def total_active_tickets(db: AsyncSession, event_id: int) -> int:
    """Sum of ticket_count over the event's confirmed bookings."""
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.ticket_count), 0)).where(
            Booking.event_id == event_id,
            Booking.status == BookingStatus.CONFIRMED.value,
        )
    )
    return int(result.scalar_one())


async def remaining_seats(db: AsyncSession, event: Event) -> int:
    return event.capacity - await total_active_tickets(db, event.id)


def registration_closed(event: Event, now: Optional[datetime] = None) -> bool:
    if event.registration_deadline is None:
        return False
    return as_utc(event.registration_deadline) <= (now or utcnow())


async def _load_event(db: AsyncSession, event_id: int) -> Event:
    # populate_existing: a retry must see the version other writers committed
    result = await db.execute(
        select(Event).where(Event.id == event_id).execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if event is None:
        raise NotFound(f"Event {event_id} not found")
    return event


async def _claim_event_version(db: AsyncSession, event_id: int, expected_version: int) -> bool:
    result = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.version == expected_version)
        .values(version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def _attempt_admission(
    db: AsyncSession,
    event_id: int,
    user_email: str,
    ticket_count: int,
    contact_phone: Optional[str],
    payment_method: Optional[str],
) -> Optional[Booking]:
    """One read-check-write pass. Returns None when the version race was lost."""
    event = await _load_event(db, event_id)

    if registration_closed(event):
        raise DeadlineExpired(f"Registration for event {event_id} closed at {event.registration_deadline}")

    if ticket_count < 1:
        raise InvalidRequest("ticket_count must be at least 1")

    active = await total_active_tickets(db, event_id)
    remaining = event.capacity - active
    if ticket_count > remaining:
        logger.warning(
            "booking_rejected_capacity",
            event_id=event_id,
            requested=ticket_count,
            remaining=remaining,
        )
        raise CapacityExceeded(
            f"Not enough seats. Requested: {ticket_count}, Remaining: {max(remaining, 0)}"
        )

    if not await _claim_event_version(db, event_id, event.version):
        await db.rollback()
        return None

    booking = Booking(
        event_id=event_id,
        user_email=user_email,
        ticket_count=ticket_count,
        status=BookingStatus.CONFIRMED.value,
        contact_phone=contact_phone,
        payment_method=payment_method,
    )
    db.add(booking)
    await db.commit()
    await db.refresh(booking)
    return booking


async def book_tickets(
    db: AsyncSession,
    admission: AdmissionStrategy,
    event_id: int,
    user_email: str,
    ticket_count: int = 1,
    contact_phone: Optional[str] = None,
    payment_method: Optional[str] = None,
    max_attempts: Optional[int] = None,
) -> Booking:
    """
    Admit a booking request or reject it without touching the ledger.

    Preconditions are checked in order: event exists, registration still
    open, at least one ticket, enough remaining seats. Lost version races
    are retried up to `max_attempts` (BOOKING_MAX_RETRIES by default) with a
    short jittered backoff; exhaustion raises Contention.
    """
    settings = get_settings()
    attempts = max_attempts or settings.BOOKING_MAX_RETRIES
    if not user_email:
        raise InvalidRequest("user_email is required")

    started = time.perf_counter()
    try:
        for attempt in range(1, attempts + 1):
            async with admission.attempt(event_id):
                try:
                    booking = await _attempt_admission(
                        db, event_id, user_email, ticket_count, contact_phone, payment_method
                    )
                except Exception:
                    await db.rollback()
                    raise

            if booking is not None:
                record_booking_attempt("admitted")
                logger.info(
                    "booking_created",
                    booking_id=booking.id,
                    user_email=user_email,
                    event_id=event_id,
                    tickets=ticket_count,
                    attempt=attempt,
                    strategy=admission.name,
                )
                return booking

            record_admission_retry()
            logger.info(
                "booking_retry",
                event_id=event_id,
                attempt=attempt,
                reason="version_conflict",
            )
            if attempt < attempts:
                backoff_ms = settings.BOOKING_RETRY_BACKOFF_MS * attempt
                await asyncio.sleep(random.uniform(0, backoff_ms) / 1000)

        logger.warning("booking_contention", event_id=event_id, attempts=attempts)
        raise Contention()
    except ReservationError as e:
        record_booking_attempt(e.code)
        raise
    finally:
        admission_latency.observe(time.perf_counter() - started)


async def get_booking(db: AsyncSession, booking_id: int) -> Booking:
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
    )
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound(f"Booking {booking_id} not found")
    return booking


async def cancel_booking(
    db: AsyncSession,
    admission: AdmissionStrategy,
    booking_id: int,
    requester: Identity,
) -> Booking:
    """
    Move a booking from confirmed to cancelled.

    Cancelling an already-cancelled booking succeeds without changes. The
    freed seats need no separate bookkeeping: the next admission recomputes
    the confirmed total.
    """
    booking = await get_booking(db, booking_id)

    if not requester.can_act_for(booking.user_email):
        logger.warning("booking_cancel_forbidden", booking_id=booking_id, requester=requester.email)
        raise Forbidden("You can only cancel your own bookings")

    if booking.status == BookingStatus.CANCELLED.value:
        record_cancellation(already_cancelled=True)
        logger.info("booking_cancel_repeated", booking_id=booking_id)
        return booking

    async with admission.attempt(booking.event_id):
        try:
            result = await db.execute(
                update(Booking)
                .where(
                    Booking.id == booking_id,
                    Booking.status == BookingStatus.CONFIRMED.value,
                )
                .values(status=BookingStatus.CANCELLED.value, cancelled_at=utcnow(), updated_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            transitioned = result.rowcount == 1
            if transitioned:
                await db.execute(
                    update(Event)
                    .where(Event.id == booking.event_id)
                    .values(version=Event.version + 1)
                    .execution_options(synchronize_session=False)
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(booking)
    record_cancellation(already_cancelled=not transitioned)
    logger.info(
        "booking_cancelled",
        booking_id=booking.id,
        event_id=booking.event_id,
        requester=requester.email,
        seats_released=booking.ticket_count if transitioned else 0,
    )
    return booking


async def get_user_bookings(
    db: AsyncSession,
    email: str,
    requester: Identity,
) -> list[Booking]:
    """All bookings for `email`, newest first, with their event loaded."""
    email = normalize_email(email)
    if not requester.can_act_for(email):
        raise Forbidden("You can only list your own bookings")

    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.event))
        .where(Booking.user_email == email)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def has_booking(
    db: AsyncSession,
    user_email: str,
    event_id: int,
    active_only: bool = False,
) -> bool:
    """True if the user holds a booking for the event (any status unless active_only)."""
    query = select(Booking.id).where(
        Booking.user_email == user_email,
        Booking.event_id == event_id,
    )
    if active_only:
        query = query.where(Booking.status == BookingStatus.CONFIRMED.value)
    result = await db.execute(query.limit(1))
    return result.first() is not None
