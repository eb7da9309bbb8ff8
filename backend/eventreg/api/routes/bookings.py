"""
Booking endpoints backed by the reservation engine.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.api.deps import get_admission
from eventreg.core.security import Identity, get_current_identity
from eventreg.db.session import get_db
from eventreg.schemas.booking import (
    BookingCancelResponse,
    BookingCreate,
    BookingResponse,
    BookingWithEventResponse,
)
from eventreg.services.booking_service import book_tickets, cancel_booking, get_user_bookings
from eventreg.services.cache_service import invalidate_event_cache
from eventreg.services.interfaces.admission import AdmissionStrategy

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    identity: Identity = Depends(get_current_identity),
    admission: AdmissionStrategy = Depends(get_admission),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve tickets for an event as the authenticated user.

    Rejections: 404 unknown event, 410 registration closed, 409 not enough
    seats, 503 (Retry-After) if concurrent writers kept winning the race.
    """
    booking = await book_tickets(
        db,
        admission,
        event_id=booking_data.event_id,
        user_email=identity.email,
        ticket_count=booking_data.ticket_count,
        contact_phone=booking_data.contact_phone,
        payment_method=booking_data.payment_method,
    )
    await invalidate_event_cache()
    return booking


@router.delete("/{booking_id}", response_model=BookingCancelResponse)
async def cancel_booking_endpoint(
    booking_id: int,
    identity: Identity = Depends(get_current_identity),
    admission: AdmissionStrategy = Depends(get_admission),
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking. Repeating the call on a cancelled booking is a no-op."""
    booking = await cancel_booking(db, admission, booking_id, identity)
    await invalidate_event_cache()
    return BookingCancelResponse(
        message="Booking cancelled",
        booking_id=booking.id,
        status=booking.status,
    )


@router.get("/", response_model=list[BookingWithEventResponse])
async def list_my_bookings(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of the authenticated user, newest first."""
    return await get_user_bookings(db, identity.email, identity)


@router.get("/user/{email}", response_model=list[BookingWithEventResponse])
async def list_user_bookings(
    email: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Bookings of any user. Owner or admin only."""
    return await get_user_bookings(db, email, identity)
