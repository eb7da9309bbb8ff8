"""
Review gate and review storage.

A user may review an event only if the reservation ledger holds a booking
for that (user, event) pair. Whether a cancelled booking still qualifies is
a policy setting (REVIEW_ELIGIBILITY):
  - "any_booking" (default): any booking, cancelled or not
  - "active_booking": only a confirmed booking
"""

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.config import get_settings
from eventreg.core.exceptions import InvalidRequest, NotEligible, NotFound
from eventreg.core.logging import get_logger
from eventreg.core.metrics import record_review_gate
from eventreg.core.security import Identity
from eventreg.models.event import Event
from eventreg.models.review import Review
from eventreg.services.booking_service import has_booking

logger = get_logger(__name__)

POLICY_ANY_BOOKING = "any_booking"
POLICY_ACTIVE_BOOKING = "active_booking"


async def may_review(
    db: AsyncSession,
    user_email: str,
    event_id: int,
    policy: Optional[str] = None,
) -> bool:
    policy = policy or get_settings().REVIEW_ELIGIBILITY
    if policy not in (POLICY_ANY_BOOKING, POLICY_ACTIVE_BOOKING):
        raise ValueError(f"Unknown review eligibility policy: {policy!r}")
    return await has_booking(
        db, user_email, event_id, active_only=policy == POLICY_ACTIVE_BOOKING
    )


async def submit_review(
    db: AsyncSession,
    event_id: int,
    reviewer: Identity,
    rating: int,
    comment: str,
    policy: Optional[str] = None,
) -> Review:
    event = await db.get(Event, event_id)
    if event is None:
        raise NotFound(f"Event {event_id} not found")

    if not 1 <= rating <= 5:
        raise InvalidRequest("rating must be between 1 and 5")
    if not comment or not comment.strip():
        raise InvalidRequest("comment is required")

    eligible = await may_review(db, reviewer.email, event_id, policy)
    record_review_gate(eligible)
    if not eligible:
        logger.info("review_rejected", event_id=event_id, user_email=reviewer.email)
        raise NotEligible()

    review = Review(
        event_id=event_id,
        user_email=reviewer.email,
        rating=rating,
        comment=comment.strip(),
    )
    db.add(review)
    await db.flush()
    await db.refresh(review)

    logger.info("review_submitted", review_id=review.id, event_id=event_id, rating=rating)
    return review


async def list_reviews(db: AsyncSession, event_id: int) -> tuple[list[Review], Optional[float]]:
    """Reviews for an event, newest first, plus the average rating."""
    if await db.get(Event, event_id) is None:
        raise NotFound(f"Event {event_id} not found")

    result = await db.execute(
        select(Review)
        .where(Review.event_id == event_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    reviews = list(result.scalars().all())

    average = (
        await db.execute(select(func.avg(Review.rating)).where(Review.event_id == event_id))
    ).scalar()
    return reviews, round(float(average), 2) if average is not None else None
