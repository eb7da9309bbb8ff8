"""
Review endpoints, nested under events.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.security import Identity, get_current_identity
from eventreg.db.session import get_db
from eventreg.schemas.review import ReviewCreate, ReviewListResponse, ReviewResponse
from eventreg.services.review_service import list_reviews, submit_review

router = APIRouter(prefix="/events/{event_id}/reviews", tags=["Reviews"])


@router.post("/", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def submit_review_endpoint(
    event_id: int,
    review_data: ReviewCreate,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Review an event. Requires a booking for it (400 otherwise)."""
    return await submit_review(db, event_id, identity, review_data.rating, review_data.comment)


@router.get("/", response_model=ReviewListResponse)
async def list_reviews_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    reviews, average = await list_reviews(db, event_id)
    return ReviewListResponse(
        reviews=[ReviewResponse.model_validate(review) for review in reviews],
        average_rating=average,
        total=len(reviews),
    )
