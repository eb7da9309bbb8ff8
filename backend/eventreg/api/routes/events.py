"""
Event endpoints with Redis caching on list operations.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.logging import get_logger
from eventreg.core.security import Identity, require_admin
from eventreg.db.session import get_db
from eventreg.models.event import Event
from eventreg.schemas.event import EventCreate, EventListResponse, EventResponse
from eventreg.services.cache_service import (
    get_cached_events,
    invalidate_event_cache,
    set_cached_events,
)
from eventreg.services.event_service import create_event, get_event, list_events

logger = get_logger(__name__)
router = APIRouter(prefix="/events", tags=["Events"])


def _to_response(event: Event, remaining: int) -> EventResponse:
    return EventResponse.model_validate(event).model_copy(update={"remaining_seats": remaining})


@router.post("/", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    event_data: EventCreate,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Publish a new event. Administrators only."""
    event = await create_event(db, event_data, admin)
    await invalidate_event_cache()
    return _to_response(event, event.capacity)


@router.get("/", response_model=EventListResponse)
async def list_events_endpoint(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    upcoming_only: bool = Query(True),
    db: AsyncSession = Depends(get_db),
):
    """
    List events with pagination.
    Results are cached in Redis; any booking change invalidates them.
    """
    cached = await get_cached_events(page, page_size, upcoming_only)
    if cached:
        logger.info("events_list_cache_hit", page=page)
        cached["cached"] = True
        return EventListResponse(**cached)

    rows, total = await list_events(db, page, page_size, upcoming_only)

    response_data = {
        "events": [_to_response(event, remaining).model_dump(mode="json") for event, remaining in rows],
        "total": total,
        "page": page,
        "page_size": page_size,
        "cached": False,
    }
    await set_cached_events(page, page_size, upcoming_only, response_data)

    return EventListResponse(**response_data)


@router.get("/{event_id}", response_model=EventResponse)
async def get_event_endpoint(
    event_id: int,
    db: AsyncSession = Depends(get_db),
):
    """Get a single event with live remaining seats. Not cached."""
    event, remaining = await get_event(db, event_id)
    return _to_response(event, remaining)
