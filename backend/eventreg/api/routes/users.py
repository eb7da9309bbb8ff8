"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.security import Identity, get_current_identity, require_admin
from eventreg.db.session import get_db
from eventreg.schemas.user import UserResponse
from eventreg.services.auth_service import get_profile, list_users

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def read_me(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await get_profile(db, identity.email, identity)


@router.get("/{email}", response_model=UserResponse)
async def read_user(
    email: str,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Profile lookup by email. Owner or admin only."""
    return await get_profile(db, email, identity)


@router.get("/", response_model=list[UserResponse])
async def read_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """All user accounts. Administrators only."""
    return await list_users(db, page, page_size)
