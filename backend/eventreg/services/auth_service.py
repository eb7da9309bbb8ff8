"""
Authentication service handling user registration, login and the admin
bootstrap.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.exceptions import Conflict, Forbidden, NotFound, Unauthenticated
from eventreg.core.logging import get_logger
from eventreg.core.security import (
    Identity,
    create_access_token,
    hash_password,
    normalize_email,
    verify_password,
)
from eventreg.models.user import ROLE_ADMIN, ROLE_USER, User
from eventreg.schemas.user import UserCreate, UserLogin

logger = get_logger(__name__)


async def get_user_by_email(db: AsyncSession, email: str):
    result = await db.execute(select(User).where(User.email == normalize_email(email)))
    return result.scalar_one_or_none()


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with a hashed password.
    Self-registration always yields role "user".
    """
    if await get_user_by_email(db, user_data.email):
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise Conflict("Email already registered")

    user = User(
        email=user_data.email,
        name=user_data.name,
        hashed_password=hash_password(user_data.password),
        role=ROLE_USER,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email)
    return user


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> str:
    """
    Authenticate user and return JWT access token.
    Raises 401 if credentials are invalid.
    """
    user = await get_user_by_email(db, login_data.email)

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise Unauthenticated("Invalid email or password")

    if not user.is_active:
        raise Forbidden("Account is deactivated")

    token = create_access_token(data={"sub": user.email, "role": user.role})
    logger.info("user_logged_in", user_id=user.id, role=user.role)
    return token


async def get_profile(db: AsyncSession, email: str, requester: Identity) -> User:
    if not requester.can_act_for(email):
        raise Forbidden("You can only view your own profile")
    user = await get_user_by_email(db, email)
    if user is None:
        raise NotFound("User not found")
    return user


async def ensure_admin(db: AsyncSession, email: str, password_hash: str) -> User:
    """
    Make sure an admin account exists for `email`.

    The password arrives already bcrypt-hashed (from settings); an existing
    user is promoted rather than overwritten.
    """
    email = normalize_email(email)
    user = await get_user_by_email(db, email)
    if user is None:
        user = User(
            email=email,
            name="Administrator",
            hashed_password=password_hash,
            role=ROLE_ADMIN,
        )
        db.add(user)
        logger.info("admin_bootstrapped", email=email)
    elif user.role != ROLE_ADMIN:
        user.role = ROLE_ADMIN
        logger.info("admin_promoted", email=email)
    await db.flush()
    return user


async def list_users(db: AsyncSession, page: int = 1, page_size: int = 50) -> list[User]:
    """All accounts ordered by id. Callers must restrict this to admins."""
    result = await db.execute(
        select(User).order_by(User.id.asc()).offset((page - 1) * page_size).limit(page_size)
    )
    return list(result.scalars().all())
