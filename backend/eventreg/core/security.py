"""
Identity resolution: password hashing, JWT issuing and the request
dependencies that turn a bearer token into an `Identity`.

Admins are ordinary user records with role "admin"; there is no shared
admin password anywhere in the service.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventreg.core.config import get_settings
from eventreg.core.exceptions import Forbidden, Unauthenticated
from eventreg.db.session import get_db
from eventreg.models.user import ROLE_ADMIN, User

bearer_scheme = HTTPBearer(auto_error=False)


def normalize_email(email: str) -> str:
    """Canonical form of an account email. Stored, compared and looked up this way."""
    return email.strip().lower()


@dataclass(frozen=True)
class Identity:
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def can_act_for(self, email: str) -> bool:
        """Owners act on their own records; admins act on anyone's."""
        return self.is_admin or self.email == normalize_email(email)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    payload = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload["exp"] = expire
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError as e:
        raise Unauthenticated() from e


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> Identity:
    """Resolve the caller. The role is read from the user record, not the token."""
    if credentials is None:
        raise Unauthenticated("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    email = payload.get("sub")
    if not email:
        raise Unauthenticated()

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise Unauthenticated()

    return Identity(email=user.email, role=user.role)


async def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        raise Forbidden("Administrator role required")
    return identity
