"""
Identity provider for OrgHub.

Supports:
- Email/password credentials (bcrypt)
- Server-side session rows, referenced by a signed JWT carried in the
  ``oh_session`` cookie or an ``Authorization: Bearer`` header
- "Current authenticated user" lookups, throwing and non-throwing
"""

from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import UnauthorizedError
from app.models.auth_session import AuthSession
from app.models.base import as_utc, utcnow
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "oh_session"
CSRF_COOKIE = "oh_csrf"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def create_session_token(
    user_id: uuid.UUID,
    session_id: uuid.UUID,
    *,
    expires_at: datetime | None = None,
) -> str:
    """Sign a token that points at a session row."""
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": now,
        "exp": expires_at or now + timedelta(minutes=settings.session_expire_minutes),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> dict:
    """Decode and verify a session token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

@dataclass
class AuthenticatedUser:
    """An authenticated user together with the session the request arrived on."""

    user: User
    session: AuthSession

    @property
    def user_id(self) -> uuid.UUID:
        return self.user.id

    @property
    def active_organization_id(self) -> Optional[uuid.UUID]:
        return self.session.active_organization_id


async def open_session(
    db: AsyncSession,
    user: User,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuthSession:
    """Create a session row for a freshly signed-in user. No organization is active yet."""
    record = AuthSession(
        user_id=user.id,
        expires_at=utcnow() + timedelta(minutes=settings.session_expire_minutes),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(record)
    await db.flush()
    log.info("session.opened", session_id=str(record.id), user_id=str(user.id))
    return record


async def close_session(db: AsyncSession, session_id: uuid.UUID) -> None:
    """Destroy a session row (sign-out)."""
    record = await db.get(AuthSession, session_id)
    if record is not None:
        await db.delete(record)
        await db.flush()
        log.info("session.closed", session_id=str(session_id), user_id=str(record.user_id))


async def load_authenticated_user(
    db: AsyncSession, session_id: uuid.UUID, user_id: uuid.UUID | None = None
) -> Optional[AuthenticatedUser]:
    """Load a live session and its user, re-reading both rows from the database."""
    result = await db.execute(
        select(AuthSession)
        .where(AuthSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    record = result.scalar_one_or_none()
    if record is None:
        return None
    if user_id is not None and record.user_id != user_id:
        return None
    if as_utc(record.expires_at) <= utcnow():
        return None

    user = await db.get(User, record.user_id)
    if user is None:
        return None
    return AuthenticatedUser(user=user, session=record)


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(SESSION_COOKIE)


async def safe_get_auth_user(request: Request, db: AsyncSession) -> Optional[AuthenticatedUser]:
    """Current authenticated user, or None for signed-out requests."""
    token = _extract_token(request)
    if not token:
        return None
    try:
        payload = decode_session_token(token)
        session_id = uuid.UUID(payload["sid"])
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, KeyError, ValueError):
        return None
    return await load_authenticated_user(db, session_id, user_id)


async def get_auth_user(request: Request, db: AsyncSession) -> AuthenticatedUser:
    """Current authenticated user; raises UNAUTHORIZED when there is none."""
    auth = await safe_get_auth_user(request, db)
    if auth is None:
        raise UnauthorizedError()
    return auth


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

async def optional_auth_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> Optional[AuthenticatedUser]:
    return await safe_get_auth_user(request, db)


async def require_auth_user(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    return await get_auth_user(request, db)
