"""
Authentication endpoints.

- Email/password sign-up and sign-in
- Server-side sessions carried in the ``oh_session`` cookie (or a bearer token)
- Sign-out destroys the session row
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import ConflictError, UnauthorizedError
from app.core.identity import (
    CSRF_COOKIE,
    SESSION_COOKIE,
    AuthenticatedUser,
    close_session,
    create_session_token,
    generate_csrf_token,
    hash_password,
    open_session,
    optional_auth_user,
    require_auth_user,
    verify_password,
)
from app.models.auth_session import AuthSession
from app.models.user import User
from orghub_shared.schemas.common import OkResponse
from orghub_shared.schemas.users import (
    AuthResponse,
    SessionRead,
    SignInRequest,
    SignUpRequest,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.session_expire_minutes * 60,
}


def _set_session_cookies(response: Response, token: str, csrf: str) -> None:
    """Set the session token and CSRF cookies on a response."""
    response.set_cookie(key=SESSION_COOKIE, value=token, httponly=True, **COOKIE_KWARGS)
    response.set_cookie(key=CSRF_COOKIE, value=csrf, httponly=False, **COOKIE_KWARGS)  # JS must read this


async def _start_session(
    request: Request, response: Response, db: AsyncSession, user: User
) -> AuthSession:
    record = await open_session(
        db,
        user,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("User-Agent"),
    )
    token = create_session_token(user.id, record.id, expires_at=record.expires_at)
    _set_session_cookies(response, token, generate_csrf_token())
    return record


@router.post("/sign-up", response_model=AuthResponse, status_code=201)
async def sign_up(
    body: SignUpRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
):
    """Register with email/password. The new session has no active organization."""
    email = body.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email already registered")

    user = User(
        email=email,
        name=body.name,
        image=body.image,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    await db.flush()

    await _start_session(request, response, db, user)

    log.info("auth.sign_up", user_id=str(user.id), email=email)
    return AuthResponse(user_id=str(user.id), email=email, message="Registration successful")


@router.post("/sign-in", response_model=AuthResponse)
async def sign_in(
    body: SignInRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_session),
):
    """Authenticate with email/password and open a new session."""
    email = body.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if not user or not user.password_hash:
        raise UnauthorizedError("Invalid email or password")

    if not verify_password(body.password, user.password_hash):
        log.warning("auth.sign_in_failure", email=email, reason="bad_password")
        raise UnauthorizedError("Invalid email or password")

    await _start_session(request, response, db, user)

    log.info("auth.sign_in", user_id=str(user.id), email=email)
    return AuthResponse(user_id=str(user.id), email=email, message="Sign-in successful")


@router.post("/sign-out", response_model=OkResponse)
async def sign_out(
    response: Response,
    auth: Optional[AuthenticatedUser] = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_session),
):
    """Destroy the current session and clear cookies."""
    if auth is not None:
        await close_session(db, auth.session.id)
        log.info("auth.sign_out", user_id=str(auth.user_id))

    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(CSRF_COOKIE, path="/")
    return OkResponse()


@router.get("/session", response_model=SessionRead)
async def current_session(auth: AuthenticatedUser = Depends(require_auth_user)):
    """The session the request arrived on."""
    return SessionRead.model_validate(auth.session)
