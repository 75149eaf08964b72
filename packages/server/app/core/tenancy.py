"""
Tenancy guard and role gate.

``resolve_context`` is the single authorization boundary for
organization-scoped data: every domain operation calls it before touching
storage. It reads the membership row on every call; nothing is cached, so a
role change or removal takes effect on the very next request.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.database import get_session
from app.core.errors import (
    ForbiddenError,
    NoOrganizationError,
    NotMemberError,
    UnauthorizedError,
)
from app.core.identity import AuthenticatedUser, safe_get_auth_user
from app.models.base import as_utc
from app.models.membership import Membership
from orghub_shared.schemas.common import MANAGER_ROLES, Role


@dataclass(frozen=True)
class VerifiedContext:
    """Proof that a user is signed in and a member of the organization they act in."""

    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: Role
    joined_at: datetime


async def find_membership(
    db: AsyncSession, user_id: uuid.UUID, organization_id: uuid.UUID
) -> Optional[Membership]:
    """Point lookup by (user, organization), always read from the database."""
    result = await db.execute(
        select(Membership)
        .where(
            Membership.user_id == user_id,
            Membership.organization_id == organization_id,
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def resolve_context(
    db: AsyncSession, auth: Optional[AuthenticatedUser]
) -> VerifiedContext:
    """Resolve the caller's verified tenancy context.

    Steps short-circuit in order: authenticated user (UNAUTHORIZED), active
    organization on the session (NO_ORGANIZATION), membership row for the
    exact (user, organization) pair (NOT_MEMBER). Pure read.
    """
    if auth is None:
        raise UnauthorizedError()

    organization_id = auth.active_organization_id
    if not organization_id:
        raise NoOrganizationError()

    membership = await find_membership(db, auth.user_id, organization_id)
    if membership is None:
        raise NotMemberError()

    return VerifiedContext(
        user_id=auth.user_id,
        organization_id=organization_id,
        role=Role(membership.role),
        joined_at=as_utc(membership.created_at),
    )


def has_role(role: Role, allowed: Iterable[Role]) -> bool:
    return Role(role) in {Role(r) for r in allowed}


def require_role(ctx: VerifiedContext, allowed: Iterable[Role]) -> None:
    """Fail FORBIDDEN unless the context's role is in ``allowed``. No side effects."""
    allowed = tuple(allowed)
    if not has_role(ctx.role, allowed):
        raise ForbiddenError.insufficient_role(allowed, ctx.role)


def require_manager(ctx: VerifiedContext) -> None:
    """Role gate for owner/admin-only operations."""
    require_role(ctx, MANAGER_ROLES)


# ---------------------------------------------------------------------------
# FastAPI dependency
# ---------------------------------------------------------------------------

async def get_verified_context(
    request: Request,
    db: AsyncSession = Depends(get_session),
) -> VerifiedContext:
    auth = await safe_get_auth_user(request, db)
    return await resolve_context(db, auth)
