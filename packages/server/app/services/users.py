"""
User service — the signed-in user and their active organization.

Both lookups are non-throwing: a signed-out caller gets ``None`` so read-only
views can render a logged-out state.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import AuthenticatedUser
from app.core.tenancy import find_membership
from app.models.base import as_utc
from app.models.organization import Organization
from app.models.user import User


def get_current(auth: Optional[AuthenticatedUser]) -> Optional[User]:
    return auth.user if auth else None


async def get_current_with_org(
    db: AsyncSession, auth: Optional[AuthenticatedUser]
) -> Optional[dict]:
    if auth is None:
        return None

    info: dict = {"user": auth.user, "organization": None, "membership": None}
    organization_id = auth.active_organization_id
    if organization_id is None:
        return info

    info["organization"] = await db.get(Organization, organization_id)
    membership = await find_membership(db, auth.user_id, organization_id)
    if membership is not None:
        info["membership"] = {
            "role": membership.role,
            "joined_at": as_utc(membership.created_at),
        }
    return info
