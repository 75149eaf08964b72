"""
Membership service — listing, adding, re-roling and removing members of the
active organization.

Validation order in ``update_member_role`` and ``remove_member`` is part of
the contract: the self-removal check runs before any lookup, and existence
checks run before the owner-immutability check.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.audit import record_audit
from app.core.config import get_settings
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.tenancy import VerifiedContext, find_membership, require_manager
from app.models.membership import Membership
from app.models.user import User
from orghub_shared.schemas.common import ASSIGNABLE_ROLES, Role

log = structlog.get_logger()
settings = get_settings()


def _member_info(membership: Membership, user: User | None) -> dict:
    return {
        "id": membership.id,
        "user_id": membership.user_id,
        "organization_id": membership.organization_id,
        "role": membership.role,
        "created_at": membership.created_at,
        "user": (
            {"id": user.id, "name": user.name, "email": user.email, "image": user.image}
            if user
            else None
        ),
    }


def _check_assignable(role: Role) -> Role:
    role = Role(role)
    if role not in ASSIGNABLE_ROLES:
        raise ForbiddenError(
            "The owner role cannot be assigned",
            allowed_roles=[r.value for r in ASSIGNABLE_ROLES],
        )
    return role


async def list_members(db: AsyncSession, ctx: VerifiedContext) -> list[dict]:
    """Members of the active organization with their user details."""
    result = await db.execute(
        select(Membership, User)
        .join(User, User.id == Membership.user_id)
        .where(Membership.organization_id == ctx.organization_id)
        .order_by(Membership.created_at)
    )
    return [_member_info(m, u) for m, u in result.all()]


async def add_member(
    db: AsyncSession,
    ctx: VerifiedContext,
    email: str,
    role: Role = Role.MEMBER,
) -> dict:
    """Add an existing user to the active organization."""
    require_manager(ctx)
    role = _check_assignable(role)

    result = await db.execute(select(User).where(User.email == email.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found", email=email)

    if await find_membership(db, user.id, ctx.organization_id):
        raise ConflictError("User is already a member of this organization")

    count = await db.execute(
        select(func.count())
        .select_from(Membership)
        .where(Membership.organization_id == ctx.organization_id)
    )
    if count.scalar_one() >= settings.membership_limit:
        raise ConflictError("Membership limit reached", limit=settings.membership_limit)

    membership = Membership(
        user_id=user.id,
        organization_id=ctx.organization_id,
        role=role.value,
    )
    db.add(membership)
    await db.flush()

    await record_audit(
        db, ctx, "member.added", "membership", membership.id,
        {"user_id": user.id, "role": role.value},
    )
    log.info("member.added", org_id=str(ctx.organization_id), user_id=str(user.id), role=role.value)
    return _member_info(membership, user)


async def update_member_role(
    db: AsyncSession,
    ctx: VerifiedContext,
    member_id: uuid.UUID,
    role: Role,
) -> dict:
    """Change a member's role. Owners are immutable here and owner cannot be granted."""
    require_manager(ctx)

    membership = await db.get(Membership, member_id)
    if membership is None:
        raise NotFoundError("Member not found")
    if membership.organization_id != ctx.organization_id:
        raise ForbiddenError("Member does not belong to your organization")
    if membership.role == Role.OWNER.value:
        raise ForbiddenError("Cannot change the owner's role")
    role = _check_assignable(role)

    previous = membership.role
    membership.role = role.value
    db.add(membership)
    await db.flush()

    await record_audit(
        db, ctx, "member.role_updated", "membership", membership.id,
        {"user_id": membership.user_id, "previous_role": previous, "role": role.value},
    )
    log.info(
        "member.role_updated",
        org_id=str(ctx.organization_id),
        member_id=str(member_id),
        role=role.value,
    )

    user = await db.get(User, membership.user_id)
    return _member_info(membership, user)


async def remove_member(
    db: AsyncSession,
    ctx: VerifiedContext,
    user_id: uuid.UUID,
) -> None:
    """Remove a user from the active organization. Takes effect on their next request."""
    require_manager(ctx)

    if user_id == ctx.user_id:
        raise ForbiddenError("You cannot remove yourself from the organization")

    membership = await find_membership(db, user_id, ctx.organization_id)
    if membership is None:
        raise NotFoundError("Member not found")
    if membership.role == Role.OWNER.value:
        raise ForbiddenError("Cannot remove the organization owner")

    membership_id = membership.id
    await db.delete(membership)
    await db.flush()

    await record_audit(
        db, ctx, "member.removed", "membership", membership_id,
        {"user_id": user_id},
    )
    log.info("member.removed", org_id=str(ctx.organization_id), user_id=str(user_id))
