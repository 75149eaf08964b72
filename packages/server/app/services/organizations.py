"""
Organization service — org CRUD and the organization-switch flow.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.audit import record_audit
from app.core.config import get_settings
from app.core.errors import (
    ConflictError,
    NoSessionError,
    NotFoundError,
    NotMemberError,
    UnauthorizedError,
)
from app.core.identity import AuthenticatedUser
from app.core.tenancy import VerifiedContext, find_membership, require_manager
from app.models.auth_session import AuthSession
from app.models.base import as_utc
from app.models.membership import Membership
from app.models.organization import Organization
from orghub_shared.schemas.common import Role
from orghub_shared.schemas.organizations import OrganizationCreate, OrganizationPatch

log = structlog.get_logger()
settings = get_settings()


async def list_for_user(
    db: AsyncSession, auth: Optional[AuthenticatedUser]
) -> list[dict]:
    """All organizations the signed-in user belongs to, with their role. Empty when signed out."""
    if auth is None:
        return []

    result = await db.execute(
        select(Membership).where(Membership.user_id == auth.user_id)
    )
    items = []
    for membership in result.scalars().all():
        organization = await db.get(Organization, membership.organization_id)
        items.append(
            {
                "organization": organization,
                "membership_role": membership.role,
                "joined_at": as_utc(membership.created_at),
            }
        )
    return items


async def get_current(db: AsyncSession, ctx: VerifiedContext) -> Organization:
    """The caller's active organization."""
    organization = await db.get(Organization, ctx.organization_id)
    if organization is None:
        raise NotFoundError("Organization not found")
    return organization


async def create_organization(
    db: AsyncSession,
    creator_id: uuid.UUID,
    req: OrganizationCreate,
) -> tuple[Organization, Membership]:
    """Create an org and make the creator its owner."""
    existing = await db.execute(
        select(Organization).where(Organization.slug == req.slug)
    )
    if existing.scalar_one_or_none():
        raise ConflictError("Organization slug already taken", slug=req.slug)

    owned = await db.execute(
        select(func.count())
        .select_from(Membership)
        .where(Membership.user_id == creator_id, Membership.role == Role.OWNER.value)
    )
    if owned.scalar_one() >= settings.organization_limit:
        raise ConflictError(
            "Organization limit reached",
            limit=settings.organization_limit,
        )

    organization = Organization(
        name=req.name,
        slug=req.slug,
        logo=req.logo,
        org_metadata=req.metadata or {},
    )
    db.add(organization)
    await db.flush()

    membership = Membership(
        user_id=creator_id,
        organization_id=organization.id,
        role=Role.OWNER.value,
    )
    db.add(membership)
    await db.flush()

    ctx = VerifiedContext(
        user_id=creator_id,
        organization_id=organization.id,
        role=Role.OWNER,
        joined_at=as_utc(membership.created_at),
    )
    await record_audit(
        db, ctx, "organization.created", "organization", organization.id,
        {"name": organization.name, "slug": organization.slug},
    )

    log.info("org.created", org_id=str(organization.id), slug=req.slug, creator=str(creator_id))
    return organization, membership


async def update_organization(
    db: AsyncSession,
    ctx: VerifiedContext,
    patch: OrganizationPatch,
) -> Organization:
    """Update the active organization (owner or admin)."""
    require_manager(ctx)

    organization = await db.get(Organization, ctx.organization_id)
    if organization is None:
        raise NotFoundError("Organization not found")

    changes = patch.changes()
    if "slug" in changes and changes["slug"] != organization.slug:
        taken = await db.execute(
            select(Organization).where(Organization.slug == changes["slug"])
        )
        if taken.scalar_one_or_none():
            raise ConflictError("Organization slug already taken", slug=changes["slug"])

    if changes:
        for key, value in changes.items():
            setattr(organization, "org_metadata" if key == "metadata" else key, value)
        db.add(organization)
        await db.flush()

        await record_audit(
            db, ctx, "organization.updated", "organization", organization.id,
            {"changes": changes},
        )
        log.info("org.updated", org_id=str(organization.id), fields=sorted(changes))

    return organization


async def switch_organization(
    db: AsyncSession,
    auth: Optional[AuthenticatedUser],
    organization_id: uuid.UUID,
) -> dict:
    """Point the user's current session at another organization they belong to.

    The membership check is the only authorization step; an active
    organization is not required. The session lookup locks the row so two
    concurrent switches by the same user serialize on commit order.
    Switches are not written to the audit log.
    """
    if auth is None:
        raise UnauthorizedError()

    membership = await find_membership(db, auth.user_id, organization_id)
    if membership is None:
        raise NotMemberError()

    result = await db.execute(
        select(AuthSession)
        .where(AuthSession.user_id == auth.user_id)
        .order_by(AuthSession.created_at.desc())
        .limit(1)
        .with_for_update()
    )
    session_row = result.scalar_one_or_none()
    if session_row is None:
        raise NoSessionError()

    previous = session_row.active_organization_id
    session_row.active_organization_id = organization_id
    db.add(session_row)
    await db.flush()

    organization = await db.get(Organization, organization_id)

    log.info(
        "org.switched",
        user_id=str(auth.user_id),
        session_id=str(session_row.id),
        from_org=str(previous) if previous else None,
        to_org=str(organization_id),
    )
    return {
        "organization": organization,
        "membership": {
            "role": Role(membership.role),
            "joined_at": as_utc(membership.created_at),
        },
    }
