"""
Organization API endpoints.

GET    /api/v1/orgs                                  — List orgs for the signed-in user
POST   /api/v1/orgs                                  — Create an org and switch into it
POST   /api/v1/orgs/switch                           — Change the session's active org
GET    /api/v1/orgs/current                          — Active org details
PATCH  /api/v1/orgs/current                          — Update the active org (owner/admin)
GET    /api/v1/orgs/current/members                  — List members
POST   /api/v1/orgs/current/members                  — Add an existing user (owner/admin)
PATCH  /api/v1/orgs/current/members/{member_id}      — Change a member's role (owner/admin)
DELETE /api/v1/orgs/current/members/by-user/{user_id} — Remove a member (owner/admin)
GET    /api/v1/orgs/current/audit-log                — Audit trail (owner/admin)
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit import list_audit_entries
from app.core.database import get_session
from app.core.identity import AuthenticatedUser, optional_auth_user, require_auth_user
from app.core.tenancy import VerifiedContext, get_verified_context, require_manager
from app.models.audit_log import AuditLogEntry
from app.models.organization import Organization
from app.services import members as member_service
from app.services import organizations as org_service
from orghub_shared.schemas.common import OkResponse, Role
from orghub_shared.schemas.organizations import (
    AuditEntryRead,
    MemberAdd,
    MemberRead,
    MemberRoleUpdate,
    OrganizationCreate,
    OrganizationPatch,
    OrganizationRead,
    OrganizationWithRole,
    OrgSwitchRequest,
    OrgSwitchResponse,
)

router = APIRouter()


def org_response(org: Optional[Organization]) -> Optional[OrganizationRead]:
    if org is None:
        return None
    return OrganizationRead(
        id=org.id,
        name=org.name,
        slug=org.slug,
        logo=org.logo,
        metadata=org.org_metadata or {},
        created_at=org.created_at,
    )


def _audit_response(entry: AuditLogEntry) -> AuditEntryRead:
    return AuditEntryRead(
        id=entry.id,
        organization_id=entry.organization_id,
        user_id=entry.user_id,
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        metadata=entry.details,
        created_at=entry.created_at,
    )


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


@router.get("", response_model=List[OrganizationWithRole])
async def list_orgs(
    auth: Optional[AuthenticatedUser] = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_session),
):
    """Organizations the caller belongs to; empty when signed out."""
    items = await org_service.list_for_user(db, auth)
    return [
        OrganizationWithRole(
            organization=org_response(item["organization"]),
            membership_role=item["membership_role"],
            joined_at=item["joined_at"],
        )
        for item in items
    ]


@router.post("", response_model=OrgSwitchResponse, status_code=201)
async def create_org(
    body: OrganizationCreate,
    auth: AuthenticatedUser = Depends(require_auth_user),
    db: AsyncSession = Depends(get_session),
):
    """Create an organization. The creator becomes its owner and is switched into it."""
    org, _membership = await org_service.create_organization(db, auth.user_id, body)
    switched = await org_service.switch_organization(db, auth, org.id)
    return OrgSwitchResponse(
        organization=org_response(switched["organization"]),
        membership=switched["membership"],
    )


@router.post("/switch", response_model=OrgSwitchResponse)
async def switch_org(
    body: OrgSwitchRequest,
    auth: Optional[AuthenticatedUser] = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_session),
):
    """Point the current session at another organization the caller belongs to."""
    switched = await org_service.switch_organization(db, auth, body.organization_id)
    return OrgSwitchResponse(
        organization=org_response(switched["organization"]),
        membership=switched["membership"],
    )


@router.get("/current", response_model=OrganizationRead)
async def get_current_org(
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    org = await org_service.get_current(db, ctx)
    return org_response(org)


@router.patch("/current", response_model=OrganizationRead)
async def update_current_org(
    body: OrganizationPatch,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    org = await org_service.update_organization(db, ctx, body)
    return org_response(org)


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@router.get("/current/members", response_model=List[MemberRead])
async def list_members(
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    return await member_service.list_members(db, ctx)


@router.post("/current/members", response_model=MemberRead, status_code=201)
async def add_member(
    body: MemberAdd,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    return await member_service.add_member(db, ctx, body.email, Role(body.role))


@router.patch("/current/members/{member_id}", response_model=MemberRead)
async def update_member_role(
    member_id: uuid.UUID,
    body: MemberRoleUpdate,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    return await member_service.update_member_role(db, ctx, member_id, Role(body.role))


@router.delete("/current/members/by-user/{user_id}", response_model=OkResponse)
async def remove_member(
    user_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    await member_service.remove_member(db, ctx, user_id)
    return OkResponse(id=user_id)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


@router.get("/current/audit-log", response_model=List[AuditEntryRead])
async def get_audit_log(
    limit: int = Query(100, ge=1, le=500),
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    require_manager(ctx)
    entries = await list_audit_entries(db, ctx, limit=limit)
    return [_audit_response(e) for e in entries]
