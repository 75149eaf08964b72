"""
Organization and membership schemas shared between the server and API clients.

Covers: org create/update requests, org responses, membership views,
the organization-switch request/response and member management payloads.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import Role
from .users import UserRead, UserSummary

SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]*[a-z0-9]$"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    slug: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=SLUG_PATTERN,
        description="URL-safe org identifier",
    )
    logo: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class OrganizationPatch(BaseModel):
    """Partial update of an organization. Only fields that are set are applied."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, min_length=2, max_length=50, pattern=SLUG_PATTERN)
    logo: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None

    @field_validator("name", "slug", "metadata")
    @classmethod
    def _not_null(cls, value):
        # logo is the only nullable column
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class OrgSwitchRequest(BaseModel):
    organization_id: uuid.UUID


class MemberAdd(BaseModel):
    """Add an existing user to the active organization."""
    email: EmailStr
    role: Literal["admin", "member"] = "member"


class MemberRoleUpdate(BaseModel):
    role: Literal["admin", "member"]


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrganizationRead(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    logo: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    model_config = {"from_attributes": True}


class MembershipView(BaseModel):
    role: Role
    joined_at: datetime


class OrganizationWithRole(BaseModel):
    organization: Optional[OrganizationRead] = None
    membership_role: Role
    joined_at: datetime


class OrgSwitchResponse(BaseModel):
    organization: Optional[OrganizationRead] = None
    membership: MembershipView


class MemberRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role: Role
    created_at: datetime
    user: Optional[UserSummary] = None


class CurrentUserWithOrg(BaseModel):
    """Signed-in user plus the active organization, if any."""
    user: UserRead
    organization: Optional[OrganizationRead] = None
    membership: Optional[MembershipView] = None


class AuditEntryRead(BaseModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    user_id: uuid.UUID
    action: str
    entity_type: str
    entity_id: str
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime
