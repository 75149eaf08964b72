"""User and authentication schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, UUID4


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    name: str = Field(min_length=1, max_length=200)
    image: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UserSummary(BaseModel):
    """Public user details embedded in member listings."""
    id: UUID4
    name: str
    email: str
    image: Optional[str] = None


class UserRead(UserSummary):
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    user_id: str
    email: str
    message: str


class SessionRead(BaseModel):
    id: UUID4
    user_id: UUID4
    active_organization_id: Optional[UUID4] = None
    expires_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
