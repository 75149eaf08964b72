"""
Current-user endpoints.

GET /api/v1/users/me              — the signed-in user, or null
GET /api/v1/users/me/organization — the user plus their active org and role, or null
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.organizations import org_response
from app.core.database import get_session
from app.core.identity import AuthenticatedUser, optional_auth_user
from app.services import users as user_service
from orghub_shared.schemas.organizations import CurrentUserWithOrg, MembershipView
from orghub_shared.schemas.users import UserRead

router = APIRouter()


@router.get("/me", response_model=Optional[UserRead])
async def get_me(auth: Optional[AuthenticatedUser] = Depends(optional_auth_user)):
    user = user_service.get_current(auth)
    return UserRead.model_validate(user) if user else None


@router.get("/me/organization", response_model=Optional[CurrentUserWithOrg])
async def get_me_with_org(
    auth: Optional[AuthenticatedUser] = Depends(optional_auth_user),
    db: AsyncSession = Depends(get_session),
):
    info = await user_service.get_current_with_org(db, auth)
    if info is None:
        return None
    membership = info["membership"]
    return CurrentUserWithOrg(
        user=UserRead.model_validate(info["user"]),
        organization=org_response(info["organization"]),
        membership=MembershipView(**membership) if membership else None,
    )
