"""Session model: one row per signed-in user agent.

``active_organization_id`` is the session's pointer to the organization it
currently operates against. Only the organization-switch flow writes it.
"""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class AuthSession(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "sessions"

    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    active_organization_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="organizations.id", nullable=True
    )
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
