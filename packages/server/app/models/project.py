"""Project model (organization-scoped)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Project(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "projects"
    __table_args__ = (
        sa.Index("ix_projects_organization_status", "organization_id", "status"),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(default="active", nullable=False)  # active | archived
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    updated_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)
