"""Task model (organization-scoped, belongs to a project)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Task(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        sa.Index("ix_tasks_organization_assignee", "organization_id", "assignee_id"),
        sa.Index("ix_tasks_organization_status", "organization_id", "status"),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    project_id: uuid.UUID = Field(foreign_key="projects.id", nullable=False, index=True)
    title: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(nullable=False, default="todo")  # todo | in_progress | done
    priority: str = Field(nullable=False, default="medium")  # low | medium | high
    assignee_id: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    created_by: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    due_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
