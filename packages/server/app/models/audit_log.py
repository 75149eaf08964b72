"""Audit log model (organization-scoped, append-only)."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, JSONType, UUIDMixin


class AuditLogEntry(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "audit_log"
    __table_args__ = (
        sa.Index("ix_audit_log_organization_time", "organization_id", "created_at"),
    )

    organization_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False)
    action: str = Field(nullable=False)  # e.g. project.created, member.removed
    entity_type: str = Field(nullable=False)
    entity_id: str = Field(nullable=False)
    details: Optional[dict] = Field(
        default=None, sa_column=sa.Column("metadata", JSONType, nullable=True)
    )
