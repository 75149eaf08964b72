"""Organization model (tenant boundary)."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, JSONType, UUIDMixin


class Organization(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    slug: str = Field(unique=True, nullable=False, index=True)
    logo: Optional[str] = None
    # "metadata" is reserved on declarative classes, so the attribute is renamed
    org_metadata: dict = Field(
        default_factory=dict,
        sa_column=sa.Column("metadata", JSONType, nullable=False, default=dict),
    )
