"""User model (identity record)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class User(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    image: Optional[str] = None
    password_hash: Optional[str] = Field(default=None)  # bcrypt hash for email/password sign-in
