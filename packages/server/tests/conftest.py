"""
Shared fixtures for server tests.

Each test gets its own SQLite database file, so sessions opened from
``session_factory`` behave like independent request transactions.
"""

from __future__ import annotations

import os
import uuid
from typing import Optional

os.environ.setdefault("OH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("OH_LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.database import get_session, init_db
from app.core.identity import (
    AuthenticatedUser,
    create_session_token,
    load_authenticated_user,
    open_session,
)
from app.core.tenancy import VerifiedContext, resolve_context
from app.main import app
from app.models.auth_session import AuthSession
from app.models.membership import Membership
from app.models.organization import Organization
from app.models.user import User
from orghub_shared.schemas.common import Role


class Seed:
    """Writes fixture rows, each call in its own committed transaction."""

    def __init__(self, factory) -> None:
        self.factory = factory

    async def user(
        self,
        name: str = "User",
        email: Optional[str] = None,
        *,
        with_session: bool = True,
    ) -> tuple[User, Optional[AuthSession]]:
        async with self.factory() as db:
            user = User(email=email or f"{uuid.uuid4().hex[:10]}@example.com", name=name)
            db.add(user)
            await db.flush()
            record = await open_session(db, user) if with_session else None
            await db.commit()
            return user, record

    async def session(self, user: User) -> AuthSession:
        async with self.factory() as db:
            record = await open_session(db, user)
            await db.commit()
            return record

    async def org(self, owner: User, slug: Optional[str] = None, name: str = "Acme") -> Organization:
        async with self.factory() as db:
            org = Organization(name=name, slug=slug or f"org-{uuid.uuid4().hex[:8]}")
            db.add(org)
            await db.flush()
            db.add(Membership(user_id=owner.id, organization_id=org.id, role=Role.OWNER.value))
            await db.commit()
            return org

    async def member(self, user: User, org: Organization, role: Role = Role.MEMBER) -> Membership:
        async with self.factory() as db:
            membership = Membership(user_id=user.id, organization_id=org.id, role=role.value)
            db.add(membership)
            await db.commit()
            return membership

    async def activate(self, record: AuthSession, org_id: Optional[uuid.UUID]) -> None:
        async with self.factory() as db:
            row = await db.get(AuthSession, record.id)
            row.active_organization_id = org_id
            await db.commit()

    async def auth(self, db: AsyncSession, record: AuthSession) -> AuthenticatedUser:
        auth = await load_authenticated_user(db, record.id)
        assert auth is not None
        return auth

    async def context(self, record: AuthSession) -> VerifiedContext:
        async with self.factory() as db:
            return await resolve_context(db, await self.auth(db, record))

    @staticmethod
    def bearer(record: AuthSession) -> dict[str, str]:
        token = create_session_token(record.user_id, record.id)
        return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def engine(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'orghub.db'}")
    await init_db(bind=eng)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def seed(session_factory) -> Seed:
    return Seed(session_factory)


@pytest.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()
