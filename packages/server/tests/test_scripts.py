"""
Tests for the local bootstrap script.
"""

import pytest
from sqlmodel import select

from app.core.identity import verify_password
from app.models.membership import Membership
from app.scripts.create_local_owner import bootstrap_owner


class TestBootstrapOwner:

    @pytest.mark.asyncio
    async def test_creates_user_and_owned_org(self, session_factory):
        async with session_factory() as db:
            user, org = await bootstrap_owner(db, "Ada@Example.com", "password123", "acme")
            await db.commit()

        assert user.email == "ada@example.com"
        assert verify_password("password123", user.password_hash)
        assert org.slug == "acme"

        async with session_factory() as db:
            membership = (await db.execute(select(Membership))).scalar_one()
        assert (membership.user_id, membership.role) == (user.id, "owner")

    @pytest.mark.asyncio
    async def test_is_idempotent(self, session_factory):
        async with session_factory() as db:
            first = await bootstrap_owner(db, "ada@example.com", "password123", "acme")
            await db.commit()
        async with session_factory() as db:
            second = await bootstrap_owner(db, "ada@example.com", "password123", "acme")
            await db.commit()

        assert first[0].id == second[0].id
        assert first[1].id == second[1].id
