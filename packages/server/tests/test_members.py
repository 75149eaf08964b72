"""
Tests for membership management.

Tests cover:
- Validation order of role updates and removals
- Owner immutability and the self-removal guard
- Adding members by e-mail, duplicates and the membership limit
- Audit entries for every membership mutation
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from sqlmodel import select

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.tenancy import VerifiedContext
from app.models.audit_log import AuditLogEntry
from app.models.membership import Membership
from app.services import members as member_service
from orghub_shared.schemas.common import ErrorCode, Role


async def _org_with_owner(seed):
    owner, record = await seed.user("Olivia")
    org = await seed.org(owner)
    await seed.activate(record, org.id)
    return owner, record, org


class TestUpdateMemberRole:

    @pytest.mark.asyncio
    async def test_member_cannot_change_roles(self, seed, db):
        owner, _, org = await _org_with_owner(seed)
        user, record = await seed.user("Max")
        await seed.member(user, org, Role.MEMBER)
        await seed.activate(record, org.id)
        ctx = await seed.context(record)

        # gate runs before the lookup, so a missing member still reports FORBIDDEN
        with pytest.raises(ForbiddenError) as exc:
            await member_service.update_member_role(db, ctx, uuid.uuid4(), Role.ADMIN)
        assert exc.value.payload["required_roles"] == ["owner", "admin"]
        assert exc.value.payload["current_role"] == "member"

    @pytest.mark.asyncio
    async def test_unknown_member(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        with pytest.raises(NotFoundError):
            await member_service.update_member_role(db, ctx, uuid.uuid4(), Role.ADMIN)

    @pytest.mark.asyncio
    async def test_member_of_other_org(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)

        other_owner, _ = await seed.user("Bob")
        other = await seed.org(other_owner)
        stranger, _ = await seed.user("Sam")
        foreign_membership = await seed.member(stranger, other)

        with pytest.raises(ForbiddenError):
            await member_service.update_member_role(db, ctx, foreign_membership.id, Role.ADMIN)

    @pytest.mark.asyncio
    async def test_owner_role_is_immutable(self, seed, db):
        owner, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)

        result = await db.execute(
            select(Membership).where(
                Membership.organization_id == org.id, Membership.user_id == owner.id
            )
        )
        owner_membership = result.scalar_one()
        with pytest.raises(ForbiddenError):
            await member_service.update_member_role(db, ctx, owner_membership.id, Role.MEMBER)

    @pytest.mark.asyncio
    async def test_cannot_grant_owner(self, seed, db):
        _, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)
        user, _ = await seed.user("Max")
        membership = await seed.member(user, org)

        with pytest.raises(ForbiddenError):
            await member_service.update_member_role(db, ctx, membership.id, Role.OWNER)

    @pytest.mark.asyncio
    async def test_promotes_and_audits(self, seed, session_factory):
        _, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)
        user, _ = await seed.user("Max")
        membership = await seed.member(user, org)

        async with session_factory() as db:
            info = await member_service.update_member_role(db, ctx, membership.id, Role.ADMIN)
            await db.commit()
        assert info["role"] == "admin"
        assert info["user"]["email"] == user.email

        async with session_factory() as db:
            assert (await db.get(Membership, membership.id)).role == "admin"
            entries = (await db.execute(select(AuditLogEntry))).scalars().all()
            assert [e.action for e in entries] == ["member.role_updated"]
            assert entries[0].details["previous_role"] == "member"
            assert entries[0].details["role"] == "admin"


class TestRemoveMember:

    @pytest.mark.asyncio
    async def test_self_removal_checked_before_lookup(self, db):
        ctx = VerifiedContext(
            user_id=uuid.uuid4(),
            organization_id=uuid.uuid4(),
            role=Role.OWNER,
            joined_at=datetime.now(timezone.utc),
        )
        with pytest.raises(ForbiddenError):
            await member_service.remove_member(db, ctx, ctx.user_id)

    @pytest.mark.asyncio
    async def test_owner_cannot_remove_self(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        with pytest.raises(ForbiddenError):
            await member_service.remove_member(db, ctx, ctx.user_id)

    @pytest.mark.asyncio
    async def test_admin_cannot_remove_self(self, seed, db):
        _, _, org = await _org_with_owner(seed)
        admin, record = await seed.user("Ann")
        await seed.member(admin, org, Role.ADMIN)
        await seed.activate(record, org.id)
        ctx = await seed.context(record)
        with pytest.raises(ForbiddenError):
            await member_service.remove_member(db, ctx, admin.id)

    @pytest.mark.asyncio
    async def test_member_cannot_remove(self, seed, db):
        _, _, org = await _org_with_owner(seed)
        user, record = await seed.user("Max")
        await seed.member(user, org)
        await seed.activate(record, org.id)
        ctx = await seed.context(record)

        with pytest.raises(ForbiddenError) as exc:
            await member_service.remove_member(db, ctx, uuid.uuid4())
        assert exc.value.payload["current_role"] == "member"

    @pytest.mark.asyncio
    async def test_unknown_member(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        with pytest.raises(NotFoundError):
            await member_service.remove_member(db, ctx, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_member_of_other_org_is_not_found(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        other_owner, _ = await seed.user("Bob")
        other = await seed.org(other_owner)
        stranger, _ = await seed.user("Sam")
        await seed.member(stranger, other)

        with pytest.raises(NotFoundError):
            await member_service.remove_member(db, ctx, stranger.id)

    @pytest.mark.asyncio
    async def test_admin_cannot_remove_owner(self, seed, db):
        owner, _, org = await _org_with_owner(seed)
        admin, record = await seed.user("Ann")
        await seed.member(admin, org, Role.ADMIN)
        await seed.activate(record, org.id)
        ctx = await seed.context(record)

        with pytest.raises(ForbiddenError):
            await member_service.remove_member(db, ctx, owner.id)

    @pytest.mark.asyncio
    async def test_removes_and_audits(self, seed, session_factory):
        _, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)
        user, _ = await seed.user("Max")
        membership = await seed.member(user, org, Role.ADMIN)

        async with session_factory() as db:
            await member_service.remove_member(db, ctx, user.id)
            await db.commit()

        async with session_factory() as db:
            assert await db.get(Membership, membership.id) is None
            entries = (await db.execute(select(AuditLogEntry))).scalars().all()
            assert [e.action for e in entries] == ["member.removed"]
            assert entries[0].entity_id == str(membership.id)
            assert entries[0].details == {"user_id": str(user.id)}


class TestAddMember:

    @pytest.mark.asyncio
    async def test_adds_existing_user(self, seed, session_factory):
        _, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)
        user, _ = await seed.user("Max", email="max@example.com")

        async with session_factory() as db:
            info = await member_service.add_member(db, ctx, "MAX@example.com", Role.ADMIN)
            await db.commit()

        assert info["user_id"] == user.id
        assert info["role"] == "admin"

        async with session_factory() as db:
            members = await member_service.list_members(db, ctx)
            assert {m["user"]["email"] for m in members} >= {"max@example.com"}
            assert len(members) == 2

    @pytest.mark.asyncio
    async def test_unknown_email(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        with pytest.raises(NotFoundError):
            await member_service.add_member(db, ctx, "nobody@example.com")

    @pytest.mark.asyncio
    async def test_duplicate(self, seed, db):
        _, record, org = await _org_with_owner(seed)
        ctx = await seed.context(record)
        user, _ = await seed.user("Max", email="max@example.com")
        await seed.member(user, org)

        with pytest.raises(ConflictError) as exc:
            await member_service.add_member(db, ctx, "max@example.com")
        assert exc.value.code == ErrorCode.CONFLICT

    @pytest.mark.asyncio
    async def test_cannot_add_as_owner(self, seed, db):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        await seed.user("Max", email="max@example.com")

        with pytest.raises(ForbiddenError):
            await member_service.add_member(db, ctx, "max@example.com", Role.OWNER)

    @pytest.mark.asyncio
    async def test_membership_limit(self, seed, db, monkeypatch):
        _, record, _ = await _org_with_owner(seed)
        ctx = await seed.context(record)
        await seed.user("Max", email="max@example.com")
        monkeypatch.setattr(member_service.settings, "membership_limit", 1)

        with pytest.raises(ConflictError):
            await member_service.add_member(db, ctx, "max@example.com")

    @pytest.mark.asyncio
    async def test_member_cannot_add(self, seed, db):
        _, _, org = await _org_with_owner(seed)
        user, record = await seed.user("Max")
        await seed.member(user, org)
        await seed.activate(record, org.id)
        ctx = await seed.context(record)

        with pytest.raises(ForbiddenError):
            await member_service.add_member(db, ctx, "someone@example.com")
