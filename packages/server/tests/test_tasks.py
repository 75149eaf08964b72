"""
Tests for the task service.

Tests cover:
- Creation against projects of the same organization only
- Assignees must be members of the organization
- Filtering, partial updates and deletion with audit entries
"""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError
from sqlmodel import select

from app.core.errors import ForbiddenError, NotFoundError, NotMemberError
from app.models.audit_log import AuditLogEntry
from app.services import projects as project_service
from app.services import tasks as task_service
from orghub_shared.schemas.common import TaskPriority, TaskStatus
from orghub_shared.schemas.projects import ProjectCreate
from orghub_shared.schemas.tasks import TaskCreate, TaskFilter, TaskPatch


async def _workspace(seed, session_factory):
    owner, record = await seed.user("Olivia")
    org = await seed.org(owner)
    await seed.activate(record, org.id)
    ctx = await seed.context(record)
    async with session_factory() as db:
        project = await project_service.create_project(db, ctx, ProjectCreate(name="Launch"))
        await db.commit()
    return ctx, org, project


async def _task(session_factory, ctx, project, **kwargs):
    async with session_factory() as db:
        task = await task_service.create_task(
            db, ctx, TaskCreate(project_id=project.id, title=kwargs.pop("title", "Do it"), **kwargs)
        )
        await db.commit()
        return task


class TestTaskSchemas:

    def test_defaults(self):
        req = TaskCreate(project_id=uuid.uuid4(), title="x")
        assert req.priority == TaskPriority.MEDIUM
        assert req.assignee_id is None

    def test_title_required(self):
        with pytest.raises(ValidationError):
            TaskCreate(project_id=uuid.uuid4(), title="")

    def test_patch_changes_use_values(self):
        patch = TaskPatch(status=TaskStatus.DONE, priority=TaskPriority.HIGH)
        assert patch.changes() == {"status": "done", "priority": "high"}

    def test_patch_can_clear_assignee(self):
        assert TaskPatch(assignee_id=None).changes() == {"assignee_id": None}

    @pytest.mark.parametrize("field", ["title", "status", "priority"])
    def test_patch_rejects_null_for_required_field(self, field):
        with pytest.raises(ValidationError):
            TaskPatch.model_validate({field: None})

    def test_patch_can_clear_due_date(self):
        assert TaskPatch.model_validate({"due_date": None}).changes() == {"due_date": None}


class TestCreateTask:

    @pytest.mark.asyncio
    async def test_creates_in_project(self, seed, session_factory):
        ctx, org, project = await _workspace(seed, session_factory)
        task = await _task(session_factory, ctx, project, priority=TaskPriority.HIGH)

        assert task.organization_id == org.id
        assert task.status == "todo"
        assert task.priority == "high"
        assert task.created_by == ctx.user_id

    @pytest.mark.asyncio
    async def test_unknown_project(self, seed, session_factory):
        ctx, _, _ = await _workspace(seed, session_factory)
        async with session_factory() as db:
            with pytest.raises(NotFoundError):
                await task_service.create_task(db, ctx, TaskCreate(project_id=uuid.uuid4(), title="x"))

    @pytest.mark.asyncio
    async def test_foreign_project(self, seed, session_factory):
        ctx, _, _ = await _workspace(seed, session_factory)
        _, _, foreign = await _workspace(seed, session_factory)
        async with session_factory() as db:
            with pytest.raises(ForbiddenError):
                await task_service.create_task(db, ctx, TaskCreate(project_id=foreign.id, title="x"))

    @pytest.mark.asyncio
    async def test_assignee_must_be_member(self, seed, session_factory):
        ctx, _, project = await _workspace(seed, session_factory)
        outsider, _ = await seed.user("Sam")
        async with session_factory() as db:
            with pytest.raises(NotMemberError):
                await task_service.create_task(
                    db, ctx, TaskCreate(project_id=project.id, title="x", assignee_id=outsider.id)
                )

    @pytest.mark.asyncio
    async def test_member_assignee(self, seed, session_factory):
        ctx, org, project = await _workspace(seed, session_factory)
        teammate, _ = await seed.user("Tom")
        await seed.member(teammate, org)
        task = await _task(session_factory, ctx, project, assignee_id=teammate.id)
        assert task.assignee_id == teammate.id


class TestTaskQueriesAndUpdates:

    @pytest.mark.asyncio
    async def test_filters(self, seed, session_factory):
        ctx, org, project = await _workspace(seed, session_factory)
        teammate, _ = await seed.user("Tom")
        await seed.member(teammate, org)
        assigned = await _task(session_factory, ctx, project, title="Assigned", assignee_id=teammate.id)
        await _task(session_factory, ctx, project, title="Open")

        async with session_factory() as db:
            everything = await task_service.list_tasks(db, ctx)
            mine = await task_service.list_tasks(db, ctx, TaskFilter(assignee_id=teammate.id))
            done = await task_service.list_tasks(db, ctx, TaskFilter(status=TaskStatus.DONE))
        assert len(everything) == 2
        assert [t.id for t in mine] == [assigned.id]
        assert done == []

    @pytest.mark.asyncio
    async def test_list_is_scoped(self, seed, session_factory):
        ctx, _, project = await _workspace(seed, session_factory)
        other_ctx, _, other_project = await _workspace(seed, session_factory)
        await _task(session_factory, other_ctx, other_project)

        async with session_factory() as db:
            assert await task_service.list_tasks(db, ctx) == []

    @pytest.mark.asyncio
    async def test_cross_org_task_is_forbidden(self, seed, session_factory):
        ctx, _, _ = await _workspace(seed, session_factory)
        other_ctx, _, other_project = await _workspace(seed, session_factory)
        foreign = await _task(session_factory, other_ctx, other_project)

        async with session_factory() as db:
            with pytest.raises(ForbiddenError):
                await task_service.get_task(db, ctx, foreign.id)

    @pytest.mark.asyncio
    async def test_update_and_audit(self, seed, session_factory):
        ctx, _, project = await _workspace(seed, session_factory)
        task = await _task(session_factory, ctx, project)

        async with session_factory() as db:
            updated = await task_service.update_task(
                db, ctx, task.id, TaskPatch(status=TaskStatus.IN_PROGRESS, title="Doing it")
            )
            await db.commit()
        assert updated.status == "in_progress"
        assert updated.title == "Doing it"

        async with session_factory() as db:
            entry = (
                await db.execute(select(AuditLogEntry).where(AuditLogEntry.action == "task.updated"))
            ).scalar_one()
        assert entry.details == {"changes": {"status": "in_progress", "title": "Doing it"}}

    @pytest.mark.asyncio
    async def test_update_rejects_outside_assignee(self, seed, session_factory):
        ctx, _, project = await _workspace(seed, session_factory)
        task = await _task(session_factory, ctx, project)
        outsider, _ = await seed.user("Sam")

        async with session_factory() as db:
            with pytest.raises(NotMemberError):
                await task_service.update_task(db, ctx, task.id, TaskPatch(assignee_id=outsider.id))

    @pytest.mark.asyncio
    async def test_delete(self, seed, session_factory):
        ctx, _, project = await _workspace(seed, session_factory)
        task = await _task(session_factory, ctx, project)

        async with session_factory() as db:
            await task_service.delete_task(db, ctx, task.id)
            await db.commit()

        async with session_factory() as db:
            with pytest.raises(NotFoundError):
                await task_service.get_task(db, ctx, task.id)
            actions = [e.action for e in (await db.execute(select(AuditLogEntry))).scalars().all()]
        assert "task.deleted" in actions
