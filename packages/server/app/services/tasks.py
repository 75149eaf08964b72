"""
Task service layer: organization-scoped task CRUD.

Handles:
- Filtered listing within the active organization
- Creation against a project of the same organization
- Assignee validation (assignees must be members of the organization)
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.audit import record_audit
from app.core.errors import ForbiddenError, NotFoundError, NotMemberError
from app.core.tenancy import VerifiedContext, find_membership
from app.models.task import Task
from app.services.projects import get_project_or_404
from orghub_shared.schemas.common import TaskStatus
from orghub_shared.schemas.tasks import TaskCreate, TaskFilter, TaskPatch

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_task_or_404(
    db: AsyncSession, task_id: uuid.UUID, ctx: VerifiedContext
) -> Task:
    task = await db.get(Task, task_id)
    if task is None:
        raise NotFoundError("Task not found")
    if task.organization_id != ctx.organization_id:
        raise ForbiddenError("Task does not belong to your organization")
    return task


async def _check_assignee(
    db: AsyncSession, ctx: VerifiedContext, assignee_id: Optional[uuid.UUID]
) -> None:
    if assignee_id is None:
        return
    if await find_membership(db, assignee_id, ctx.organization_id) is None:
        raise NotMemberError("Assignee is not a member of this organization")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_tasks(
    db: AsyncSession,
    ctx: VerifiedContext,
    filters: Optional[TaskFilter] = None,
) -> list[Task]:
    query = select(Task).where(Task.organization_id == ctx.organization_id)
    if filters is not None:
        if filters.project_id:
            query = query.where(Task.project_id == filters.project_id)
        if filters.status:
            query = query.where(Task.status == filters.status.value)
        if filters.assignee_id:
            query = query.where(Task.assignee_id == filters.assignee_id)

    result = await db.execute(query.order_by(Task.created_at.desc()))
    return list(result.scalars().all())


async def get_task(db: AsyncSession, ctx: VerifiedContext, task_id: uuid.UUID) -> Task:
    return await get_task_or_404(db, task_id, ctx)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_task(db: AsyncSession, ctx: VerifiedContext, req: TaskCreate) -> Task:
    project = await get_project_or_404(db, req.project_id, ctx)
    await _check_assignee(db, ctx, req.assignee_id)

    task = Task(
        organization_id=ctx.organization_id,
        project_id=project.id,
        title=req.title,
        description=req.description,
        status=TaskStatus.TODO.value,
        priority=req.priority.value,
        assignee_id=req.assignee_id,
        created_by=ctx.user_id,
        due_date=req.due_date,
    )
    db.add(task)
    await db.flush()

    await record_audit(
        db, ctx, "task.created", "task", task.id,
        {"title": task.title, "project_id": project.id},
    )
    log.info("task.created", task_id=str(task.id), project_id=str(project.id))
    return task


async def update_task(
    db: AsyncSession,
    ctx: VerifiedContext,
    task_id: uuid.UUID,
    patch: TaskPatch,
) -> Task:
    task = await get_task_or_404(db, task_id, ctx)

    changes = patch.changes()
    if "assignee_id" in changes:
        await _check_assignee(db, ctx, changes["assignee_id"])

    for key, value in changes.items():
        setattr(task, key, value)
    db.add(task)
    await db.flush()

    await record_audit(db, ctx, "task.updated", "task", task.id, {"changes": changes})
    log.info("task.updated", task_id=str(task.id), fields=sorted(changes))
    return task


async def delete_task(db: AsyncSession, ctx: VerifiedContext, task_id: uuid.UUID) -> None:
    task = await get_task_or_404(db, task_id, ctx)

    await db.delete(task)
    await db.flush()

    await record_audit(db, ctx, "task.deleted", "task", task_id, {"title": task.title})
    log.info("task.deleted", task_id=str(task_id), org_id=str(ctx.organization_id))
