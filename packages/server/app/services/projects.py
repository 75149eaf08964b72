"""
Project service layer: organization-scoped project CRUD.

Every operation receives a ``VerifiedContext`` produced by the tenancy guard.
A project that exists in another organization is reported as FORBIDDEN
rather than NOT_FOUND.
"""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.audit import record_audit
from app.core.config import get_settings
from app.core.errors import ForbiddenError, NotFoundError
from app.core.tenancy import VerifiedContext, require_manager
from app.models.project import Project
from app.models.task import Task
from orghub_shared.schemas.common import ProjectStatus
from orghub_shared.schemas.projects import ProjectCreate, ProjectPatch

log = structlog.get_logger()
settings = get_settings()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_project_or_404(
    db: AsyncSession, project_id: uuid.UUID, ctx: VerifiedContext
) -> Project:
    project = await db.get(Project, project_id)
    if project is None:
        raise NotFoundError("Project not found")
    if project.organization_id != ctx.organization_id:
        raise ForbiddenError("Project does not belong to your organization")
    return project


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_projects(db: AsyncSession, ctx: VerifiedContext) -> list[Project]:
    result = await db.execute(
        select(Project)
        .where(Project.organization_id == ctx.organization_id)
        .order_by(Project.created_at.desc())
        .limit(settings.list_limit)
    )
    return list(result.scalars().all())


async def get_project(
    db: AsyncSession, ctx: VerifiedContext, project_id: uuid.UUID
) -> Project:
    return await get_project_or_404(db, project_id, ctx)


async def get_project_with_tasks(
    db: AsyncSession, ctx: VerifiedContext, project_id: uuid.UUID
) -> tuple[Project, list[Task]]:
    project = await get_project_or_404(db, project_id, ctx)
    result = await db.execute(
        select(Task)
        .where(Task.project_id == project.id)
        .order_by(Task.created_at.desc())
    )
    return project, list(result.scalars().all())


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_project(
    db: AsyncSession, ctx: VerifiedContext, req: ProjectCreate
) -> Project:
    project = Project(
        organization_id=ctx.organization_id,
        name=req.name,
        description=req.description,
        status=ProjectStatus.ACTIVE.value,
        created_by=ctx.user_id,
        updated_by=ctx.user_id,
    )
    db.add(project)
    await db.flush()

    await record_audit(db, ctx, "project.created", "project", project.id, {"name": project.name})
    log.info("project.created", project_id=str(project.id), org_id=str(ctx.organization_id))
    return project


async def update_project(
    db: AsyncSession,
    ctx: VerifiedContext,
    project_id: uuid.UUID,
    patch: ProjectPatch,
) -> Project:
    """Apply a partial update. Archiving through this path needs owner or admin."""
    project = await get_project_or_404(db, project_id, ctx)
    if patch.archives:
        require_manager(ctx)

    changes = patch.changes()
    for key, value in changes.items():
        setattr(project, key, value)
    project.updated_by = ctx.user_id
    db.add(project)
    await db.flush()

    await record_audit(db, ctx, "project.updated", "project", project.id, {"changes": changes})
    log.info("project.updated", project_id=str(project.id), fields=sorted(changes))
    return project


async def archive_project(
    db: AsyncSession, ctx: VerifiedContext, project_id: uuid.UUID
) -> Project:
    require_manager(ctx)
    project = await get_project_or_404(db, project_id, ctx)

    previous_status = project.status
    project.status = ProjectStatus.ARCHIVED.value
    project.updated_by = ctx.user_id
    db.add(project)
    await db.flush()

    await record_audit(
        db, ctx, "project.archived", "project", project.id,
        {"previous_status": previous_status},
    )
    log.info("project.archived", project_id=str(project.id), org_id=str(ctx.organization_id))
    return project


async def delete_project(
    db: AsyncSession, ctx: VerifiedContext, project_id: uuid.UUID
) -> None:
    """Delete a project and all of its tasks (owner or admin)."""
    require_manager(ctx)
    project = await get_project_or_404(db, project_id, ctx)

    await db.execute(delete(Task).where(Task.project_id == project.id))
    await db.delete(project)
    await db.flush()

    await record_audit(db, ctx, "project.deleted", "project", project_id, {"name": project.name})
    log.info("project.deleted", project_id=str(project_id), org_id=str(ctx.organization_id))
