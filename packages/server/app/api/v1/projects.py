"""
Project endpoints: CRUD and archiving within the active organization.
"""

from __future__ import annotations

import uuid
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.tenancy import VerifiedContext, get_verified_context
from app.services import projects as project_service
from orghub_shared.schemas.common import OkResponse
from orghub_shared.schemas.projects import (
    ProjectCreate,
    ProjectPatch,
    ProjectRead,
    ProjectWithTasks,
)
from orghub_shared.schemas.tasks import TaskRead

router = APIRouter()


@router.get("", response_model=List[ProjectRead])
async def list_projects(
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    """List projects in the active org, newest first."""
    projects = await project_service.list_projects(db, ctx)
    return [ProjectRead.model_validate(p) for p in projects]


@router.post("", response_model=ProjectRead, status_code=201)
async def create_project(
    body: ProjectCreate,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    project = await project_service.create_project(db, ctx, body)
    return ProjectRead.model_validate(project)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    project = await project_service.get_project(db, ctx, project_id)
    return ProjectRead.model_validate(project)


@router.get("/{project_id}/tasks", response_model=ProjectWithTasks)
async def get_project_with_tasks(
    project_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    """A project together with all of its tasks."""
    project, tasks = await project_service.get_project_with_tasks(db, ctx, project_id)
    return ProjectWithTasks(
        project=ProjectRead.model_validate(project),
        tasks=[TaskRead.model_validate(t) for t in tasks],
    )


@router.patch("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectPatch,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    """Partial update. Setting status to archived requires owner or admin."""
    project = await project_service.update_project(db, ctx, project_id, body)
    return ProjectRead.model_validate(project)


@router.post("/{project_id}/archive", response_model=ProjectRead)
async def archive_project(
    project_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    project = await project_service.archive_project(db, ctx, project_id)
    return ProjectRead.model_validate(project)


@router.delete("/{project_id}", response_model=OkResponse)
async def delete_project(
    project_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    await project_service.delete_project(db, ctx, project_id)
    return OkResponse(id=project_id)
