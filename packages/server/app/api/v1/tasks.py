"""
Task endpoints: CRUD with filtering within the active organization.
"""

from __future__ import annotations

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.tenancy import VerifiedContext, get_verified_context
from app.services import tasks as task_service
from orghub_shared.schemas.common import OkResponse, TaskStatus
from orghub_shared.schemas.tasks import TaskCreate, TaskFilter, TaskPatch, TaskRead

router = APIRouter()


@router.get("", response_model=List[TaskRead])
async def list_tasks(
    project_id: Optional[uuid.UUID] = Query(None),
    status: Optional[TaskStatus] = Query(None),
    assignee_id: Optional[uuid.UUID] = Query(None),
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    """List tasks with optional filters."""
    filters = TaskFilter(project_id=project_id, status=status, assignee_id=assignee_id)
    tasks = await task_service.list_tasks(db, ctx, filters)
    return [TaskRead.model_validate(t) for t in tasks]


@router.post("", response_model=TaskRead, status_code=201)
async def create_task(
    body: TaskCreate,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    task = await task_service.create_task(db, ctx, body)
    return TaskRead.model_validate(task)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    task = await task_service.get_task(db, ctx, task_id)
    return TaskRead.model_validate(task)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    body: TaskPatch,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    task = await task_service.update_task(db, ctx, task_id, body)
    return TaskRead.model_validate(task)


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(
    task_id: uuid.UUID,
    ctx: VerifiedContext = Depends(get_verified_context),
    db: AsyncSession = Depends(get_session),
):
    await task_service.delete_task(db, ctx, task_id)
    return OkResponse(id=task_id)
