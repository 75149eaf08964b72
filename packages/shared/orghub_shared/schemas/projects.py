from typing import Any, Optional, List
from pydantic import BaseModel, Field, field_validator
from uuid import UUID
from datetime import datetime
from .common import ProjectStatus
from .tasks import TaskRead


class ProjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None


class ProjectPatch(BaseModel):
    """Partial project update: one optional field per mutable attribute."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None

    @field_validator("name", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("may not be null")
        return value

    def changes(self) -> dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        if data.get("status") is not None:
            data["status"] = ProjectStatus(data["status"]).value
        return data

    @property
    def archives(self) -> bool:
        return self.status == ProjectStatus.ARCHIVED


class ProjectRead(BaseModel):
    id: UUID
    organization_id: UUID
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    created_by: UUID
    updated_by: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProjectWithTasks(BaseModel):
    project: ProjectRead
    tasks: List[TaskRead] = Field(default_factory=list)
