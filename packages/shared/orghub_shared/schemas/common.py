from enum import Enum
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# Roles allowed to manage members, archive projects and edit the organization
MANAGER_ROLES: tuple["Role", ...] = (Role.OWNER, Role.ADMIN)

# Roles that can be granted through invitation or role change (owner is assigned once)
ASSIGNABLE_ROLES: tuple["Role", ...] = (Role.ADMIN, Role.MEMBER)


class ErrorCode(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    NO_ORGANIZATION = "NO_ORGANIZATION"
    NOT_MEMBER = "NOT_MEMBER"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    NO_SESSION = "NO_SESSION"
    CONFLICT = "CONFLICT"


class ProjectStatus(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ErrorBody(BaseModel):
    code: ErrorCode
    message: str
    status: int


class ErrorResponse(BaseModel):
    error: ErrorBody


class OkResponse(BaseModel):
    ok: bool = True
    id: Optional[UUID] = None
