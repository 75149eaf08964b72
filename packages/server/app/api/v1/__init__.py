"""
API v1 Router

Organization-scoped endpoints act on the session's active organization.
"""

from fastapi import APIRouter
from . import organizations, projects, tasks, users

router = APIRouter()

router.include_router(organizations.router, prefix="/orgs", tags=["Organizations"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])


@router.get("/", tags=["API"])
async def api_root():
    """API root — returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/current",
            "/orgs/current/members",
            "/users/me",
            "/projects",
            "/tasks",
        ],
    }
