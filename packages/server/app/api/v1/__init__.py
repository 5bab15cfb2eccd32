"""
API v1 Router

Every endpoint acts on the authenticated user's own records.
"""

from fastapi import APIRouter
from . import archive, custom_statuses, projects, tasks, todos

router = APIRouter()

router.include_router(todos.router, prefix="/todos", tags=["Todos"])
router.include_router(archive.router, prefix="/archive", tags=["Archive"])
router.include_router(custom_statuses.router, prefix="/custom-statuses", tags=["Custom Statuses"])
router.include_router(projects.router, prefix="/projects", tags=["Projects"])
router.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/todos",
            "/archive/settings",
            "/archive/logs",
            "/custom-statuses",
            "/projects",
            "/tasks",
        ],
    }
