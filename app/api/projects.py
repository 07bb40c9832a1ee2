"""API endpoints for projects and their tasks."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.errors import NotFoundError
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_projects import (
    CreateProjectRequest,
    ProjectInsights,
    ProjectListResponse,
    ProjectResponse,
    TemplateProjectRequest,
    UpdateProjectRequest,
)
from app.core.schemas_tasks import TaskCreate, TaskUpdate

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# =============================================================================
# Projects
# =============================================================================


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectListResponse:
    """List the user's projects, most recently updated first. Archived projects are included."""
    try:
        return ProjectListResponse(projects=services.projects.list_projects(auth.user_id))
    except Exception as e:
        logger.error(f"Failed to fetch projects: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch projects") from e


@router.post("", response_model=ProjectResponse)
async def create_project(
    request: CreateProjectRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectResponse:
    try:
        project = services.projects.create_project(auth.user_id, request)
    except Exception as e:
        logger.error(f"Failed to create project: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create project") from e
    return ProjectResponse(project=project)


@router.post("/from-template", response_model=ProjectResponse)
async def create_project_from_template(
    request: TemplateProjectRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectResponse:
    """
    Create a project pre-populated with a template's tasks.

    Known templates: ``ai-project``, ``web-app`` and ``research``.
    """
    try:
        project = services.projects.create_project_from_template(auth.user_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to create project from template: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create project") from e
    return ProjectResponse(project=project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectResponse:
    try:
        return ProjectResponse(project=services.projects.get_project(auth.user_id, project_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: str,
    request: UpdateProjectRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectResponse:
    """Shallow update. A ``tasks`` list replaces the project's task set."""
    try:
        project = services.projects.update_project(auth.user_id, project_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to update project {project_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update project") from e
    return ProjectResponse(project=project)


@router.delete("/{project_id}", response_model=ProjectResponse)
async def delete_project(
    project_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectResponse:
    """Archive a project. The record is kept with status ``archived``."""
    try:
        project = services.projects.delete_project(auth.user_id, project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to archive project {project_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete project") from e
    return ProjectResponse(project=project)


@router.get("/{project_id}/insights", response_model=ProjectInsights)
async def get_project_insights(
    project_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProjectInsights:
    try:
        return services.projects.get_project_insights(auth.user_id, project_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


# =============================================================================
# Project tasks
# =============================================================================


@router.post("/{project_id}/tasks")
async def create_task(
    project_id: str,
    request: TaskCreate,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        task = services.projects.create_task(auth.user_id, project_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to create task in project {project_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to create task") from e
    return {"task": task.model_dump()}


@router.put("/{project_id}/tasks/{task_id}")
async def update_task(
    project_id: str,
    task_id: str,
    request: TaskUpdate,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Update one task. Moving it to ``completed`` records a task completion."""
    try:
        task = services.projects.update_task(auth.user_id, project_id, task_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to update task {task_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update task") from e
    return {"task": task.model_dump()}
