"""Cross-project task queries."""

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_tasks import TaskListResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("/active", response_model=TaskListResponse)
async def list_active_tasks(
    limit: int = Query(10, ge=1, le=100),
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> TaskListResponse:
    """Pending and in-progress tasks, highest priority first, then earliest due date."""
    try:
        return TaskListResponse(tasks=services.projects.get_active_tasks(auth.user_id, limit=limit))
    except Exception as e:
        logger.error(f"Failed to fetch active tasks: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch tasks") from e


@router.get("/overdue", response_model=TaskListResponse)
async def list_overdue_tasks(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> TaskListResponse:
    try:
        return TaskListResponse(tasks=services.projects.get_overdue_tasks(auth.user_id))
    except Exception as e:
        logger.error(f"Failed to fetch overdue tasks: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch tasks") from e
