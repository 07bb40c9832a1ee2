"""Real-time status snapshot for the dashboard."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.db.keys import notifications_key

logger = get_logger(__name__)

router = APIRouter(prefix="/realtime", tags=["realtime"])

RECENT_CAPTURES = 5


@router.get("/status")
async def realtime_status(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Sync states, recent captures, active tasks, focus score and pending notifications."""
    user_id = auth.user_id
    try:
        return {
            "ai_status": "active",
            "integrations_syncing": services.integrations.get_sync_status(user_id),
            "recent_captures": [
                capture.model_dump() for capture in services.captures.get_recent(user_id, RECENT_CAPTURES)
            ],
            "active_tasks": [task.model_dump() for task in services.projects.get_active_tasks(user_id)],
            "focus_score": services.analytics.get_current_focus_score(user_id),
            "notifications": services.store.get(notifications_key(user_id)) or [],
        }
    except Exception as e:
        logger.error(f"Failed to fetch real-time status: {e}", extra={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch real-time status") from e
