"""Analytics dashboard, productivity and activity endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_analytics import ActivityRequest, DashboardAnalytics, ProductivityAnalytics

logger = get_logger(__name__)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.get("/dashboard", response_model=DashboardAnalytics)
async def get_dashboard(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> DashboardAnalytics:
    """
    Dashboard summary for the current user.

    Returns today's completed tasks, weekly focus, capture and project
    counts, trends, the top insights and recent activity.
    """
    try:
        return services.analytics.get_dashboard(auth.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch analytics: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch analytics") from e


@router.get("/productivity", response_model=ProductivityAnalytics)
async def get_productivity(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ProductivityAnalytics:
    try:
        return services.analytics.get_productivity(auth.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch productivity data: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch productivity data") from e


@router.post("/activity")
async def record_activity(
    request: ActivityRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Record a focus session, meeting or other activity event."""
    services.analytics.record_activity(auth.user_id, request.type, request.metadata, request.timestamp)
    return {"success": True}
