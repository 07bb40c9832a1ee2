"""User settings endpoints."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.db.keys import settings_key

logger = get_logger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
async def get_user_settings(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        settings = services.store.get(settings_key(auth.user_id)) or {}
    except Exception as e:
        logger.error(f"Failed to fetch settings: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch settings") from e
    return {"settings": settings}


@router.put("")
async def update_user_settings(
    settings: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Replace the user's settings document."""
    try:
        services.store.set(settings_key(auth.user_id), settings)
    except Exception as e:
        logger.error(f"Failed to update settings: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update settings") from e
    return {"settings": settings}
