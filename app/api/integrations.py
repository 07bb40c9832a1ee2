"""API endpoints for third-party integrations."""

from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.errors import IntegrationUnavailableError, NotFoundError, UnsupportedServiceError
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_integrations import (
    ConnectRequest,
    IntegrationStats,
    SyncRequest,
    SyncResult,
    ToggleRequest,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/integrations", tags=["integrations"])


@router.get("")
async def list_integrations(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """List connected services. Credentials are never included."""
    try:
        integrations = services.integrations.get_user_integrations(auth.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch integrations: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch integrations") from e
    return {"integrations": [integration.model_dump() for integration in integrations]}


@router.get("/stats", response_model=IntegrationStats)
async def integration_stats(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> IntegrationStats:
    try:
        return services.integrations.get_integration_stats(auth.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch integration stats: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch integrations") from e


@router.post("/connect")
async def connect_integration(
    request: ConnectRequest,
    background_tasks: BackgroundTasks,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """
    Connect a supported service.

    A successful connection schedules an initial sync in the background;
    a failed connection probe is stored with status ``error``.
    """
    try:
        integration = services.integrations.connect_service(auth.user_id, request.service, request.credentials)
    except UnsupportedServiceError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to connect integration: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to connect integration") from e

    if integration.status == "connected":
        background_tasks.add_task(services.integrations.initial_sync, auth.user_id, integration.service)

    return {"integration": integration.model_dump()}


@router.post("/sync", response_model=SyncResult)
async def sync_integration(
    request: SyncRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> SyncResult:
    try:
        return await services.integrations.sync_service(auth.user_id, request.service)
    except IntegrationUnavailableError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to sync integration: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to sync integration") from e


@router.patch("/{integration_id}/settings")
async def update_integration_settings(
    integration_id: str,
    settings: dict[str, Any] = Body(...),
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Merge the given keys into the integration's settings."""
    try:
        integration = services.integrations.update_integration_settings(auth.user_id, integration_id, settings)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to update integration settings: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update integration settings") from e
    return {"integration": integration.model_dump()}


@router.post("/{integration_id}/toggle")
async def toggle_integration(
    integration_id: str,
    request: ToggleRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        integration = services.integrations.toggle_integration(auth.user_id, integration_id, request.enabled)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to toggle integration: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to toggle integration") from e
    return {"integration": integration.model_dump()}


@router.delete("/{integration_id}")
async def disconnect_integration(
    integration_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        services.integrations.disconnect_service(auth.user_id, integration_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to disconnect integration: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to disconnect integration") from e
    return {"success": True}
