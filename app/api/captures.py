"""Capture ingestion and read-back endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.errors import NotFoundError
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_captures import Capture, CaptureCreate, CaptureListResponse, CaptureUpdate

logger = get_logger(__name__)

router = APIRouter(tags=["captures"])


@router.post("/capture", response_model=Capture)
async def create_capture(
    request: CaptureCreate,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> Capture:
    """
    Ingest one piece of raw content.

    The content is analyzed (language model with heuristic fallback),
    persisted, and follow-up side effects such as task extraction are run.
    """
    if not request.content.strip():
        raise HTTPException(status_code=400, detail="Content is required")

    try:
        return await services.captures.process_capture(auth.user_id, request)
    except Exception as e:
        logger.error(f"Failed to process capture: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to process capture") from e


@router.get("/captures", response_model=CaptureListResponse)
async def list_captures(
    limit: int | None = Query(None, ge=1, le=500, description="Maximum number of captures to return"),
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> CaptureListResponse:
    """List the user's captures, newest first."""
    try:
        return CaptureListResponse(captures=services.captures.list_by_user(auth.user_id, limit))
    except Exception as e:
        logger.error(f"Failed to fetch captures: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to fetch captures") from e


@router.get("/captures/{capture_id}")
async def get_capture(
    capture_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        capture = services.captures.get_by_id(auth.user_id, capture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return {"capture": capture.model_dump(mode="json")}


@router.patch("/captures/{capture_id}")
async def update_capture(
    capture_id: str,
    request: CaptureUpdate,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Update a capture's analysis, tags or metadata. Raw content is immutable."""
    try:
        capture = services.captures.update(auth.user_id, capture_id, request)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to update capture {capture_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to update capture") from e
    return {"capture": capture.model_dump(mode="json")}


@router.delete("/captures/{capture_id}")
async def delete_capture(
    capture_id: str,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    """Permanently delete a capture."""
    try:
        services.captures.delete(auth.user_id, capture_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except Exception as e:
        logger.error(f"Failed to delete capture {capture_id}: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to delete capture") from e
    return {"success": True}
