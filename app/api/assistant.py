"""Assistant chat and insight endpoints."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_assistant import ChatRequest, ChatResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/ai", tags=["assistant"])


@router.post("/chat", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> ChatResponse:
    """Send a message to the assistant and get a reply with follow-up suggestions."""
    try:
        return await services.assistant.process_message(auth.user_id, request.message, request.context)
    except Exception as e:
        logger.error(f"Failed to process AI request: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to process AI request") from e


@router.post("/insights")
async def insights(
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> dict[str, Any]:
    try:
        items = services.assistant.generate_insights(auth.user_id)
    except Exception as e:
        logger.error(f"Failed to generate insights: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to generate insights") from e
    return {"insights": [item.model_dump() for item in items]}
