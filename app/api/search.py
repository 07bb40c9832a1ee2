"""Search across the user's captures, projects and tasks."""

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_assistant import SearchRequest, SearchResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post("", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> SearchResponse:
    """Case-insensitive substring search. ``filters.type`` narrows the result groups."""
    try:
        return services.assistant.search_user_data(auth.user_id, request.query, request.filters)
    except Exception as e:
        logger.error(f"Failed to perform search: {e}", extra={"user_id": auth.user_id})
        raise HTTPException(status_code=500, detail="Failed to perform search") from e
