"""Batch processing of captures and project updates."""

from fastapi import APIRouter, Depends

from app.core.auth_middleware import require_auth
from app.core.dependencies import ServiceContainer, get_services
from app.core.identity import AuthContext
from app.core.logging import get_logger
from app.core.schemas_assistant import BatchItemResult, BatchOperation, BatchRequest, BatchResponse
from app.core.schemas_captures import CaptureCreate
from app.core.schemas_projects import UpdateProjectRequest

logger = get_logger(__name__)

router = APIRouter(prefix="/batch", tags=["batch"])


async def _run_operation(services: ServiceContainer, user_id: str, operation: BatchOperation) -> BatchItemResult:
    if operation.type == "capture":
        capture = await services.captures.process_capture(user_id, CaptureCreate.model_validate(operation.data))
        return BatchItemResult(id=operation.id, result=capture.model_dump())

    if operation.type == "project_update":
        if not operation.id:
            raise ValueError("Project id is required")
        project = services.projects.update_project(
            user_id, operation.id, UpdateProjectRequest.model_validate(operation.data)
        )
        return BatchItemResult(id=operation.id, result=project.model_dump())

    return BatchItemResult(id=operation.id, result={"error": f"Unknown operation type: {operation.type}"})


@router.post("/process", response_model=BatchResponse)
async def process_batch(
    request: BatchRequest,
    auth: AuthContext = Depends(require_auth),
    services: ServiceContainer = Depends(get_services),
) -> BatchResponse:
    """
    Run operations in order.

    Each operation reports its own result or error; one failure does not
    stop the rest of the batch.
    """
    results: list[BatchItemResult] = []
    for operation in request.operations:
        try:
            results.append(await _run_operation(services, auth.user_id, operation))
        except Exception as e:
            logger.warning(
                f"Batch operation {operation.type} failed: {e}",
                extra={"user_id": auth.user_id, "operation_id": operation.id},
            )
            results.append(BatchItemResult(id=operation.id, error=str(e)))

    return BatchResponse(results=results)
