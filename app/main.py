"""FastAPI application entry point."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api import router as api_router
from app.core.ids import utc_now_iso
from app.core.logging import get_logger

logger = get_logger(__name__)

app = FastAPI(
    title="AIOS Backend",
    description="Personal productivity backend: captures, projects, analytics and an AI assistant",
    version="0.1.0",
)


# =============================================================================
# Error responses
# =============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": message}``."""
    detail = exc.detail
    if exc.status_code == 404 and detail == "Not Found":
        detail = "Route not found"
    return JSONResponse(content={"error": detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        content={"error": f"{location}: {message}" if location else message},
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(content={"error": "Internal server error"}, status_code=500)


# =============================================================================
# Routes
# =============================================================================


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint. Requires no authentication."""
    return JSONResponse(
        content={
            "status": "healthy",
            "timestamp": utc_now_iso(),
            "services": {
                "ai": "operational",
                "database": "operational",
                "analytics": "operational",
            },
        },
        status_code=200,
    )


# Include v1 API router
app.include_router(api_router, prefix="/v1")
