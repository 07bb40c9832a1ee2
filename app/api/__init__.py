"""API router for v1 endpoints."""

from fastapi import APIRouter

from app.api import analytics, assistant, batch, captures, integrations, projects, realtime, search, settings, tasks

router = APIRouter()

# Capture ingestion and read-back
router.include_router(captures.router)

# Assistant chat and insights
router.include_router(assistant.router)

# Analytics dashboard and activity events
router.include_router(analytics.router)

# Projects and tasks
router.include_router(projects.router)
router.include_router(tasks.router)

# Third-party integrations
router.include_router(integrations.router)

# User settings, real-time status, batch and search
router.include_router(settings.router)
router.include_router(realtime.router)
router.include_router(batch.router)
router.include_router(search.router)
