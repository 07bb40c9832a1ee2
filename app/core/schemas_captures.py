"""Pydantic schemas for captures."""

from typing import Any, Literal

from pydantic import BaseModel, Field

CaptureType = Literal["email", "note", "task", "idea", "link", "file", "voice"]
Priority = Literal["high", "medium", "low"]

PRIORITIES: tuple[str, ...] = ("high", "medium", "low")
CATEGORIES: tuple[str, ...] = (
    "email",
    "meeting",
    "task",
    "idea",
    "research",
    "planning",
    "communication",
    "general",
)


class ExtractedEntities(BaseModel):
    """Entities pulled out of capture content."""

    people: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    projects: list[str] = Field(default_factory=list)
    tasks: list[str] = Field(default_factory=list)


class ProcessedContent(BaseModel):
    """Structured analysis attached to a capture."""

    summary: str
    category: str
    priority: Priority
    suggested_actions: list[str] = Field(default_factory=list)
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)


class CaptureCreate(BaseModel):
    """Request body for ingesting a capture."""

    type: CaptureType = Field(..., description="Kind of content captured")
    content: str = Field(..., description="Raw captured text")
    source: str | None = Field(None, description="Where the content came from")
    metadata: dict[str, Any] = Field(default_factory=dict)
    priority: Priority | None = Field(None, description="Caller-declared priority")


class Capture(BaseModel):
    """A persisted capture."""

    id: str
    user_id: str
    type: CaptureType
    raw_content: str
    source: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    processed: ProcessedContent
    tags: list[str] = Field(default_factory=list)
    timestamp: str
    is_processed: bool = True


class CaptureUpdate(BaseModel):
    """Mutable capture fields; content is immutable once ingested."""

    processed: ProcessedContent | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None


class CaptureListResponse(BaseModel):
    captures: list[Capture]
