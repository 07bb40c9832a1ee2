"""Pydantic schemas for the assistant chat, search and batch endpoints."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    context: dict[str, Any] | None = None


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: str


class QuickAction(BaseModel):
    label: str
    type: str


class ChatResponse(BaseModel):
    message: ChatMessage
    suggestions: list[str] = Field(default_factory=list)
    actions: list[QuickAction] = Field(default_factory=list)


class SearchRequest(BaseModel):
    query: str
    filters: dict[str, Any] | None = None


class SearchResponse(BaseModel):
    results: dict[str, list[dict[str, Any]]]
    query: str
    total: int


class BatchOperation(BaseModel):
    id: str | None = None
    type: str
    data: dict[str, Any] = Field(default_factory=dict)


class BatchRequest(BaseModel):
    operations: list[BatchOperation]


class BatchItemResult(BaseModel):
    id: str | None = None
    result: Any | None = None
    error: str | None = None


class BatchResponse(BaseModel):
    results: list[BatchItemResult]
