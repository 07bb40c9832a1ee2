"""Pydantic schemas for third-party integrations."""

from typing import Any, Literal

from pydantic import BaseModel, Field

IntegrationStatus = Literal["connected", "error", "syncing"]


class Integration(BaseModel):
    """A connected service. Credentials are opaque and never returned by the API."""

    id: str
    user_id: str
    service: str
    status: IntegrationStatus = "connected"
    credentials: dict[str, Any] = Field(default_factory=dict, exclude=True)
    last_sync: str
    items_processed: int = 0
    enabled: bool = True
    settings: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Serialize for storage, credentials included."""
        record = self.model_dump(mode="json")
        record["credentials"] = self.credentials
        return record


class ConnectRequest(BaseModel):
    service: str
    credentials: dict[str, Any] = Field(default_factory=dict)


class SyncRequest(BaseModel):
    service: str


class ToggleRequest(BaseModel):
    enabled: bool


class SyncResult(BaseModel):
    success: bool = False
    items_processed: int = 0
    errors: list[str] = Field(default_factory=list)
    last_sync: str


class IntegrationStats(BaseModel):
    total: int = 0
    connected: int = 0
    errors: int = 0
    total_items_processed: int = 0
    last_sync_time: str | None = None
