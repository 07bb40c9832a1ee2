"""Connected-service bookkeeping and simulated sync.

Integrations are stored per user under ``integration:{id}``. A sync pulls
items from the service's synthetic feed and pushes each one through the
capture pipeline.
"""

import logging
from typing import Any

from app.core.analytics_service import AnalyticsService
from app.core.capture_service import CapturePipeline
from app.core.errors import IntegrationUnavailableError, NotFoundError, UnsupportedServiceError
from app.core.ids import parse_timestamp, utc_now, utc_now_iso
from app.core.logging import get_logger, log_with_context
from app.core.schemas_integrations import Integration, IntegrationStats, SyncResult
from app.db import keys
from app.db.kv_store import KeyValueStore
from app.services.integration_feeds import FEEDS

logger = get_logger(__name__)

SUPPORTED_SERVICES = (
    "gmail",
    "google-calendar",
    "slack",
    "github",
    "notion",
    "trello",
    "teams",
    "zoom",
    "figma",
    "linear",
    "spotify",
)

COMMON_SETTINGS: dict[str, Any] = {
    "sync_frequency": "hourly",
    "auto_process": True,
    "notifications": True,
}

SERVICE_SETTINGS: dict[str, dict[str, Any]] = {
    "gmail": {"folders": ["inbox", "sent"], "exclude_spam": True},
    "slack": {"channels": ["#general", "#work"], "direct_messages": True},
    "github": {"repositories": ["all"], "events": ["push", "pull_request", "issues"]},
}


def default_settings(service: str) -> dict[str, Any]:
    return {**COMMON_SETTINGS, **SERVICE_SETTINGS.get(service, {})}


def probe_connection(credentials: dict[str, Any]) -> bool:
    """Connectivity check; only credentials are inspected, nothing is dialed."""
    return bool(credentials)


class IntegrationService:
    """Connect, sync and manage third-party service integrations."""

    def __init__(self, store: KeyValueStore, pipeline: CapturePipeline, analytics: AnalyticsService):
        self.store = store
        self.pipeline = pipeline
        self.analytics = analytics

    def _load(self, user_id: str, integration_id: str) -> Integration:
        record = self.store.get(keys.integration_key(user_id, integration_id))
        if not record:
            raise NotFoundError("integration", integration_id)
        return Integration.model_validate(record)

    def _save(self, integration: Integration) -> None:
        self.store.set(keys.integration_key(integration.user_id, integration.id), integration.to_record())

    def get_user_integrations(self, user_id: str) -> list[Integration]:
        """All integrations, ordered by service name."""
        integrations = [
            Integration.model_validate(doc) for doc in self.store.get_by_prefix(keys.integrations_prefix(user_id))
        ]
        return sorted(integrations, key=lambda i: i.service)

    def connect_service(self, user_id: str, service: str, credentials: dict[str, Any]) -> Integration:
        """
        Register a new integration for ``service``.

        The integration is stored even when the probe fails, with status
        ``error``. Callers schedule the initial sync for connected ones.

        Raises:
            UnsupportedServiceError: If the service has no adapter
        """
        if service not in SUPPORTED_SERVICES:
            raise UnsupportedServiceError(service)

        now = utc_now()
        integration = Integration(
            id=f"{service}-{int(now.timestamp() * 1000)}",
            user_id=user_id,
            service=service,
            status="connected" if probe_connection(credentials) else "error",
            credentials=credentials,
            last_sync=now.isoformat(),
            settings=default_settings(service),
        )
        self._save(integration)

        logger.info(
            f"Connected {service} with status {integration.status}",
            extra={"user_id": user_id, "integration_id": integration.id},
        )
        return integration

    async def sync_service(self, user_id: str, service: str) -> SyncResult:
        """
        Pull the service's feed into captures.

        Per-item failures are collected in the result instead of aborting the
        sync; the integration ends ``connected`` only when none occurred.

        Raises:
            IntegrationUnavailableError: If no enabled integration exists for the service
        """
        integration = next(
            (i for i in self.get_user_integrations(user_id) if i.service == service and i.enabled),
            None,
        )
        if integration is None:
            raise IntegrationUnavailableError(service)

        integration.status = "syncing"
        self._save(integration)

        result = SyncResult(last_sync=utc_now_iso())
        try:
            feed = FEEDS.get(service)
            if feed is None:
                result.errors.append(f"Sync not implemented for {service}")
            else:
                for item in feed():
                    try:
                        await self.pipeline.process_capture(user_id, item)
                        result.items_processed += 1
                    except Exception as e:
                        logger.exception(f"Failed to ingest {service} item", extra={"user_id": user_id})
                        result.errors.append(f"{service} sync error: {e}")
        except Exception as e:
            result.errors.append(f"{service} sync error: {e}")
            raise
        finally:
            # Never leave the integration stuck in "syncing"
            result.success = not result.errors
            integration.status = "connected" if result.success else "error"
            integration.last_sync = result.last_sync
            integration.items_processed += result.items_processed
            self._save(integration)

        log_with_context(
            logger,
            logging.INFO if result.success else logging.WARNING,
            f"Synced {service}",
            user_id=user_id,
            items_processed=result.items_processed,
            errors=len(result.errors),
        )

        self.analytics.record_activity(
            user_id,
            "integration_sync",
            metadata={"service": service, "items_processed": result.items_processed},
        )
        return result

    async def initial_sync(self, user_id: str, service: str) -> None:
        """Background sync after connecting; failures are only logged."""
        try:
            await self.sync_service(user_id, service)
        except Exception:
            logger.exception(f"Initial sync for {service} failed", extra={"user_id": user_id})

    def get_sync_status(self, user_id: str) -> dict[str, str]:
        return {i.service: i.status for i in self.get_user_integrations(user_id)}

    def update_integration_settings(self, user_id: str, integration_id: str, settings: dict[str, Any]) -> Integration:
        integration = self._load(user_id, integration_id)
        integration.settings = {**integration.settings, **settings}
        self._save(integration)
        return integration

    def toggle_integration(self, user_id: str, integration_id: str, enabled: bool) -> Integration:
        integration = self._load(user_id, integration_id)
        integration.enabled = enabled
        self._save(integration)
        return integration

    def disconnect_service(self, user_id: str, integration_id: str) -> None:
        """Hard delete."""
        self._load(user_id, integration_id)
        self.store.delete(keys.integration_key(user_id, integration_id))

    def get_integration_stats(self, user_id: str) -> IntegrationStats:
        integrations = self.get_user_integrations(user_id)
        last_syncs = [i.last_sync for i in integrations if parse_timestamp(i.last_sync)]
        return IntegrationStats(
            total=len(integrations),
            connected=sum(1 for i in integrations if i.status == "connected"),
            errors=sum(1 for i in integrations if i.status == "error"),
            total_items_processed=sum(i.items_processed for i in integrations),
            last_sync_time=max(last_syncs, key=parse_timestamp) if last_syncs else None,
        )
