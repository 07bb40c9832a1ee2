"""Tests for integration bookkeeping and simulated sync."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.chains.classify_capture import CaptureClassifier
from app.core.analytics_service import AnalyticsService
from app.core.capture_service import CapturePipeline
from app.core.errors import IntegrationUnavailableError, NotFoundError, UnsupportedServiceError
from app.core.integration_service import IntegrationService, default_settings, probe_connection
from app.core.project_service import ProjectService
from app.db import keys
from app.services.integration_feeds import FEEDS, is_actionable_message, slack_feed
from tests.fakes.fake_kv import InMemoryKVStore

USER_ID = "user-1"


@pytest.fixture
def store():
    return InMemoryKVStore()


@pytest.fixture
def service(store):
    analytics = AnalyticsService(store)
    pipeline = CapturePipeline(store, CaptureClassifier(client=None), analytics, ProjectService(store, analytics))
    return IntegrationService(store, pipeline, analytics)


class TestConnect:
    def test_connect_with_credentials(self, service, store):
        integration = service.connect_service(USER_ID, "gmail", {"token": "secret"})

        assert integration.status == "connected"
        assert integration.id.startswith("gmail-")
        assert integration.settings["folders"] == ["inbox", "sent"]
        assert integration.settings["sync_frequency"] == "hourly"
        assert "credentials" not in integration.model_dump()
        assert store.get(keys.integration_key(USER_ID, integration.id))["credentials"] == {"token": "secret"}

    def test_empty_credentials_store_error_status(self, service):
        integration = service.connect_service(USER_ID, "notion", {})
        assert integration.status == "error"
        assert service.get_user_integrations(USER_ID)[0].status == "error"

    def test_unsupported_service(self, service):
        with pytest.raises(UnsupportedServiceError):
            service.connect_service(USER_ID, "myspace", {"token": "x"})

    def test_probe_inspects_credentials_only(self):
        assert probe_connection({"api_key": "k"}) is True
        assert probe_connection({}) is False

    def test_default_settings_for_unlisted_service(self):
        assert default_settings("zoom") == {"sync_frequency": "hourly", "auto_process": True, "notifications": True}


class TestSync:
    @pytest.mark.asyncio
    async def test_sync_ingests_feed(self, service, store):
        integration = service.connect_service(USER_ID, "gmail", {"token": "secret"})

        result = await service.sync_service(USER_ID, "gmail")

        assert result.success
        assert result.items_processed == 2
        assert result.errors == []
        captures = store.get_by_prefix(keys.captures_prefix(USER_ID))
        assert {c["source"] for c in captures} == {"gmail"}
        stored = service.get_user_integrations(USER_ID)[0]
        assert stored.id == integration.id
        assert stored.status == "connected"
        assert stored.items_processed == 2
        assert service.analytics.get_integration_usage(USER_ID) == {"gmail": 1}

    @pytest.mark.asyncio
    async def test_service_without_feed_reports_error(self, service):
        service.connect_service(USER_ID, "spotify", {"token": "x"})

        result = await service.sync_service(USER_ID, "spotify")

        assert not result.success
        assert result.errors == ["Sync not implemented for spotify"]
        assert service.get_user_integrations(USER_ID)[0].status == "error"

    @pytest.mark.asyncio
    async def test_item_failures_are_collected(self, service):
        service.connect_service(USER_ID, "github", {"token": "x"})
        service.pipeline.process_capture = AsyncMock(side_effect=[RuntimeError("db down"), None])

        result = await service.sync_service(USER_ID, "github")

        assert result.items_processed == 1
        assert result.errors == ["github sync error: db down"]
        assert not result.success

    @pytest.mark.asyncio
    async def test_feed_crash_resets_status(self, service):
        integration = service.connect_service(USER_ID, "slack", {"token": "x"})
        broken_feed = MagicMock(side_effect=RuntimeError("feed offline"))

        with patch.dict(FEEDS, {"slack": broken_feed}):
            with pytest.raises(RuntimeError, match="feed offline"):
                await service.sync_service(USER_ID, "slack")

        stored = service.get_user_integrations(USER_ID)[0]
        assert stored.id == integration.id
        assert stored.status == "error"
        assert service.get_sync_status(USER_ID) == {"slack": "error"}

    @pytest.mark.asyncio
    async def test_missing_or_disabled_integration(self, service):
        with pytest.raises(IntegrationUnavailableError):
            await service.sync_service(USER_ID, "gmail")

        integration = service.connect_service(USER_ID, "gmail", {"token": "x"})
        service.toggle_integration(USER_ID, integration.id, False)
        with pytest.raises(IntegrationUnavailableError):
            await service.sync_service(USER_ID, "gmail")

    @pytest.mark.asyncio
    async def test_initial_sync_swallows_errors(self, service):
        await service.initial_sync(USER_ID, "gmail")


class TestManagement:
    def test_settings_merge(self, service):
        integration = service.connect_service(USER_ID, "slack", {"token": "x"})

        updated = service.update_integration_settings(USER_ID, integration.id, {"sync_frequency": "daily"})

        assert updated.settings["sync_frequency"] == "daily"
        assert updated.settings["channels"] == ["#general", "#work"]

    def test_disconnect_is_hard_delete(self, service):
        integration = service.connect_service(USER_ID, "slack", {"token": "x"})

        service.disconnect_service(USER_ID, integration.id)

        assert service.get_user_integrations(USER_ID) == []
        with pytest.raises(NotFoundError):
            service.disconnect_service(USER_ID, integration.id)

    @pytest.mark.asyncio
    async def test_stats_and_sync_status(self, service):
        service.connect_service(USER_ID, "gmail", {"token": "x"})
        service.connect_service(USER_ID, "notion", {})
        await service.sync_service(USER_ID, "gmail")

        stats = service.get_integration_stats(USER_ID)

        assert stats.total == 2
        assert stats.connected == 1
        assert stats.errors == 1
        assert stats.total_items_processed == 2
        assert stats.last_sync_time is not None
        assert service.get_sync_status(USER_ID) == {"gmail": "connected", "notion": "error"}


class TestFeeds:
    def test_slack_feed_keeps_actionable_messages(self):
        items = slack_feed()
        assert len(items) == 1
        assert "review the latest mockups" in items[0].content

    def test_actionable_keywords(self):
        assert is_actionable_message("Quick question about the build")
        assert not is_actionable_message("Lunch at noon")

    def test_every_feed_tags_its_source(self):
        for service, feed in FEEDS.items():
            assert all(item.source == service for item in feed())
