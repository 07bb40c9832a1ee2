"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient

from app.chains.assistant_reply import AssistantReplier
from app.chains.classify_capture import CaptureClassifier
from app.core.config import Settings
from app.core.dependencies import build_services, get_services
from app.main import app
from tests.fakes.fake_clients import VALID_TOKEN, FakeIdentityProvider
from tests.fakes.fake_kv import InMemoryKVStore


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["AIOS_ENV"] = "test"


@pytest.fixture
def settings():
    return Settings(
        SUPABASE_URL="https://test.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="test-key",
        OPENAI_API_KEY=None,
        ANTHROPIC_API_KEY=None,
    )


@pytest.fixture
def store():
    return InMemoryKVStore()


@pytest.fixture
def services(settings, store):
    """Container wired to the in-memory store with both model clients disabled."""
    return build_services(
        settings,
        store=store,
        identity=FakeIdentityProvider(),
        classifier=CaptureClassifier(client=None),
        replier=AssistantReplier(client=None, model="test-model"),
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {VALID_TOKEN}"}
