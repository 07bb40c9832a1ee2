"""Mocked OpenAI / Anthropic clients and a fixed-token identity provider."""

from unittest.mock import AsyncMock, MagicMock

import httpx

from app.core.identity import AuthContext

VALID_TOKEN = "valid-token"
TEST_USER_ID = "user-123"


class FakeIdentityProvider:
    """Accepts exactly one token."""

    def __init__(self, token: str = VALID_TOKEN, user_id: str = TEST_USER_ID):
        self.token = token
        self.user_id = user_id

    def verify(self, token: str) -> AuthContext | None:
        if token != self.token:
            return None
        return AuthContext(user_id=self.user_id, token=token, email="user@example.com")


def fake_request(url: str) -> httpx.Request:
    return httpx.Request("POST", url)


def mock_openai_client(content: str | None = None, side_effect: Exception | None = None) -> MagicMock:
    """AsyncOpenAI stand-in whose chat completion returns ``content``."""
    client = MagicMock()
    message = MagicMock()
    message.content = content
    response = MagicMock()
    response.choices = [MagicMock(message=message)]

    client.chat.completions.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client


def mock_anthropic_client(text: str | None = None, side_effect: Exception | None = None) -> MagicMock:
    """AsyncAnthropic stand-in whose message reply is a single text block."""
    client = MagicMock()
    response = MagicMock()
    response.content = [MagicMock(type="text", text=text)] if text is not None else []

    client.messages.create = AsyncMock(return_value=response, side_effect=side_effect)
    return client
