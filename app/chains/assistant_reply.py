"""Assistant chat replies via the Anthropic Messages API."""

import json
from typing import Any

from anthropic import APIError, AsyncAnthropic

from app.core.config import Settings
from app.core.llm import LLMResult, LLMStatus
from app.core.logging import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT_TEMPLATE = """You are an AI assistant for a personal operating system. The user's name is {name}.

Context about the user:
- Recent captures: {captures}
- Active projects: {projects}

Provide helpful, actionable responses that understand their workflow and patterns. Be concise but insightful."""


def build_system_prompt(
    name: str,
    captures: list[str],
    projects: list[str],
    extra: dict[str, Any] | None = None,
) -> str:
    prompt = SYSTEM_PROMPT_TEMPLATE.format(
        name=name or "User",
        captures=", ".join(captures) or "none yet",
        projects=", ".join(projects) or "none yet",
    )
    if extra:
        prompt += f"\n\nCurrent context from the app: {json.dumps(extra, default=str)}"
    return prompt


class AssistantReplier:
    """Single-shot chat completion over the recent conversation."""

    def __init__(
        self,
        client: AsyncAnthropic | None,
        model: str,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssistantReplier":
        client = None
        if settings.ANTHROPIC_API_KEY:
            client = AsyncAnthropic(
                api_key=settings.ANTHROPIC_API_KEY,
                max_retries=0,
                timeout=settings.LLM_TIMEOUT_SECONDS,
            )
        return cls(
            client=client,
            model=settings.ASSISTANT_MODEL,
            max_tokens=settings.ASSISTANT_MAX_TOKENS,
            temperature=settings.ASSISTANT_TEMPERATURE,
        )

    async def reply(self, system_prompt: str, messages: list[dict[str, str]]) -> LLMResult:
        """
        Generate the assistant's next message.

        Args:
            system_prompt: User context for the model
            messages: Conversation so far as role/content dicts, oldest first

        Returns:
            LLMResult whose ``text`` holds the reply when ``ok``
        """
        if self.client is None:
            return LLMResult.failure(LLMStatus.DISABLED, "Anthropic API key not configured")

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=messages,
            )
        except APIError as e:
            logger.warning(f"Assistant reply call failed: {e}")
            return LLMResult.failure(LLMStatus.UNAVAILABLE, str(e))

        text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text")
        if not text.strip():
            return LLMResult.failure(LLMStatus.MALFORMED, "Empty model reply")
        return LLMResult.success(text=text.strip())
