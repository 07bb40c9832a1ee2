"""Capture classification via OpenAI chat completions.

Sends one fixed-template prompt per capture and parses the JSON reply. The
call is best-effort: no retries, and every failure is reported through the
returned ``LLMResult`` rather than raised.
"""

import json

from openai import APIError, AsyncOpenAI

from app.core.config import Settings
from app.core.llm import LLMResult, LLMStatus, parse_llm_json_dict
from app.core.logging import get_logger

logger = get_logger(__name__)

CLASSIFY_PROMPT = """Analyze this content and return a JSON object with the following structure:
{{
  "summary": "Brief summary in 1-2 sentences",
  "category": "email|meeting|task|idea|research|planning|communication",
  "priority": "high|medium|low",
  "actions": ["action1", "action2"],
  "people": ["name1", "name2"],
  "dates": ["date1", "date2"],
  "projects": ["project1"],
  "tasks": ["task1", "task2"]
}}

Output ONLY the JSON object, no markdown, no explanation.

Content: {content}"""


class CaptureClassifier:
    """Language-model gateway for capture analysis."""

    def __init__(
        self,
        client: AsyncOpenAI | None,
        model: str = "gpt-3.5-turbo",
        max_tokens: int = 400,
        temperature: float = 0.3,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_settings(cls, settings: Settings) -> "CaptureClassifier":
        client = None
        if settings.OPENAI_API_KEY:
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                max_retries=0,
                timeout=settings.LLM_TIMEOUT_SECONDS,
            )
        return cls(
            client=client,
            model=settings.CAPTURE_MODEL,
            max_tokens=settings.CAPTURE_MAX_TOKENS,
            temperature=settings.CAPTURE_TEMPERATURE,
        )

    async def classify(self, content: str) -> LLMResult:
        """
        Ask the model for structured fields describing ``content``.

        Args:
            content: Raw captured text

        Returns:
            LLMResult whose ``data`` holds the parsed reply when ``ok``
        """
        if self.client is None:
            return LLMResult.failure(LLMStatus.DISABLED, "OpenAI API key not configured")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": CLASSIFY_PROMPT.format(content=content)}],
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except APIError as e:
            logger.warning(f"Capture classification call failed: {e}")
            return LLMResult.failure(LLMStatus.UNAVAILABLE, str(e))

        raw_output = ""
        if response.choices:
            raw_output = response.choices[0].message.content or ""
        if not raw_output.strip():
            return LLMResult.failure(LLMStatus.MALFORMED, "Empty model reply")

        try:
            data = parse_llm_json_dict(raw_output)
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to parse classification reply: {raw_output[:200]}")
            return LLMResult.failure(LLMStatus.MALFORMED, str(e))

        return LLMResult.success(data=data, text=raw_output)
