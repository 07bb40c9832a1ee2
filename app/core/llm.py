"""LLM call results and reply parsing utilities."""

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LLMStatus(str, Enum):
    """Outcome of a best-effort model call."""

    OK = "ok"
    DISABLED = "disabled"  # no API key configured
    UNAVAILABLE = "unavailable"  # network error, timeout or non-2xx status
    MALFORMED = "malformed"  # reply could not be parsed into the expected shape


@dataclass
class LLMResult:
    """
    Result of a model call.

    Callers branch on ``status`` instead of catching exceptions. A successful
    call may still carry empty fields: that means the model had nothing to
    say, not that the call failed.
    """

    status: LLMStatus
    data: dict[str, Any] = field(default_factory=dict)
    text: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == LLMStatus.OK

    @classmethod
    def success(cls, data: dict[str, Any] | None = None, text: str = "") -> "LLMResult":
        return cls(status=LLMStatus.OK, data=data or {}, text=text)

    @classmethod
    def failure(cls, status: LLMStatus, error: str) -> "LLMResult":
        return cls(status=status, error=error)


def _strip_llm_fences(raw_output: str) -> str:
    """Strip markdown code fences from LLM output.

    Handles: ```json ... ```, ``` ... ```, leading/trailing whitespace.
    """
    cleaned = raw_output.strip()

    # Extract JSON from markdown code fences
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def parse_llm_json_dict(raw_output: str) -> dict:
    """
    Parse LLM output as a JSON object.

    Args:
        raw_output: Raw string from LLM response

    Returns:
        Parsed dict from JSON

    Raises:
        json.JSONDecodeError: If JSON parsing fails after cleanup
        ValueError: If the JSON value is not an object
    """
    cleaned = _strip_llm_fences(raw_output)
    parsed = json.loads(cleaned)
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
