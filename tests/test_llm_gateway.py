"""Tests for the capture classifier and assistant replier chains."""

import json

import anthropic
import openai
import pytest

from app.chains.assistant_reply import AssistantReplier, build_system_prompt
from app.chains.classify_capture import CaptureClassifier
from app.core.llm import LLMStatus, parse_llm_json_dict
from tests.fakes.fake_clients import fake_request, mock_anthropic_client, mock_openai_client

CLASSIFICATION = {
    "summary": "Planning session with the design team",
    "category": "meeting",
    "priority": "medium",
    "actions": ["Schedule meeting"],
    "people": ["Dana Scully"],
    "dates": ["tomorrow"],
    "projects": ["Website"],
    "tasks": ["prepare slides"],
}


class TestParseLLMJson:
    def test_plain_object(self):
        assert parse_llm_json_dict('{"a": 1}') == {"a": 1}

    def test_fenced_object(self):
        assert parse_llm_json_dict('```json\n{"a": 1}\n```') == {"a": 1}

    def test_array_is_rejected(self):
        with pytest.raises(ValueError):
            parse_llm_json_dict("[1, 2]")

    def test_garbage_raises(self):
        with pytest.raises(json.JSONDecodeError):
            parse_llm_json_dict("not json")


class TestCaptureClassifier:
    @pytest.mark.asyncio
    async def test_success(self):
        client = mock_openai_client(json.dumps(CLASSIFICATION))
        classifier = CaptureClassifier(client=client, model="gpt-test")

        result = await classifier.classify("Plan with Dana Scully tomorrow")

        assert result.ok
        assert result.data == CLASSIFICATION
        call = client.chat.completions.create.call_args.kwargs
        assert call["model"] == "gpt-test"
        assert "Plan with Dana Scully tomorrow" in call["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_disabled_without_client(self):
        result = await CaptureClassifier(client=None).classify("anything")
        assert result.status == LLMStatus.DISABLED
        assert result.data == {}

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self):
        error = openai.APIConnectionError(request=fake_request("https://api.openai.com/v1/chat/completions"))
        classifier = CaptureClassifier(client=mock_openai_client(side_effect=error))

        result = await classifier.classify("anything")

        assert result.status == LLMStatus.UNAVAILABLE
        assert result.data == {}

    @pytest.mark.asyncio
    async def test_unparseable_reply_is_malformed(self):
        classifier = CaptureClassifier(client=mock_openai_client("Sure! Here is my analysis."))
        result = await classifier.classify("anything")
        assert result.status == LLMStatus.MALFORMED

    @pytest.mark.asyncio
    async def test_empty_reply_is_malformed(self):
        classifier = CaptureClassifier(client=mock_openai_client(None))
        result = await classifier.classify("anything")
        assert result.status == LLMStatus.MALFORMED

    def test_from_settings_without_key(self, settings):
        assert CaptureClassifier.from_settings(settings).client is None


class TestAssistantReplier:
    @pytest.mark.asyncio
    async def test_success(self):
        client = mock_anthropic_client("Block 9-11am for deep work.")
        replier = AssistantReplier(client=client, model="claude-test")

        result = await replier.reply("system", [{"role": "user", "content": "Plan my day"}])

        assert result.ok
        assert result.text == "Block 9-11am for deep work."
        call = client.messages.create.call_args.kwargs
        assert call["system"] == "system"
        assert call["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_disabled_without_client(self):
        result = await AssistantReplier(client=None, model="m").reply("s", [])
        assert result.status == LLMStatus.DISABLED

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self):
        error = anthropic.APIConnectionError(request=fake_request("https://api.anthropic.com/v1/messages"))
        replier = AssistantReplier(client=mock_anthropic_client(side_effect=error), model="m")

        result = await replier.reply("s", [{"role": "user", "content": "hi"}])

        assert result.status == LLMStatus.UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_reply_is_malformed(self):
        replier = AssistantReplier(client=mock_anthropic_client(None), model="m")
        result = await replier.reply("s", [{"role": "user", "content": "hi"}])
        assert result.status == LLMStatus.MALFORMED


class TestSystemPrompt:
    def test_lists_context(self):
        prompt = build_system_prompt("Ada", ["note one"], ["Launch"])
        assert "The user's name is Ada." in prompt
        assert "Recent captures: note one" in prompt
        assert "Active projects: Launch" in prompt

    def test_empty_context_and_extra(self):
        prompt = build_system_prompt("", [], [], extra={"view": "dashboard"})
        assert "The user's name is User." in prompt
        assert "none yet" in prompt
        assert '"view": "dashboard"' in prompt
