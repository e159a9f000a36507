"""Tests for JSON extraction, the retry wrapper and the SDK-backed client."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from codelore.errors import LLMError, LLMTimeoutError, RateLimitError
from codelore.llm import ClaudeAgentClient, chat_with_retry, extract_json, is_retryable, with_retry


class TestExtractJson:
    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"decisions": []}\n```\nDone.'
        assert extract_json(text) == {"decisions": []}

    def test_embedded_object(self):
        assert extract_json('Sure! {"a": {"b": 1}} hope that helps') == {"a": {"b": 1}}

    def test_skips_broken_brace(self):
        assert extract_json('{oops then {"ok": true}') == {"ok": True}

    def test_invalid(self):
        assert extract_json("I could not decide {oops") is None

    def test_top_level_list_ignored(self):
        assert extract_json("[1, 2, 3]") is None

    def test_empty(self):
        assert extract_json("") is None
        assert extract_json(None) is None


class TestIsRetryable:
    def test_typed_errors(self):
        assert is_retryable(RateLimitError("slow down"))
        assert is_retryable(LLMTimeoutError("late"))
        assert is_retryable(asyncio.TimeoutError())

    def test_message_match(self):
        assert is_retryable(RuntimeError("HTTP 429 Too Many Requests"))
        assert is_retryable(RuntimeError("503 Service Unavailable"))
        assert is_retryable(RuntimeError("Rate limit exceeded"))

    def test_other_errors(self):
        assert not is_retryable(ValueError("bad prompt"))


class TestWithRetry:
    async def test_first_try(self, no_sleep):
        call = AsyncMock(return_value="ok")
        assert await with_retry(call, timeout=1) == "ok"
        call.assert_awaited_once()
        no_sleep.assert_not_awaited()

    async def test_retries_rate_limit_with_backoff(self, no_sleep):
        call = AsyncMock(side_effect=[RuntimeError("429"), RuntimeError("503"), "ok"])
        result = await with_retry(call, timeout=1, max_retries=2, base_delay=2.0)
        assert result == "ok"
        assert call.await_count == 3
        assert [c.args[0] for c in no_sleep.await_args_list] == [2.0, 4.0]

    async def test_retries_exhausted(self, no_sleep):
        call = AsyncMock(side_effect=RuntimeError("429 rate limited"))
        with pytest.raises(RuntimeError, match="429"):
            await with_retry(call, timeout=1, max_retries=2)
        assert call.await_count == 3

    async def test_timeout_becomes_llm_timeout(self, no_sleep):
        calls = 0

        async def hang():
            nonlocal calls
            calls += 1
            await asyncio.Event().wait()

        with pytest.raises(LLMTimeoutError):
            await with_retry(hang, timeout=0.01, max_retries=1, base_delay=0)
        assert calls == 2

    async def test_non_retryable_raises_immediately(self, no_sleep):
        call = AsyncMock(side_effect=ValueError("bad prompt"))
        with pytest.raises(ValueError):
            await with_retry(call, timeout=1, max_retries=3)
        call.assert_awaited_once()
        no_sleep.assert_not_awaited()

    async def test_chat_with_retry_passes_agent(self, fake_llm, no_sleep):
        fake_llm.chat.return_value = "{}"
        await chat_with_retry(fake_llm, "hello", temperature=0.1, agent="eligibility-gate")
        fake_llm.chat.assert_awaited_once_with("hello", temperature=0.1, agent="eligibility-gate")


class _Text:
    def __init__(self, text):
        self.text = text


class _Assistant:
    def __init__(self, *texts):
        self.content = [_Text(t) for t in texts]


class _Result:
    def __init__(self, is_error=False, result=None):
        self.is_error = is_error
        self.result = result


def _fake_sdk(messages):
    client = MagicMock()
    client.connect = AsyncMock()
    client.query = AsyncMock()
    client.disconnect = AsyncMock()

    async def receive_response():
        for m in messages:
            yield m

    client.receive_response = receive_response
    return client


@pytest.fixture
def sdk_types():
    with patch("codelore.llm.AssistantMessage", _Assistant), \
            patch("codelore.llm.TextBlock", _Text), \
            patch("codelore.llm.ResultMessage", _Result), \
            patch("codelore.llm.ClaudeAgentOptions") as options:
        yield options


class TestClaudeAgentClient:
    async def test_collects_text(self, sdk_types):
        sdk = _fake_sdk([_Assistant("{\"a\":", "1}"), _Result()])
        with patch("codelore.llm.ClaudeSDKClient", return_value=sdk):
            text = await ClaudeAgentClient().chat("prompt", agent="eligibility-gate")
        assert text == "{\"a\":\n1}"
        sdk.query.assert_awaited_once_with("prompt")
        sdk.disconnect.assert_awaited_once()
        assert "eligibility" in sdk_types.call_args.kwargs["system_prompt"].lower()

    async def test_rate_limit_error(self, sdk_types):
        sdk = _fake_sdk([_Result(is_error=True, result="API Error: 429 rate_limit_error")])
        with patch("codelore.llm.ClaudeSDKClient", return_value=sdk):
            with pytest.raises(RateLimitError):
                await ClaudeAgentClient().chat("prompt")
        sdk.disconnect.assert_awaited_once()

    async def test_other_error(self, sdk_types):
        sdk = _fake_sdk([_Result(is_error=True, result="invalid request")])
        with patch("codelore.llm.ClaudeSDKClient", return_value=sdk):
            with pytest.raises(LLMError) as exc_info:
                await ClaudeAgentClient().chat("prompt")
        assert not isinstance(exc_info.value, RateLimitError)

    async def test_no_agent_has_no_system_prompt(self, sdk_types):
        sdk = _fake_sdk([_Result()])
        with patch("codelore.llm.ClaudeSDKClient", return_value=sdk):
            assert await ClaudeAgentClient(model="haiku").chat("prompt") == ""
        assert sdk_types.call_args.kwargs["system_prompt"] is None
        assert sdk_types.call_args.kwargs["model"] == "haiku"
