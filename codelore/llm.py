"""LLM client contract, Claude Agent SDK client, JSON extraction and retry wrapper."""

import asyncio
import json
import logging
import os
import re
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    ResultMessage,
    TextBlock,
)

from codelore.agents import get_agent_definitions
from codelore.config import settings
from codelore.errors import LLMError, LLMTimeoutError, RateLimitError

logger = logging.getLogger(__name__)

RETRYABLE_MESSAGE_RE = re.compile(r"429|503|rate.?limit", re.IGNORECASE)
_FENCE_RE = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


class LLMClient(Protocol):
    """What the review pipeline needs from a model: one prompt in, text out."""

    async def chat(self, prompt: str, *, temperature: float = 0.3, agent: str | None = None) -> str: ...


class ClaudeAgentClient:
    """``LLMClient`` backed by the Claude Agent SDK.

    ``agent`` picks one of the reviewer definitions in ``codelore.agents``; its
    prompt becomes the system prompt of a single-turn session. The SDK exposes
    no sampling temperature, so the requested value is only logged.
    """

    def __init__(self, model: str | None = None, max_turns: int = 1):
        os.environ.pop("CLAUDECODE", None)  # Allow nested Claude SDK calls
        self.model = model or settings.LLM_MODEL
        self.max_turns = max_turns
        self._agents = get_agent_definitions()

    async def chat(self, prompt: str, *, temperature: float = 0.3, agent: str | None = None) -> str:
        definition = self._agents.get(agent) if agent else None
        options = ClaudeAgentOptions(
            system_prompt=definition.prompt if definition else None,
            model=(definition.model if definition and definition.model else self.model),
            permission_mode="bypassPermissions",
            max_turns=self.max_turns,
        )
        logger.debug(f"LLM call agent={agent} temperature={temperature} prompt_chars={len(prompt)}")

        result_text = []
        error: str | None = None
        client = ClaudeSDKClient(options=options)
        await client.connect()
        try:
            await client.query(prompt)
            async for message in client.receive_response():
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            result_text.append(block.text)
                elif isinstance(message, ResultMessage):
                    if message.is_error:
                        logger.error(f"Agent {agent} error: {message.result}")
                        error = message.result or "unknown error"
        finally:
            await client.disconnect()

        if error is not None:
            if RETRYABLE_MESSAGE_RE.search(error):
                raise RateLimitError(error)
            raise LLMError(error)
        return "\n".join(result_text)


def extract_json(text: str | None) -> dict[str, Any] | None:
    """Return the first JSON object embedded in free-form model output, or None."""
    if not text:
        return None
    fenced = _FENCE_RE.search(text)
    if fenced:
        try:
            value = json.loads(fenced.group(1))
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass

    decoder = json.JSONDecoder()
    for match in re.finditer(r"\{", text):
        try:
            value, _ = decoder.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value
    return None


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, LLMTimeoutError, RateLimitError)):
        return True
    return bool(RETRYABLE_MESSAGE_RE.search(str(exc)))


async def with_retry(
    call: Callable[[], Awaitable[str]],
    *,
    timeout: float | None = None,
    max_retries: int | None = None,
    base_delay: float | None = None,
    label: str = "llm",
) -> str:
    """Run ``call`` under a timeout, retrying timeouts and rate limits with exponential backoff.

    The timed-out call is cancelled, not abandoned. After ``max_retries``
    retries a timeout surfaces as ``LLMTimeoutError``; any other error is
    re-raised unchanged.
    """
    timeout = settings.LLM_TIMEOUT_SECONDS if timeout is None else timeout
    max_retries = settings.LLM_MAX_RETRIES if max_retries is None else max_retries
    base_delay = settings.LLM_RETRY_BASE_SECONDS if base_delay is None else base_delay

    attempt = 0
    while True:
        try:
            return await asyncio.wait_for(call(), timeout=timeout)
        except Exception as e:
            if not is_retryable(e) or attempt >= max_retries:
                if isinstance(e, asyncio.TimeoutError):
                    raise LLMTimeoutError(f"{label}: no response within {timeout}s") from e
                raise
            delay = base_delay * 2 ** attempt
            logger.warning(f"{label}: attempt {attempt + 1} failed ({type(e).__name__}: {e}); retrying in {delay}s")
            attempt += 1
            await asyncio.sleep(delay)


async def chat_with_retry(
    llm: LLMClient,
    prompt: str,
    *,
    temperature: float = 0.3,
    agent: str | None = None,
    timeout: float | None = None,
    max_retries: int | None = None,
    base_delay: float | None = None,
) -> str:
    """``llm.chat`` wrapped in the timeout/retry policy."""
    return await with_retry(
        lambda: llm.chat(prompt, temperature=temperature, agent=agent),
        timeout=timeout,
        max_retries=max_retries,
        base_delay=base_delay,
        label=agent or "llm",
    )
