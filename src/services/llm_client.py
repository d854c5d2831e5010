"""
Centralized LLM client wrapper (async).

One circuit breaker per provider guards every outbound call so a provider
that keeps timing out fails fast instead of holding the request.

Usage:
    from src.services.llm_client import chat_completion, get_content

    response = await chat_completion(
        client=openai_client,
        messages=[{"role": "user", "content": "Hello"}],
        model="gpt-4o-mini",
    )
    print(get_content(response))
"""

import asyncio
import logging
import time
from typing import Any, Optional

import anthropic
import httpx
from httpx import Timeout
from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)

from src.config.settings import Config
from src.observability.metrics import (
    observe_llm_tokens,
    increment_error,
    MetricsErrorType,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = Timeout(Config.LLM_TIMEOUT, connect=Config.LLM_CONNECT_TIMEOUT)

_RETRYABLE = (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
    anthropic.APIConnectionError,
    anthropic.APITimeoutError,
    anthropic.InternalServerError,
    anthropic.RateLimitError,
    httpx.TransportError,
)


class CircuitOpenError(Exception):
    """LLM provider is down, fail fast."""

    pass


class AsyncCircuitBreaker:
    """CLOSED → (N failures) → OPEN → (cooldown) → HALF_OPEN → (1 test) → CLOSED."""

    def __init__(self, name: str = "llm", threshold: int = 5, recovery: int = 30):
        self.name = name
        self._threshold = threshold
        self._recovery = recovery
        self._failures = 0
        self._opened_at: float = 0.0
        self._state = "closed"
        self._lock = asyncio.Lock()

    @property
    def state(self) -> str:
        return self._state

    async def check(self) -> None:
        async with self._lock:
            if self._state == "closed":
                return
            if self._state == "open":
                if time.monotonic() - self._opened_at >= self._recovery:
                    self._state = "half_open"
                    logger.info(
                        "[CircuitBreaker:%s] OPEN → HALF_OPEN (allowing one test request)",
                        self.name,
                    )
                    return
                raise CircuitOpenError(
                    f"{self.name} circuit open ({self._failures} failures)"
                )
            # half_open: only one test request allowed; block the rest
            raise CircuitOpenError(f"{self.name} circuit half-open, test request in progress")

    async def record_success(self) -> None:
        async with self._lock:
            if self._state == "half_open":
                logger.info("[CircuitBreaker:%s] HALF_OPEN → CLOSED", self.name)
            self._failures = 0
            self._state = "closed"

    async def record_failure(self, error: Exception) -> None:
        async with self._lock:
            # Any failed probe reopens, whatever the error type
            if self._state == "half_open":
                self._state = "open"
                self._opened_at = time.monotonic()
                logger.warning(
                    "[CircuitBreaker:%s] HALF_OPEN → OPEN (probe failed: %s)",
                    self.name,
                    type(error).__name__,
                )
                return
            if not isinstance(error, _RETRYABLE):
                return
            self._failures += 1
            if self._failures >= self._threshold:
                self._state = "open"
                self._opened_at = time.monotonic()
                logger.warning(
                    "[CircuitBreaker:%s] → OPEN (%d failures)", self.name, self._failures
                )


_breakers: dict[str, AsyncCircuitBreaker] = {}


def get_circuit_breaker(provider: str) -> AsyncCircuitBreaker:
    breaker = _breakers.get(provider)
    if breaker is None:
        breaker = AsyncCircuitBreaker(
            provider, Config.LLM_CB_FAILURE_THRESHOLD, Config.LLM_CB_RECOVERY_TIMEOUT
        )
        _breakers[provider] = breaker
    return breaker


def reset_circuit_breakers() -> None:
    _breakers.clear()


async def _guarded(provider: str, call):
    cb = get_circuit_breaker(provider)
    try:
        await cb.check()
        result = await call()
        await cb.record_success()
        return result
    except Exception as e:
        if not isinstance(e, CircuitOpenError):
            await cb.record_failure(e)
        increment_error(
            MetricsErrorType.TIMEOUT
            if isinstance(e, (APITimeoutError, anthropic.APITimeoutError, httpx.TimeoutException))
            else MetricsErrorType.LLM_FAILED
        )
        raise


async def chat_completion(
    client,
    messages: list[dict],
    model: str,
    temperature: float = 0.7,
    max_tokens: int = 2000,
    presence_penalty: Optional[float] = None,
    frequency_penalty: Optional[float] = None,
    timeout: Optional[Timeout] = None,
) -> Any:
    """OpenAI chat completion.

    Args:
        client: AsyncOpenAI client instance
        messages: List of message dicts [{"role": "user", "content": "..."}]
        model: Model name (e.g., "gpt-4o-mini")
        temperature: Sampling temperature
        max_tokens: Max tokens to generate
        presence_penalty / frequency_penalty: Optional sampling penalties
        timeout: Request timeout (default: LLM_TIMEOUT total, LLM_CONNECT_TIMEOUT connect)

    Returns:
        OpenAI ChatCompletion response
    """
    create_kwargs = dict(
        messages=messages,
        temperature=temperature,
        max_tokens=max_tokens,
        timeout=timeout or DEFAULT_TIMEOUT,
    )
    if presence_penalty is not None:
        create_kwargs["presence_penalty"] = presence_penalty
    if frequency_penalty is not None:
        create_kwargs["frequency_penalty"] = frequency_penalty

    async def call():
        response = await client.chat.completions.create(model=model, **create_kwargs)
        if response.usage:
            observe_llm_tokens("input", model, response.usage.prompt_tokens)
            observe_llm_tokens("output", model, response.usage.completion_tokens)
        return response

    return await _guarded("openai", call)


async def claude_completion(
    client,
    system: Optional[str],
    messages: list[dict],
    model: str,
    max_tokens: int = 2000,
    timeout: Optional[Timeout] = None,
) -> Any:
    """Anthropic messages call. `system` travels outside the message list."""
    create_kwargs = dict(
        model=model,
        max_tokens=max_tokens,
        messages=messages,
        timeout=timeout or DEFAULT_TIMEOUT,
    )
    if system:
        create_kwargs["system"] = system

    async def call():
        response = await client.messages.create(**create_kwargs)
        if response.usage:
            observe_llm_tokens("input", model, response.usage.input_tokens)
            observe_llm_tokens("output", model, response.usage.output_tokens)
        return response

    return await _guarded("claude", call)


async def perplexity_completion(
    http_client: httpx.AsyncClient,
    messages: list[dict],
    model: str,
    api_key: str,
    url: str,
    max_tokens: int = 2000,
    temperature: Optional[float] = 0.7,
    timeout: Optional[Timeout] = None,
) -> dict:
    """Perplexity chat completion over REST; returns the decoded JSON body."""
    payload: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "max_tokens": max_tokens,
    }
    if temperature is not None:
        payload["temperature"] = temperature

    async def call():
        response = await http_client.post(
            url,
            json=payload,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout or DEFAULT_TIMEOUT,
        )
        response.raise_for_status()
        data = response.json()
        usage = data.get("usage") or {}
        if usage.get("prompt_tokens") is not None:
            observe_llm_tokens("input", model, usage["prompt_tokens"])
        if usage.get("completion_tokens") is not None:
            observe_llm_tokens("output", model, usage["completion_tokens"])
        return data

    return await _guarded("perplexity", call)


# ============ Helper functions ============


def get_content(response) -> Optional[str]:
    """Extract text content from an OpenAI response."""
    if response.choices and response.choices[0].message:
        return response.choices[0].message.content
    return None


def get_finish_reason(response) -> Optional[str]:
    if response.choices:
        return response.choices[0].finish_reason
    return None


def get_usage(response) -> tuple[int, int, int]:
    """(prompt, completion, total) token counts; zeros when usage is missing."""
    usage = getattr(response, "usage", None)
    if not usage:
        return 0, 0, 0
    prompt = usage.prompt_tokens or 0
    completion = usage.completion_tokens or 0
    return prompt, completion, usage.total_tokens or prompt + completion


def get_claude_text(response) -> str:
    if response.content and response.content[0].type == "text":
        return response.content[0].text
    return ""
