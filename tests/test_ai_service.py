import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Optional

import httpx
import openai
import pytest
from anthropic import AsyncAnthropic

from conftest import FakeOpenAI
from src.config.settings import Config
from src.domain.entities.message import Message
from src.domain.value_objects.conversation_id import ConversationId
from src.services.ai_service import (
    AIContext,
    AIService,
    analyze_intent,
    calculate_confidence,
    extract_sources,
    model_fallback_order,
    prepare_history,
    sanitize_user_input,
)
from src.services.llm_client import (
    AsyncCircuitBreaker,
    CircuitOpenError,
    chat_completion,
    get_circuit_breaker,
    reset_circuit_breakers,
)
from src.setup.ioc.container import create_container


@pytest.fixture(autouse=True)
def fresh_breakers():
    reset_circuit_breakers()
    yield
    reset_circuit_breakers()


class FakeAnthropic:
    def __init__(self, text="Claude says hi", error=None):
        self.calls = []
        self.text = text
        self.error = error
        self.messages = SimpleNamespace(create=self._create)

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=self.text)],
            usage=SimpleNamespace(input_tokens=7, output_tokens=3),
        )


def _perplexity_client(requests):
    def handler(request):
        requests.append(request)
        return httpx.Response(
            200,
            json={
                "choices": [{"message": {"content": "See https://www.va.gov for details"}}],
                "usage": {"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": 10},
                "citations": ["https://www.va.gov"],
            },
        )

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _message(role, content):
    return Message(
        id="m",
        conversation_id=ConversationId("c" * 32),
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc),
    )


# ==================== HELPERS ====================


def test_sanitize_user_input():
    assert sanitize_user_input("  <b>hi</b> JavaScript:alert(1) ") == "bhi/b alert(1)"
    assert len(sanitize_user_input("x" * 5000)) == 4000


@pytest.mark.parametrize(
    "message, category, subcategory",
    [
        ("Is there an SBA business loan for me?", "opportunity", "small business"),
        ("How is my disability rating decided?", "benefits", "disability"),
        ("Please review my DD-214", "document", "general"),
        ("hello there", "general", "general"),
    ],
)
def test_analyze_intent(message, category, subcategory):
    intent = analyze_intent(message)

    assert intent["category"] == category
    assert intent.get("subcategory", "general") == subcategory


def test_analyze_intent_without_keywords():
    assert analyze_intent("xyz") == {"category": "general", "confidence": 0.5}


def test_calculate_confidence():
    assert calculate_confidence("short") == 0.5
    rich = "VA eligibility and deadline info at https://www.va.gov " + "x" * 100
    assert calculate_confidence(rich) == 1.0


def test_extract_sources_caps_at_five():
    content = " ".join(f"https://example.com/{i}" for i in range(7))

    assert extract_sources(content) == [f"https://example.com/{i}" for i in range(5)]


def test_prepare_history_masks_and_trims():
    messages = [_message("user", f"q{i}") for i in range(12)]
    messages.append(_message("system", "call me at 555-123-4567"))

    history = prepare_history(messages)

    assert len(history) == 10
    assert history[0]["content"] == "q3"
    assert history[-1] == {"role": "user", "content": "call me at XXX-XXX-4567"}


def test_model_fallback_order():
    assert model_fallback_order("claude") == ["claude", "openai", "perplexity"]
    with pytest.raises(ValueError):
        model_fallback_order("gemini")


# ==================== FALLBACK CHAIN ====================


def test_openai_answers_first():
    client = FakeOpenAI()
    service = AIService(openai_client=client, anthropic_client=FakeAnthropic())

    response = asyncio.run(
        service.generate_response("What VA healthcare benefits exist?", AIContext(user_id="u"))
    )

    assert response.success
    assert response.model == "openai"
    assert response.metadata["aiModel"] == "openai"
    assert response.metadata["tokenCount"] == 20
    assert response.metadata["intent"]["category"] == "benefits"
    call = client.completions.calls[0]
    assert call["model"] == Config.OPENAI_MODEL
    assert call["presence_penalty"] == 0.1
    assert "FOCUS: Explain VA benefits" in call["messages"][0]["content"]


def test_falls_back_to_claude():
    client = FakeOpenAI()
    client.completions.error = RuntimeError("openai down")
    anthropic_client = FakeAnthropic()
    service = AIService(openai_client=client, anthropic_client=anthropic_client)

    response = asyncio.run(service.generate_response("hello", AIContext(user_id="u")))

    assert response.model == "claude"
    assert response.content == "Claude says hi"
    assert response.metadata["tokenCount"] == 10
    assert anthropic_client.calls[0]["system"].lstrip().startswith("You are a specialized")
    assert anthropic_client.calls[0]["messages"] == [{"role": "user", "content": "hello"}]


def test_falls_back_to_perplexity(monkeypatch):
    monkeypatch.setattr(Config, "PERPLEXITY_API_KEY", "pplx-test")
    requests = []
    service = AIService(http_client=_perplexity_client(requests))

    response = asyncio.run(service.generate_response("hello", AIContext(user_id="u")))

    assert response.model == "perplexity"
    assert response.metadata["sources"] == ["https://www.va.gov"]
    assert response.metadata["tokenCount"] == 10
    assert requests[0].headers["Authorization"] == "Bearer pplx-test"


def test_all_providers_fail():
    client = FakeOpenAI()
    client.completions.error = RuntimeError("down")
    service = AIService(
        openai_client=client, anthropic_client=FakeAnthropic(error=RuntimeError("down"))
    )

    response = asyncio.run(service.generate_response("hello", AIContext(user_id="u")))

    assert not response.success
    assert response.model == "fallback"
    assert response.error == "All AI models failed"
    assert response.metadata["confidence"] == 0


def test_user_profile_reaches_system_prompt():
    client = FakeOpenAI()
    service = AIService(openai_client=client)
    context = AIContext(
        user_id="u",
        user_profile={
            "subscriptionStatus": "Premium",
            "serviceRecord": {"branch": "marines", "serviceYears": 8, "disabilities": ["30%"]},
        },
    )

    asyncio.run(service.generate_response("hi", context))

    system_prompt = client.completions.calls[0]["messages"][0]["content"]
    assert "- Military Branch: marines" in system_prompt
    assert "- Service-Connected Disabilities: Yes" in system_prompt
    assert "- Subscription: Premium" in system_prompt


def test_analyze_document_redacts_before_sending():
    client = FakeOpenAI()
    service = AIService(openai_client=client)

    asyncio.run(service.analyze_document("SSN 123-45-6789, jane@example.com", "DD-214", "u"))

    prompt = client.completions.calls[0]["messages"][-1]["content"]
    assert "123-45-6789" not in prompt
    assert "jane@example.com" not in prompt
    assert "Analyze this DD-214 document" in prompt


def test_health_check():
    service = AIService(
        openai_client=FakeOpenAI(), anthropic_client=FakeAnthropic(error=RuntimeError("x"))
    )

    assert asyncio.run(service.health_check()) == {
        "openai": True,
        "claude": False,
        "perplexity": False,
    }


# ==================== CIRCUIT BREAKER ====================


def _connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.openai.com"))


def test_breaker_opens_after_retryable_failures():
    breaker = AsyncCircuitBreaker("test", threshold=2, recovery=60)

    async def scenario():
        await breaker.record_failure(_connection_error())
        await breaker.record_failure(_connection_error())
        await breaker.check()

    with pytest.raises(CircuitOpenError):
        asyncio.run(scenario())
    assert breaker.state == "open"


def test_non_retryable_errors_do_not_trip_breaker():
    breaker = AsyncCircuitBreaker("test", threshold=1, recovery=60)

    async def scenario():
        await breaker.record_failure(ValueError("bad request"))
        await breaker.check()

    asyncio.run(scenario())
    assert breaker.state == "closed"


def test_half_open_probe_closes_or_reopens():
    breaker = AsyncCircuitBreaker("test", threshold=1, recovery=0)

    async def scenario():
        await breaker.record_failure(_connection_error())
        await breaker.check()  # recovery elapsed: half-open
        states = [breaker.state]
        await breaker.record_failure(RuntimeError("probe failed"))
        states.append(breaker.state)
        await breaker.check()
        await breaker.record_success()
        states.append(breaker.state)
        return states

    assert asyncio.run(scenario()) == ["half_open", "open", "closed"]


def test_chat_completion_fails_fast_when_open():
    client = FakeOpenAI()
    client.completions.error = _connection_error()

    async def scenario():
        for _ in range(Config.LLM_CB_FAILURE_THRESHOLD):
            with pytest.raises(openai.APIConnectionError):
                await chat_completion(client, [{"role": "user", "content": "x"}], "gpt-4o-mini")
        with pytest.raises(CircuitOpenError):
            await chat_completion(client, [{"role": "user", "content": "x"}], "gpt-4o-mini")

    asyncio.run(scenario())

    assert len(client.completions.calls) == Config.LLM_CB_FAILURE_THRESHOLD
    assert get_circuit_breaker("openai").state == "open"


# ==================== CLIENT LIFECYCLE ====================


def test_container_closes_anthropic_client(monkeypatch):
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "sk-ant-test")

    async def scenario():
        container = create_container()
        client = await container.get(Optional[AsyncAnthropic])
        open_before_close = not client.is_closed()
        await container.close()
        return client, open_before_close

    client, open_before_close = asyncio.run(scenario())

    assert isinstance(client, AsyncAnthropic)
    assert open_before_close
    assert client.is_closed()


def test_container_without_anthropic_key_has_no_client(monkeypatch):
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "")

    async def scenario():
        container = create_container()
        client = await container.get(Optional[AsyncAnthropic])
        await container.close()
        return client

    assert asyncio.run(scenario()) is None
