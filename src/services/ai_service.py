"""
Multi-provider veteran assistant.

Tries the preferred provider first and falls back through the remaining ones
(OpenAI, Claude, Perplexity). The first provider that answers wins; when all
of them fail the caller gets a fixed apology with model "fallback".
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

import httpx

from src.config.settings import Config
from src.domain.entities.message import Message
from src.prompts.veteran import VeteranPrompts
from src.services.llm_client import (
    chat_completion,
    claude_completion,
    get_claude_text,
    get_content,
    get_usage,
    perplexity_completion,
)
from src.utils.pii import PIIProtector

logger = logging.getLogger(__name__)

PROVIDERS = ("openai", "claude", "perplexity")
MAX_INPUT_CHARS = 4000
MAX_HISTORY_MESSAGES = 10
MAX_SOURCES = 5
OPENAI_HEALTH_MODEL = "gpt-3.5-turbo"

INTENT_KEYWORDS = {
    "opportunity": ["grant", "loan", "funding", "money", "financial", "opportunity", "contract"],
    "application": ["apply", "application", "bid", "proposal", "write", "help me write"],
    "benefits": ["benefits", "va", "disability", "compensation", "pension", "healthcare"],
    "document": ["dd-214", "medical record", "document", "analyze", "review"],
    "resource": ["resource", "help", "service", "program", "assistance"],
    "general": ["hello", "hi", "thank you", "thanks"],
}

SUBCATEGORIES = {
    "opportunity": {
        "small business": ["small business", "sba", "business loan"],
        "education": ["education", "gi bill", "school", "college"],
        "housing": ["housing", "home loan", "mortgage", "va loan"],
        "healthcare": ["healthcare", "medical", "health"],
    },
    "benefits": {
        "disability": ["disability", "compensation", "rating"],
        "education": ["gi bill", "education", "school"],
        "healthcare": ["healthcare", "medical", "va hospital"],
        "pension": ["pension", "retirement"],
    },
}

URL_RE = re.compile(r"https?://\S+")
_HTML_BRACKETS_RE = re.compile(r"[<>]")
_JS_PROTOCOL_RE = re.compile(r"javascript:", re.IGNORECASE)


@dataclass
class AIContext:
    user_id: str
    user_profile: Optional[dict[str, Any]] = None
    conversation_history: list[Message] = field(default_factory=list)
    intent: Optional[str] = None


@dataclass
class AIResponse:
    content: str
    model: str
    success: bool
    metadata: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "content": self.content,
            "model": self.model,
            "success": self.success,
            "metadata": self.metadata,
        }
        if self.error:
            data["error"] = self.error
        return data


def sanitize_user_input(text: str) -> str:
    text = _HTML_BRACKETS_RE.sub("", text)
    text = _JS_PROTOCOL_RE.sub("", text)
    return text.strip()[:MAX_INPUT_CHARS]


def analyze_intent(message: str) -> dict[str, Any]:
    lower = message.lower()
    for category, keywords in INTENT_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return {
                "category": category,
                "subcategory": _subcategory(category, lower),
                "confidence": 0.8,
            }
    return {"category": "general", "confidence": 0.5}


def _subcategory(category: str, lower_message: str) -> str:
    for name, keywords in SUBCATEGORIES.get(category, {}).items():
        if any(keyword in lower_message for keyword in keywords):
            return name
    return "general"


def calculate_confidence(content: str) -> float:
    confidence = 0.5
    if len(content) > 100:
        confidence += 0.2
    if "VA" in content or "veteran" in content:
        confidence += 0.1
    if "http" in content or "www" in content:
        confidence += 0.1
    if "deadline" in content or "eligibility" in content:
        confidence += 0.1
    return min(round(confidence, 2), 1.0)


def extract_sources(content: str) -> list[str]:
    return URL_RE.findall(content)[:MAX_SOURCES]


def prepare_history(messages: Iterable[Message]) -> list[dict[str, str]]:
    """Last ten messages as provider chat turns, PII masked."""
    recent = list(messages)[-MAX_HISTORY_MESSAGES:]
    return [
        {
            "role": "assistant" if m.role == "assistant" else "user",
            "content": PIIProtector.mask_pii(m.content),
        }
        for m in recent
    ]


def model_fallback_order(preferred: str) -> list[str]:
    if preferred not in PROVIDERS:
        raise ValueError(f"Unknown model: {preferred}")
    return [preferred] + [p for p in PROVIDERS if p != preferred]


class AIService:
    def __init__(
        self,
        openai_client=None,
        anthropic_client=None,
        http_client: Optional[httpx.AsyncClient] = None,
        max_tokens: int = Config.AI_MAX_TOKENS,
    ):
        self._openai = openai_client
        self._anthropic = anthropic_client
        self._http = http_client
        self._max_tokens = max_tokens

    async def generate_response(
        self,
        user_message: str,
        context: AIContext,
        preferred_model: str = "openai",
    ) -> AIResponse:
        start = time.monotonic()

        sanitized = sanitize_user_input(user_message)
        pii = PIIProtector.detect_pii(user_message)
        if pii:
            logger.warning(
                "[AIService] PII detected in user message: %s",
                ", ".join(match["type"] for match in pii),
            )

        intent = analyze_intent(sanitized)
        system_prompt = VeteranPrompts.build_system_prompt(
            context.user_profile, context.intent or intent["category"]
        )
        history = prepare_history(context.conversation_history)

        for provider in model_fallback_order(preferred_model):
            try:
                response = await self._call_model(provider, system_prompt, sanitized, history)
            except Exception as e:
                logger.error("[AIService] Error with %s: %s", provider, e)
                continue

            response.metadata.update(
                {
                    "aiModel": provider,
                    "responseTime": int((time.monotonic() - start) * 1000),
                    "intent": intent,
                    "confidence": calculate_confidence(response.content),
                    "sources": response.metadata.get("sources")
                    or extract_sources(response.content),
                }
            )
            return response

        return AIResponse(
            content=VeteranPrompts.ALL_FAILED,
            model="fallback",
            success=False,
            metadata={
                "responseTime": int((time.monotonic() - start) * 1000),
                "intent": intent,
                "confidence": 0,
            },
            error="All AI models failed",
        )

    async def _call_model(
        self, provider: str, system_prompt: str, message: str, history: list[dict]
    ) -> AIResponse:
        if provider == "openai":
            return await self._call_openai(system_prompt, message, history)
        if provider == "claude":
            return await self._call_claude(system_prompt, message, history)
        if provider == "perplexity":
            return await self._call_perplexity(system_prompt, message, history)
        raise ValueError(f"Unknown model: {provider}")

    async def _call_openai(self, system_prompt, message, history) -> AIResponse:
        if self._openai is None:
            raise RuntimeError("OpenAI client not configured")
        response = await chat_completion(
            self._openai,
            messages=[
                {"role": "system", "content": system_prompt},
                *history,
                {"role": "user", "content": message},
            ],
            model=Config.OPENAI_MODEL,
            temperature=0.7,
            max_tokens=self._max_tokens,
            presence_penalty=0.1,
            frequency_penalty=0.1,
        )
        _, _, total = get_usage(response)
        return AIResponse(
            content=get_content(response) or "",
            model="openai",
            success=True,
            metadata={"tokenCount": total},
        )

    async def _call_claude(self, system_prompt, message, history) -> AIResponse:
        if self._anthropic is None:
            raise RuntimeError("Anthropic client not configured")
        response = await claude_completion(
            self._anthropic,
            system=system_prompt,
            messages=[*history, {"role": "user", "content": message}],
            model=Config.ANTHROPIC_MODEL,
            max_tokens=self._max_tokens,
        )
        usage = response.usage
        return AIResponse(
            content=get_claude_text(response),
            model="claude",
            success=True,
            metadata={
                "tokenCount": (usage.input_tokens + usage.output_tokens) if usage else None
            },
        )

    async def _call_perplexity(self, system_prompt, message, history) -> AIResponse:
        if self._http is None or not Config.PERPLEXITY_API_KEY:
            raise RuntimeError("Perplexity not configured")
        data = await perplexity_completion(
            self._http,
            messages=[
                {"role": "system", "content": system_prompt},
                *history,
                {"role": "user", "content": message},
            ],
            model=Config.PERPLEXITY_MODEL,
            api_key=Config.PERPLEXITY_API_KEY,
            url=Config.PERPLEXITY_API_URL,
            max_tokens=self._max_tokens,
        )
        choices = data.get("choices") or [{}]
        content = (choices[0].get("message") or {}).get("content") or ""
        return AIResponse(
            content=content,
            model="perplexity",
            success=True,
            metadata={
                "tokenCount": (data.get("usage") or {}).get("total_tokens"),
                "sources": list(data.get("citations") or []),
            },
        )

    async def generate_application_draft(
        self,
        opportunity: dict[str, Any],
        user_profile: dict[str, Any],
        requirements: Iterable[str],
        user_id: Optional[str] = None,
    ) -> AIResponse:
        prompt = VeteranPrompts.application_draft(opportunity, user_profile, requirements)
        return await self.generate_response(
            prompt,
            AIContext(
                user_id=user_id or user_profile.get("id", ""),
                user_profile=user_profile,
                intent="application",
            ),
        )

    async def analyze_document(
        self, document_text: str, document_type: str, user_id: str
    ) -> AIResponse:
        redacted = PIIProtector.redact_pii(document_text)
        prompt = VeteranPrompts.document_analysis(redacted, document_type)
        return await self.generate_response(
            prompt, AIContext(user_id=user_id, intent="document")
        )

    async def health_check(self) -> dict[str, bool]:
        results = {"openai": False, "claude": False, "perplexity": False}
        probe = [{"role": "user", "content": "test"}]

        try:
            if self._openai is None:
                raise RuntimeError("not configured")
            await self._openai.chat.completions.create(
                model=OPENAI_HEALTH_MODEL, messages=probe, max_tokens=5
            )
            results["openai"] = True
        except Exception as e:
            logger.error("[AIService] OpenAI health check failed: %s", e)

        try:
            if self._anthropic is None:
                raise RuntimeError("not configured")
            await self._anthropic.messages.create(
                model=Config.ANTHROPIC_HEALTH_MODEL, max_tokens=5, messages=probe
            )
            results["claude"] = True
        except Exception as e:
            logger.error("[AIService] Claude health check failed: %s", e)

        try:
            if self._http is None or not Config.PERPLEXITY_API_KEY:
                raise RuntimeError("not configured")
            response = await self._http.post(
                Config.PERPLEXITY_API_URL,
                json={"model": Config.PERPLEXITY_MODEL, "messages": probe, "max_tokens": 5},
                headers={"Authorization": f"Bearer {Config.PERPLEXITY_API_KEY}"},
            )
            response.raise_for_status()
            results["perplexity"] = True
        except Exception as e:
            logger.error("[AIService] Perplexity health check failed: %s", e)

        return results
