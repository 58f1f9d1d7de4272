"""Text completion client with provider fallback and usage tracking."""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class CompletionProvider(str, Enum):
    """Supported completion providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


DEFAULT_PROVIDER_ORDER = [
    CompletionProvider.OPENAI,
    CompletionProvider.ANTHROPIC,
    CompletionProvider.GEMINI,
]


class CompletionError(RuntimeError):
    """No provider could produce a completion."""


@dataclass
class CompletionResponse:
    """Completion text plus metadata, the same shape for every provider."""

    text: str
    provider: CompletionProvider
    model: str
    tokens_input: int = 0
    tokens_output: int = 0
    latency_ms: int = 0
    raw_response: dict[str, Any] = field(default_factory=dict)

    @property
    def total_tokens(self) -> int:
        return self.tokens_input + self.tokens_output


@dataclass
class UsageStats:
    total_requests: int = 0
    total_tokens_input: int = 0
    total_tokens_output: int = 0
    total_latency_ms: int = 0
    errors: int = 0
    last_request_at: datetime | None = None

    @property
    def avg_latency_ms(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_latency_ms / self.total_requests


class BaseCompletionProvider(ABC):
    """Abstract base class for completion providers."""

    provider: CompletionProvider
    default_model: str

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout = timeout
        if client is None:
            import httpx

            self._client = httpx.Client(timeout=timeout)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            self._client.close()

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResponse:
        start_time = time.time()
        data = self._request(prompt, system_prompt, temperature, max_tokens)
        latency_ms = int((time.time() - start_time) * 1000)

        text, tokens_input, tokens_output = self._extract(data)
        return CompletionResponse(
            text=text,
            provider=self.provider,
            model=self.model,
            tokens_input=tokens_input or self._estimate_tokens(prompt),
            tokens_output=tokens_output or self._estimate_tokens(text),
            latency_ms=latency_ms,
            raw_response=data,
        )

    @abstractmethod
    def _request(
        self,
        prompt: str,
        system_prompt: str | None,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        """Send the provider-specific request and return the decoded JSON body."""
        ...

    @abstractmethod
    def _extract(self, data: dict[str, Any]) -> tuple[str, int, int]:
        """Return (text, input tokens, output tokens) from a response body."""
        ...

    def _estimate_tokens(self, text: str) -> int:
        """Rough token estimate (4 chars per token)."""
        return max(1, len(text) // 4)


class OpenAIProvider(BaseCompletionProvider):
    provider = CompletionProvider.OPENAI
    default_model = "gpt-4o"

    def _request(
        self,
        prompt: str,
        system_prompt: str | None,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        response = self._client.post(
            "https://api.openai.com/v1/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}"},
            json={
                "model": self.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            },
        )
        response.raise_for_status()
        return response.json()

    def _extract(self, data: dict[str, Any]) -> tuple[str, int, int]:
        text = ""
        choices = data.get("choices", [])
        if choices:
            text = choices[0].get("message", {}).get("content") or ""
        usage = data.get("usage", {})
        return text, usage.get("prompt_tokens", 0), usage.get("completion_tokens", 0)


class AnthropicProvider(BaseCompletionProvider):
    provider = CompletionProvider.ANTHROPIC
    default_model = "claude-sonnet-4-5"

    def _request(
        self,
        prompt: str,
        system_prompt: str | None,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        request_body: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            request_body["system"] = system_prompt

        response = self._client.post(
            "https://api.anthropic.com/v1/messages",
            headers={
                "x-api-key": self.api_key,
                "anthropic-version": "2023-06-01",
                "content-type": "application/json",
            },
            json=request_body,
        )
        response.raise_for_status()
        return response.json()

    def _extract(self, data: dict[str, Any]) -> tuple[str, int, int]:
        text = ""
        for block in data.get("content", []):
            if block.get("type") == "text":
                text = block.get("text", "")
                break
        usage = data.get("usage", {})
        return text, usage.get("input_tokens", 0), usage.get("output_tokens", 0)


class GeminiProvider(BaseCompletionProvider):
    provider = CompletionProvider.GEMINI
    default_model = "gemini-2.5-flash"

    def _request(
        self,
        prompt: str,
        system_prompt: str | None,
        temperature: float,
        max_tokens: int,
    ) -> dict[str, Any]:
        request_body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        if system_prompt:
            request_body["systemInstruction"] = {"parts": [{"text": system_prompt}]}

        response = self._client.post(
            f"https://generativelanguage.googleapis.com/v1beta/models/{self.model}:generateContent",
            params={"key": self.api_key},
            json=request_body,
        )
        response.raise_for_status()
        return response.json()

    def _extract(self, data: dict[str, Any]) -> tuple[str, int, int]:
        text = ""
        candidates = data.get("candidates", [])
        if candidates:
            for part in candidates[0].get("content", {}).get("parts", []):
                if "text" in part:
                    text = part["text"]
                    break
        usage = data.get("usageMetadata", {})
        return text, usage.get("promptTokenCount", 0), usage.get("candidatesTokenCount", 0)


PROVIDER_CLASSES: dict[CompletionProvider, type[BaseCompletionProvider]] = {
    CompletionProvider.OPENAI: OpenAIProvider,
    CompletionProvider.ANTHROPIC: AnthropicProvider,
    CompletionProvider.GEMINI: GeminiProvider,
}


class CompletionClient:
    """Send completions to the preferred provider, falling back to the others."""

    def __init__(
        self,
        *,
        openai_api_key: str = "",
        anthropic_api_key: str = "",
        gemini_api_key: str = "",
        primary_provider: CompletionProvider | None = None,
        model: str | None = None,
        timeout: float = 60.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._providers: dict[CompletionProvider, BaseCompletionProvider] = {}
        self._stats: dict[CompletionProvider, UsageStats] = defaultdict(UsageStats)
        self._stats_lock = threading.Lock()

        keys = {
            CompletionProvider.OPENAI: openai_api_key,
            CompletionProvider.ANTHROPIC: anthropic_api_key,
            CompletionProvider.GEMINI: gemini_api_key,
        }
        for provider in DEFAULT_PROVIDER_ORDER:
            if keys[provider]:
                # A model override only makes sense for the preferred provider
                provider_model = model if provider == primary_provider else None
                self._providers[provider] = PROVIDER_CLASSES[provider](
                    api_key=keys[provider], model=provider_model, client=client, timeout=timeout
                )

        self._order = [p for p in DEFAULT_PROVIDER_ORDER if p in self._providers]
        if primary_provider in self._providers:
            self._order.remove(primary_provider)
            self._order.insert(0, primary_provider)

    @property
    def available_providers(self) -> list[CompletionProvider]:
        return list(self._order)

    @property
    def primary_provider(self) -> CompletionProvider | None:
        return self._order[0] if self._order else None

    @property
    def is_available(self) -> bool:
        return bool(self._providers)

    def complete(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        temperature: float = 0.7,
        max_tokens: int = 1000,
    ) -> CompletionResponse:
        """Send a completion request, trying each configured provider in order.

        Raises:
            CompletionError: If no provider is configured or all of them fail
        """
        if not self.is_available:
            raise CompletionError("No completion providers configured")

        errors: list[tuple[CompletionProvider, Exception]] = []

        for p in self._order:
            try:
                response = self._providers[p].complete(
                    prompt,
                    system_prompt=system_prompt,
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except Exception as e:
                logger.warning("Completion provider %s failed: %s", p.value, e)
                errors.append((p, e))
                with self._stats_lock:
                    self._stats[p].errors += 1
                continue

            with self._stats_lock:
                stats = self._stats[p]
                stats.total_requests += 1
                stats.total_tokens_input += response.tokens_input
                stats.total_tokens_output += response.tokens_output
                stats.total_latency_ms += response.latency_ms
                stats.last_request_at = datetime.now()
            return response

        error_summary = "; ".join(f"{p.value}: {e}" for p, e in errors)
        raise CompletionError(f"All completion providers failed: {error_summary}")

    def get_stats(self, provider: CompletionProvider | None = None) -> dict[str, Any]:
        if provider:
            with self._stats_lock:
                s = self._stats[provider]
                return {
                    "provider": provider.value,
                    "requests": s.total_requests,
                    "tokens_input": s.total_tokens_input,
                    "tokens_output": s.total_tokens_output,
                    "avg_latency_ms": round(s.avg_latency_ms, 1),
                    "errors": s.errors,
                }
        return {"providers": {p.value: self.get_stats(p) for p in self._order}}

    def close(self) -> None:
        for provider in self._providers.values():
            provider.close()


_client: CompletionClient | None = None


def get_completion_client() -> CompletionClient:
    """Get or create the shared completion client from settings."""
    global _client
    if _client is None:
        from voicenotes.config import settings

        try:
            primary = CompletionProvider(settings.completion_provider.lower())
        except ValueError:
            logger.warning("Unknown completion provider %r", settings.completion_provider)
            primary = None

        _client = CompletionClient(
            openai_api_key=settings.openai_api_key,
            anthropic_api_key=settings.anthropic_api_key,
            gemini_api_key=settings.gemini_api_key,
            primary_provider=primary,
            model=settings.completion_model or None,
        )
    return _client
