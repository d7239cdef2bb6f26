"""LLM provider abstraction supporting OpenAI-compatible backends and Gemini.

Every backend is described by a :class:`ProviderSpec` record and driven by the
single :class:`ProviderAdapter`. Adding a backend means registering a new spec.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx

from commentlens.ai.models import LLMProvider
from commentlens.core import (
    ConfigurationError,
    ProviderInvocationError,
    UnsupportedProviderError,
    get_logger,
)

logger = get_logger(__name__)

RequestBuilder = Callable[[str, Mapping[str, Any]], dict[str, Any]]
Transport = Callable[["ProviderAdapter", dict[str, Any]], Awaitable[str]]

# Limits where zero means "not configured"
POSITIVE_PARAMS = frozenset({"timeout", "max_tokens", "maxOutputTokens", "max_retries"})


@dataclass(frozen=True)
class ProviderSpec:
    """Static description of one provider backend."""

    provider: str
    defaults: Mapping[str, Any]
    build_request: RequestBuilder
    transport: Transport
    base_url: str | None = None
    description: str = ""


def parse_config_json(config_json: Any) -> dict[str, Any]:
    """Parse tuning-parameter overrides.

    Invalid JSON, or JSON that is not an object, yields an empty mapping.
    """
    if config_json is None:
        return {}
    if isinstance(config_json, Mapping):
        return dict(config_json)
    if isinstance(config_json, str):
        if not config_json.strip():
            return {}
        try:
            parsed = json.loads(config_json)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring invalid configJson", error=str(e))
            return {}
        if not isinstance(parsed, dict):
            logger.warning(
                "Ignoring configJson that is not an object",
                type=type(parsed).__name__,
            )
            return {}
        return parsed

    logger.warning("Ignoring configJson of unsupported type", type=type(config_json).__name__)
    return {}


def _coerce(value: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)
    if isinstance(default, int):
        return int(float(value)) if isinstance(value, str) else int(value)
    if isinstance(default, float):
        return float(value)
    if isinstance(default, str):
        return str(value)
    return value


def merge_params(
    defaults: Mapping[str, Any],
    overrides: Mapping[str, Any],
    provider: str = "",
) -> dict[str, Any]:
    """Merge overrides onto defaults, coercing values to the default's type.

    ``None`` and blank strings count as unset, as does a non-positive value
    for the limits in ``POSITIVE_PARAMS``. Unset values keep the default.
    """
    params = dict(defaults)
    for key, value in overrides.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        if key not in defaults:
            params[key] = value
            continue
        try:
            coerced = _coerce(value, defaults[key])
        except (TypeError, ValueError):
            logger.warning(
                "Ignoring invalid provider parameter",
                provider=provider,
                parameter=key,
                value=repr(value)[:100],
            )
            continue
        if key in POSITIVE_PARAMS and coerced <= 0:
            continue
        params[key] = coerced
    return params


def build_chat_request(prompt: str, params: Mapping[str, Any]) -> dict[str, Any]:
    """Flat OpenAI chat-completions request."""
    return {
        "model": params["model"],
        "messages": [{"role": "user", "content": prompt}],
        "temperature": params["temperature"],
        "max_tokens": params["max_tokens"],
    }


def build_gemini_request(prompt: str, params: Mapping[str, Any]) -> dict[str, Any]:
    """Gemini generateContent request with a nested generation config."""
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "temperature": params["temperature"],
            "topP": params["topP"],
            "topK": params["topK"],
            "maxOutputTokens": params["maxOutputTokens"],
        },
    }


async def openai_chat_transport(adapter: "ProviderAdapter", request: dict[str, Any]) -> str:
    """Send a chat-completions request through the OpenAI SDK."""
    try:
        from openai import AsyncOpenAI
    except ImportError as e:
        raise ConfigurationError(
            "openai package not installed. Run: pip install openai",
            provider=adapter.provider,
        ) from e

    params = adapter.params
    async with AsyncOpenAI(
        api_key=adapter.api_key,
        base_url=adapter.spec.base_url,
        max_retries=params["max_retries"],
        timeout=params["timeout"] / 1000,
    ) as client:
        response = await client.chat.completions.create(**request)

    if not response.choices:
        raise ProviderInvocationError(adapter.provider, "no completion choices returned")

    content = response.choices[0].message.content
    if content is None:
        raise ProviderInvocationError(adapter.provider, "empty response")

    logger.debug(
        "Chat completion",
        provider=adapter.provider,
        model=request["model"],
        tokens_used=response.usage.total_tokens if response.usage else 0,
    )

    return content


async def gemini_transport(adapter: "ProviderAdapter", request: dict[str, Any]) -> str:
    """Send a generateContent request to the Gemini REST API."""
    params = adapter.params
    url = f"{adapter.spec.base_url}/{params['model']}:generateContent"
    headers = {"Content-Type": "application/json", "x-goog-api-key": adapter.api_key}

    async with httpx.AsyncClient(
        timeout=params["timeout"] / 1000,
        transport=httpx.AsyncHTTPTransport(retries=params["max_retries"]),
    ) as client:
        response = await client.post(url, json=request, headers=headers)
        response.raise_for_status()
        result = response.json()

    # { candidates: [ { content: { parts: [ { text: "..." } ] } } ] }
    candidates = result.get("candidates") or []
    if not candidates:
        feedback = result.get("promptFeedback") or {}
        raise ProviderInvocationError(
            adapter.provider,
            f"no candidates returned (blockReason={feedback.get('blockReason')})",
        )

    parts = (candidates[0].get("content") or {}).get("parts") or []
    content = "".join(part.get("text", "") for part in parts)
    if not content:
        raise ProviderInvocationError(adapter.provider, "empty response")

    usage = result.get("usageMetadata") or {}
    logger.debug(
        "Gemini completion",
        provider=adapter.provider,
        model=params["model"],
        tokens_used=usage.get("totalTokenCount", 0),
    )

    return content


@dataclass
class ProviderAdapter:
    """Uniform ``invoke(prompt) -> str`` over a registered backend.

    Instances are request-scoped: each holds its own credentials and
    parameters, and opens its transport client only for the duration of
    :meth:`invoke`.
    """

    spec: ProviderSpec
    api_key: str | None
    config_json: Mapping[str, Any] | str | None = None
    params: dict[str, Any] = field(init=False)

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigurationError(
                f"API key is required for {self.provider}",
                provider=self.provider,
            )
        self.params = merge_params(
            self.spec.defaults,
            parse_config_json(self.config_json),
            provider=self.provider,
        )

    def __repr__(self) -> str:
        return f"ProviderAdapter(provider={self.provider!r}, model={self.model!r})"

    @property
    def provider(self) -> str:
        return self.spec.provider

    @property
    def model(self) -> str:
        return str(self.params.get("model", ""))

    def build_request(self, prompt: str) -> dict[str, Any]:
        """Render the backend-specific request payload for a prompt."""
        return self.spec.build_request(prompt, self.params)

    async def invoke(self, prompt: str) -> str:
        """Send the prompt as a single user message and return the raw text.

        Raises:
            ProviderInvocationError: If the backend call fails
        """
        request = self.build_request(prompt)
        try:
            return await self.spec.transport(self, request)
        except ProviderInvocationError as e:
            logger.error("Provider error", provider=self.provider, error=e.reason)
            raise
        except Exception as e:
            logger.error(
                "Provider error",
                provider=self.provider,
                model=self.model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProviderInvocationError(self.provider, str(e)) from e


PROVIDER_SPECS: dict[str, ProviderSpec] = {}


def register_provider(spec: ProviderSpec) -> ProviderSpec:
    """Register (or replace) the spec for a provider key."""
    PROVIDER_SPECS[spec.provider] = spec
    return spec


def available_providers() -> list[str]:
    return list(PROVIDER_SPECS)


def get_provider_spec(provider: LLMProvider | str) -> ProviderSpec:
    """Look up a registered provider spec.

    Raises:
        UnsupportedProviderError: If nothing is registered under the key
    """
    key = provider.value if isinstance(provider, LLMProvider) else provider
    try:
        return PROVIDER_SPECS[key]
    except (KeyError, TypeError):
        raise UnsupportedProviderError(key) from None


def create_provider(
    provider: LLMProvider | str,
    api_key: str | None,
    config_json: Mapping[str, Any] | str | None = None,
) -> ProviderAdapter:
    """Factory function to create a provider adapter.

    Args:
        provider: Registered provider key (e.g. ``"OpenAI"``, ``"Gemini"``)
        api_key: Backend API key
        config_json: Tuning-parameter overrides, as a mapping or JSON string

    Returns:
        Configured provider adapter

    Raises:
        UnsupportedProviderError: If the provider is not registered
        ConfigurationError: If the API key is missing
    """
    return ProviderAdapter(get_provider_spec(provider), api_key, config_json)


# Timeouts are in milliseconds, as stored in client configurations.
_CHAT_DEFAULTS: dict[str, Any] = {
    "temperature": 0.7,
    "max_tokens": 1000,
    "max_retries": 3,
    "timeout": 30000,
}

register_provider(
    ProviderSpec(
        provider=LLMProvider.OPENAI.value,
        defaults={
            **_CHAT_DEFAULTS,
            "model": "gpt-3.5-turbo",
            "max_tokens": 5000,
            "timeout": 60000,
        },
        build_request=build_chat_request,
        transport=openai_chat_transport,
        description="OpenAI chat completions",
    )
)

register_provider(
    ProviderSpec(
        provider=LLMProvider.GROK.value,
        defaults={**_CHAT_DEFAULTS, "model": "grok-3-beta"},
        build_request=build_chat_request,
        transport=openai_chat_transport,
        base_url="https://api.x.ai/v1",
        description="X.AI Grok (OpenAI-compatible)",
    )
)

register_provider(
    ProviderSpec(
        provider=LLMProvider.DEEPSEEK.value,
        defaults={**_CHAT_DEFAULTS, "model": "deepseek-chat"},
        build_request=build_chat_request,
        transport=openai_chat_transport,
        base_url="https://api.deepseek.com",
        description="DeepSeek (OpenAI-compatible)",
    )
)

register_provider(
    ProviderSpec(
        provider=LLMProvider.GEMINI.value,
        defaults={
            "model": "gemini-1.5-pro",
            "temperature": 0.7,
            "maxOutputTokens": 1000,
            "topP": 0.9,
            "topK": 40,
            "max_retries": 3,
            "timeout": 30000,
        },
        build_request=build_gemini_request,
        transport=gemini_transport,
        base_url="https://generativelanguage.googleapis.com/v1beta/models",
        description="Google Gemini generateContent (REST)",
    )
)
