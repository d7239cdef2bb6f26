"""Shared test fixtures for commentlens."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from commentlens.ai.providers import PROVIDER_SPECS, ProviderSpec, register_provider
from commentlens.storage import StaticClientConfigSource

FAKE_PROVIDER = "Fake"


@pytest.fixture
def fake_transport():
    """Transport for the fake provider; set ``return_value``/``side_effect`` per test."""
    return AsyncMock(return_value="Comentario Aprobado.")


@pytest.fixture
def fake_provider(fake_transport):
    """Register a network-free provider under the key ``Fake``."""
    spec = register_provider(
        ProviderSpec(
            provider=FAKE_PROVIDER,
            defaults={"model": "fake-model", "temperature": 0.5},
            build_request=lambda prompt, params: {"prompt": prompt, **params},
            transport=fake_transport,
        )
    )
    yield spec
    PROVIDER_SPECS.pop(FAKE_PROVIDER, None)


def sent_prompt(fake_transport: AsyncMock) -> str:
    """Prompt passed to the fake transport on its last call."""
    _adapter, request = fake_transport.call_args.args
    return request["prompt"]


def make_config(**overrides: Any) -> dict[str, Any]:
    config: dict[str, Any] = {
        "enabled": True,
        "provider": FAKE_PROVIDER,
        "apiKey": "sk-test",
        "configJson": "{}",
    }
    config.update(overrides)
    return config


@pytest.fixture
def config_source():
    """Source with a moderation config for client ``c1``."""
    return StaticClientConfigSource({"c1": {"moderation": make_config()}})


@pytest.fixture
def comments():
    return [
        {
            "_id": "a1",
            "text": "Great match, the defense was solid.",
            "repliesCount": 2,
            "likesCount": 10,
            "created_at": "2024-05-01T12:00:00.000Z",
        },
        {
            "_id": "a2",
            "text": "The referee ruined the second half.",
            "repliesCount": 5,
            "likesCount": 3,
            "created_at": "2024-05-01T13:30:00.000Z",
        },
    ]


@pytest.fixture
def previous_analysis():
    return {
        "title": "Derby recap",
        "debateSummary": "Fans debated the tactics.",
        "highlightedComments": [
            {"_id": "h1", "comment": "Tactics were brave.", "reasonHighlighted": "well-argued"},
            {"_id": "h2", "comment": "Stats show more possession.", "reasonHighlighted": "evidence"},
            {"_id": "h3", "comment": "Play the youth team.", "reasonHighlighted": "novel idea"},
        ],
        "sentiment": {"positive": "40%", "neutral": "30%", "negative": "30%"},
        "lastAnalyzedCommentTimestamp": "2024-04-30T20:00:00.000Z",
    }
