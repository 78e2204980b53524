from __future__ import annotations

import asyncio

import pytest
from conftest import FakeNarrator
from pydantic_ai import Agent
from pydantic_ai.messages import ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.test import TestModel

from chesscoach.agents import CHESS_AGENT, build_default_registry
from chesscoach.errors import ValidationError
from chesscoach.llm_provider import (
    DEFAULT_OPENROUTER_BASE_URL,
    DEFAULT_PYDANTICAI_MODEL,
    CoachRuntimeConfig,
    NarrationMessage,
    PydanticAINarrator,
    collect_narration,
    load_runtime_config,
    split_messages,
    user_message,
)


def test_load_runtime_config_defaults() -> None:
    config = load_runtime_config({})
    assert config.openrouter_api_key is None
    assert config.openrouter_base_url == DEFAULT_OPENROUTER_BASE_URL
    assert config.model == DEFAULT_PYDANTICAI_MODEL
    assert config.live_mode_enabled is False


def test_load_runtime_config_from_environment_values() -> None:
    config = load_runtime_config(
        {
            "OPENROUTER_API_KEY": "test-key",
            "OPENROUTER_BASE_URL": "https://example.test/v1",
            "CHESSCOACH_PYDANTICAI_MODEL": "anthropic/claude-3.5-haiku",
        }
    )
    assert config.openrouter_api_key == "test-key"
    assert config.openrouter_base_url == "https://example.test/v1"
    assert config.model == "anthropic/claude-3.5-haiku"
    assert config.live_mode_enabled is True


def test_collect_narration_preserves_arrival_order_and_forwards_tokens() -> None:
    narrator = FakeNarrator("Develop your knights before bishops.")
    seen: list[str] = []

    text = asyncio.run(collect_narration(narrator, user_message("Advise me"), on_token=seen.append))

    assert text == "Develop your knights before bishops."
    assert seen == ["Develop", " your", " knights", " before", " bishops."]
    assert narrator.calls == [[NarrationMessage(role="user", content="Advise me")]]


def test_split_messages_maps_roles_to_history() -> None:
    prompt, history = split_messages(
        [
            NarrationMessage(role="system", content="Be brief."),
            NarrationMessage(role="user", content="What about e4?"),
            NarrationMessage(role="assistant", content="A fine opening move."),
            NarrationMessage(role="user", content="And d4?"),
        ]
    )

    assert prompt == "And d4?"
    assert isinstance(history[0], ModelRequest) and isinstance(history[0].parts[0], SystemPromptPart)
    assert isinstance(history[1], ModelRequest) and isinstance(history[1].parts[0], UserPromptPart)
    assert isinstance(history[2], ModelResponse) and isinstance(history[2].parts[0], TextPart)
    assert history[2].parts[0].content == "A fine opening move."


@pytest.mark.parametrize(
    "messages",
    [[], [NarrationMessage(role="user", content="hi"), NarrationMessage(role="assistant", content="hello")]],
)
def test_split_messages_requires_trailing_user_message(messages: list[NarrationMessage]) -> None:
    with pytest.raises(ValidationError):
        split_messages(messages)


def test_pydanticai_narrator_streams_agent_output() -> None:
    expected = "Castle early and connect your rooks."
    agent = Agent(TestModel(custom_output_text=expected), output_type=str)
    narrator = PydanticAINarrator(agent)
    seen: list[str] = []

    text = asyncio.run(collect_narration(narrator, user_message("Advise me"), on_token=seen.append))

    assert text.strip() == expected
    assert len(seen) >= 1


def test_default_registry_is_empty_without_credentials() -> None:
    config = CoachRuntimeConfig(
        openrouter_api_key=None,
        openrouter_base_url=DEFAULT_OPENROUTER_BASE_URL,
        model=DEFAULT_PYDANTICAI_MODEL,
    )

    assert dict(build_default_registry(config)) == {}


def test_default_registry_registers_chess_narrator_in_live_mode() -> None:
    config = CoachRuntimeConfig(
        openrouter_api_key="test-key",
        openrouter_base_url=DEFAULT_OPENROUTER_BASE_URL,
        model=DEFAULT_PYDANTICAI_MODEL,
    )

    registry = build_default_registry(config)

    assert list(registry) == [CHESS_AGENT]
    assert isinstance(registry[CHESS_AGENT], PydanticAINarrator)
