"""PydanticAI runtime provider helpers for streamed OpenRouter narration."""

from __future__ import annotations

import sys
from collections.abc import AsyncIterator, Callable, Sequence
from dataclasses import dataclass
from os import environ
from typing import Literal, Mapping, Protocol

from dotenv import load_dotenv
from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider

from chesscoach.errors import ValidationError

DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_PYDANTICAI_MODEL = "openai/gpt-4o-mini"
CHESS_AGENT_INSTRUCTIONS = (
    "You are an expert chess assistant backed by an engine evaluation service.\n"
    "Explain evaluations (positive favors White, negative favors Black), "
    "describe why moves are good strategically and keep answers concise, accurate and "
    "accessible to beginners and advanced players alike.\n"
    "Follow the section headings requested in each prompt exactly."
)

_DEBUG_TRUTHY = {"1", "true", "yes", "on"}

Role = Literal["system", "user", "assistant"]
TokenSink = Callable[[str], None]


@dataclass(frozen=True)
class NarrationMessage:
    role: Role
    content: str


class Narrator(Protocol):
    def stream(self, messages: Sequence[NarrationMessage]) -> AsyncIterator[str]: ...


@dataclass(frozen=True)
class CoachRuntimeConfig:
    """Environment-driven runtime configuration for live PydanticAI usage."""

    openrouter_api_key: str | None
    openrouter_base_url: str
    model: str

    @property
    def live_mode_enabled(self) -> bool:
        return bool(self.openrouter_api_key and self.model.strip())


def load_runtime_config(env: Mapping[str, str] | None = None) -> CoachRuntimeConfig:
    """Load OpenRouter/PydanticAI settings from environment variables."""
    if env is None:
        load_dotenv()
    values = environ if env is None else env
    return CoachRuntimeConfig(
        openrouter_api_key=values.get("OPENROUTER_API_KEY"),
        openrouter_base_url=values.get("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL),
        model=values.get("CHESSCOACH_PYDANTICAI_MODEL", DEFAULT_PYDANTICAI_MODEL),
    )


def build_chess_agent(config: CoachRuntimeConfig) -> Agent[None, str]:
    model = OpenAIChatModel(
        config.model,
        provider=OpenAIProvider(base_url=config.openrouter_base_url, api_key=config.openrouter_api_key),
    )
    return Agent(model, output_type=str, system_prompt=CHESS_AGENT_INSTRUCTIONS)


def split_messages(messages: Sequence[NarrationMessage]) -> tuple[str, list[ModelMessage]]:
    """Split role-tagged messages into the final user prompt and prior history."""
    if not messages or messages[-1].role != "user":
        raise ValidationError("Narration messages must end with a user message")

    history: list[ModelMessage] = []
    for message in messages[:-1]:
        if message.role == "system":
            history.append(ModelRequest(parts=[SystemPromptPart(content=message.content)]))
        elif message.role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=message.content)]))
        else:
            history.append(ModelResponse(parts=[TextPart(content=message.content)]))
    return messages[-1].content, history


class PydanticAINarrator:
    """Narrator backed by a PydanticAI agent's streamed text output."""

    def __init__(self, agent: Agent[None, str], *, name: str = "chess") -> None:
        self.agent = agent
        self.name = name

    async def stream(self, messages: Sequence[NarrationMessage]) -> AsyncIterator[str]:
        prompt, history = split_messages(messages)
        debug_enabled = _env_flag(environ, "CHESSCOACH_DEBUG")
        if debug_enabled:
            _emit_debug(f"agent={self.name} mode=stream history={len(history)} prompt_chars={len(prompt)}")

        async with self.agent.run_stream(prompt, message_history=history or None) as result:
            async for delta in result.stream_text(delta=True):
                yield delta


async def collect_narration(
    narrator: Narrator,
    messages: Sequence[NarrationMessage],
    *,
    on_token: TokenSink | None = None,
) -> str:
    """Accumulate a narration stream in arrival order, forwarding each token."""
    chunks: list[str] = []
    async for token in narrator.stream(messages):
        chunks.append(token)
        if on_token is not None:
            on_token(token)
    return "".join(chunks)


def user_message(content: str) -> list[NarrationMessage]:
    return [NarrationMessage(role="user", content=content)]


def _env_flag(values: Mapping[str, str], key: str) -> bool:
    return values.get(key, "").strip().lower() in _DEBUG_TRUTHY


def _emit_debug(message: str) -> None:
    print(f"[chesscoach.llm] {message}", file=sys.stderr)
