"""Registry of narrators addressable by logical agent name."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from chesscoach.llm_provider import CoachRuntimeConfig, Narrator, PydanticAINarrator, build_chess_agent, load_runtime_config

CHESS_AGENT = "chess"

AgentRegistry = Mapping[str, Narrator]


def freeze_registry(narrators: Mapping[str, Narrator]) -> AgentRegistry:
    return MappingProxyType(dict(narrators))


def build_default_registry(config: CoachRuntimeConfig | None = None) -> AgentRegistry:
    """Register the chess narrator when live mode is configured; otherwise nothing."""
    cfg = config or load_runtime_config()
    if not cfg.live_mode_enabled:
        return freeze_registry({})
    return freeze_registry({CHESS_AGENT: PydanticAINarrator(build_chess_agent(cfg), name=CHESS_AGENT)})
