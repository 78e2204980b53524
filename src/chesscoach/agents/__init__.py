"""Narrator registry package."""

from chesscoach.agents.registry import CHESS_AGENT, AgentRegistry, build_default_registry, freeze_registry

__all__ = ["CHESS_AGENT", "AgentRegistry", "build_default_registry", "freeze_registry"]
