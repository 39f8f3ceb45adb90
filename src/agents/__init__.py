"""AI Agents package."""

from src.agents.ai_agents import (
    ChatTurn,
    InsightAgent,
    extract_json,
    fallback_insight,
)

__all__ = [
    "ChatTurn",
    "InsightAgent",
    "extract_json",
    "fallback_insight",
]
