"""Journal Companion Data Models.

This module contains dataclasses for state management.

Models:
    GuidedSessionState: Position inside a guided exercise (or idle).
    Message: One conversation turn.
    TurnResult: State plus emitted messages for a processed turn.
    Conversation: The per-date container of messages.
    Goal, GoalSuggestion, GoalStats: Task items and chat-derived suggestions.
    DailySummary: Per-date digest of mood, goals, topics and narrative.
"""
from models.session import (
    ChatRole,
    Message,
    GuidedSessionState,
    TurnResult,
)
from models.journal import (
    MOOD_OPTIONS,
    Conversation,
    DailySummary,
    Goal,
    GoalStats,
    GoalSuggestion,
)

__all__ = [
    "ChatRole",
    "Message",
    "GuidedSessionState",
    "TurnResult",
    "MOOD_OPTIONS",
    "Conversation",
    "DailySummary",
    "Goal",
    "GoalStats",
    "GoalSuggestion",
]
