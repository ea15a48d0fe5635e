"""Journal Companion Agent Module.

Agents:
    GuidedSessionAgent: Scripted step-by-step exercise coach (pure state machine).
    JournalAgent: Empathetic free-form replies with trailing micro-goals.
"""
from agents.guided_session import GuidedSessionAgent, Transition, TransitionKind
from agents.journal_agent import JournalAgent

__all__ = [
    "GuidedSessionAgent",
    "Transition",
    "TransitionKind",
    "JournalAgent",
]
