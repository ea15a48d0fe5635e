from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field
from datetime import datetime

# Mood tags offered by the journal screen ("How's your weather today?")
MOOD_OPTIONS = ["Sunny", "Partly Cloudy", "Cloudy", "Rainy", "Stormy", "Snowy"]

# Cap on topics kept in a daily summary
MAX_SUMMARY_TOPICS = 8


@dataclass
class Conversation:
    """The single per-date container of chat messages for one user."""
    id: str
    date: str                      # YYYY-MM-DD
    title: str = ""
    mood: Optional[str] = None
    message_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Conversation":
        return cls(
            id=data["id"],
            date=data.get("date", ""),
            title=data.get("title", ""),
            mood=data.get("mood"),
            message_count=data.get("message_count", 0),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )


@dataclass
class Goal:
    """A user-managed task item for a date."""
    id: str
    title: str
    date: str
    done: bool = False
    source_conversation_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Goal":
        return cls(
            id=data["id"],
            title=data.get("title", ""),
            date=data.get("date", ""),
            done=bool(data.get("done", False)),
            source_conversation_id=data.get("source_conversation_id"),
            created_at=data.get("created_at"),
        )


@dataclass
class GoalSuggestion:
    """A micro-goal lifted out of an assistant reply."""
    title: str
    date: str
    source: str = "chat"
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GoalSuggestion":
        return cls(
            title=data.get("title", ""),
            date=data.get("date", ""),
            source=data.get("source", "chat"),
            created_at=data.get("created_at"),
            id=data.get("id"),
        )


@dataclass
class GoalStats:
    added: int = 0
    completed: int = 0


@dataclass
class DailySummary:
    """Per-date digest of mood, goal stats, topics and narrative text."""
    date: str
    mood: Optional[str] = None
    goals_added: int = 0
    goals_completed: int = 0
    topics: List[str] = field(default_factory=list)
    summary: str = ""
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.topics = list(self.topics)[:MAX_SUMMARY_TOPICS]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "mood": self.mood,
            "goals_added": self.goals_added,
            "goals_completed": self.goals_completed,
            "topics": list(self.topics),
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DailySummary":
        return cls(
            date=data.get("date", ""),
            mood=data.get("mood"),
            goals_added=data.get("goals_added", 0),
            goals_completed=data.get("goals_completed", 0),
            topics=data.get("topics") or [],
            summary=data.get("summary") or "",
            updated_at=data.get("updated_at"),
        )
