from typing import Any, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ChatRole(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def coerce(cls, value: Any) -> "ChatRole":
        """Unknown roles are treated as the user speaking."""
        if isinstance(value, ChatRole):
            return value
        if value in ("assistant", "system"):
            return cls(value)
        return cls.USER


@dataclass
class Message:
    """One turn of a conversation. Append-only; created_at defines replay order."""
    role: ChatRole
    content: str
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        return cls(
            role=ChatRole.coerce(data.get("role")),
            content=str(data.get("content") or ""),
            created_at=data.get("created_at"),
            id=data.get("id"),
        )


@dataclass
class GuidedSessionState:
    """The guided-exercise position for one conversation.

    Idle when active_exercise_id is None. While an exercise is active,
    step_index is always a valid index into its steps.
    """
    active_exercise_id: Optional[str] = None
    step_index: int = 0
    opted_out: bool = False             # user typed "exit"; no auto intro until a fresh start
    intro_shown_for: Optional[str] = None  # exercise id whose intro was already emitted

    @property
    def is_active(self) -> bool:
        return self.active_exercise_id is not None

    @classmethod
    def idle(cls, opted_out: bool = False) -> "GuidedSessionState":
        return cls(opted_out=opted_out)

    @classmethod
    def for_exercise(cls, exercise_id: str) -> "GuidedSessionState":
        """State for a catalog selection, before its intro is shown."""
        return cls(active_exercise_id=exercise_id)


@dataclass
class TurnResult:
    """What one processed turn hands back to the caller."""
    state: GuidedSessionState
    messages: list = field(default_factory=list)  # emitted assistant Messages
    failed: bool = False
