"""Journal Repository

Per-user data access on top of a DocumentStore. Everything lives under
users/{uid}/:

    conversations/{cid}                 one per journal date
    conversations/{cid}/messages/{mid}  append-only transcript
    conversations/{cid}/suggestions/{s} micro-goals lifted from replies
    goals/{gid}                         user-managed task items
    summaries/{date}                    daily summary, keyed by date

Every operation raises NotSignedInError when no user id is set.
"""
import logging
import re
from typing import Callable, Dict, Iterable, List, Optional

from core.errors import NotSignedInError, ValidationError
from models.journal import Conversation, DailySummary, Goal, GoalStats, GoalSuggestion
from models.session import Message
from services.document_store import SERVER_TIMESTAMP, DocumentStore

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

CONVERSATION_TITLE_CHARS = 60
RECENT_DATES_SCAN = 300
RECENT_SUMMARIES_SCAN = 200


class JournalRepository:
    """Conversations, messages, goals, suggestions and summaries for one user."""

    def __init__(self, store: DocumentStore, user_id: Optional[str] = None):
        self.store = store
        self.user_id = user_id

    def require_uid(self) -> str:
        if not self.user_id:
            raise NotSignedInError()
        return self.user_id

    # === Collection paths ===

    def _conversations(self) -> str:
        return f"users/{self.require_uid()}/conversations"

    def _messages(self, conversation_id: str) -> str:
        return f"{self._conversations()}/{conversation_id}/messages"

    def _suggestions(self, conversation_id: str) -> str:
        return f"{self._conversations()}/{conversation_id}/suggestions"

    def _goals(self) -> str:
        return f"users/{self.require_uid()}/goals"

    def _summaries(self) -> str:
        return f"users/{self.require_uid()}/summaries"

    # === Conversations ===

    def ensure_daily_conversation(self, date: str, title_hint: Optional[str] = None) -> str:
        """Get or create the unique conversation for a date and return its id."""
        existing = self.get_daily_conversation_id(date)
        if existing:
            self.store.set(self._conversations(), existing,
                           {"date": date, "updated_at": SERVER_TIMESTAMP}, merge=True)
            return existing

        title = title_hint[:CONVERSATION_TITLE_CHARS] if title_hint else f"Journal for {date}"
        conversation_id = self.store.add(self._conversations(), {
            "title": title,
            "date": date,
            "mood": None,
            "created_at": SERVER_TIMESTAMP,
            "updated_at": SERVER_TIMESTAMP,
            "message_count": 0,
            "token_in": 0,
            "token_out": 0,
        })
        logger.info(f"Created conversation {conversation_id} for {date}")
        return conversation_id

    def get_daily_conversation_id(self, date: str) -> Optional[str]:
        rows = self.store.query(self._conversations(), filters={"date": date}, limit=1)
        return rows[0]["id"] if rows else None

    def get_conversation_by_date(self, date: str) -> Optional[Conversation]:
        rows = self.store.query(self._conversations(), filters={"date": date}, limit=1)
        return Conversation.from_dict(rows[0]) if rows else None

    def get_conversations_by_dates(self, dates: Iterable[str]) -> Dict[str, Optional[Conversation]]:
        return {date: self.get_conversation_by_date(date) for date in dates}

    def get_recent_journal_dates(self, limit_days: int = 90) -> List[str]:
        """Distinct well-formed dates that have a conversation, newest first."""
        rows = self.store.query(self._conversations(), order_by="date",
                                descending=True, limit=RECENT_DATES_SCAN)
        dates = {
            row["date"] for row in rows
            if isinstance(row.get("date"), str) and _DATE_RE.match(row["date"])
        }
        return sorted(dates, reverse=True)[:limit_days]

    def set_mood(self, date: str, mood: Optional[str]) -> str:
        """Record the day's mood on its conversation (created if needed)."""
        conversation_id = self.ensure_daily_conversation(date)
        self.store.update(self._conversations(), conversation_id,
                          {"mood": mood, "updated_at": SERVER_TIMESTAMP})
        return conversation_id

    def record_usage(self, conversation_id: str, token_in: int, token_out: int):
        """Add LLM token counts to the conversation's running totals."""
        data = self.store.get(self._conversations(), conversation_id) or {}
        self.store.update(self._conversations(), conversation_id, {
            "token_in": data.get("token_in", 0) + token_in,
            "token_out": data.get("token_out", 0) + token_out,
        })

    # === Messages ===

    def add_message(self, conversation_id: str, message: Message) -> str:
        """Append a message and bump the conversation's updated_at/message_count."""
        message_id = self.store.add(self._messages(conversation_id), {
            **message.to_dict(),
            "created_at": SERVER_TIMESTAMP,
        })
        data = self.store.get(self._conversations(), conversation_id) or {}
        self.store.update(self._conversations(), conversation_id, {
            "updated_at": SERVER_TIMESTAMP,
            "message_count": data.get("message_count", 0) + 1,
        })
        return message_id

    def get_messages(self, conversation_id: str) -> List[Message]:
        rows = self.store.query(self._messages(conversation_id), order_by="created_at")
        return [Message.from_dict(row) for row in rows]

    def get_all_messages_for_date(self, date: str) -> List[Message]:
        """The whole transcript of a date in creation order; [] if there is none."""
        conversation_id = self.get_daily_conversation_id(date)
        if not conversation_id:
            return []
        return self.get_messages(conversation_id)

    # === Goals ===

    def add_goal(self, title: str, date: str, source_conversation_id: Optional[str] = None) -> str:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Goal title must not be empty")
        return self.store.add(self._goals(), {
            "title": title,
            "done": False,
            "date": date,
            "source_conversation_id": source_conversation_id,
            "created_at": SERVER_TIMESTAMP,
        })

    def toggle_goal(self, goal_id: str, done: bool):
        self.store.update(self._goals(), goal_id, {"done": done})

    def delete_goal(self, goal_id: str):
        self.store.delete(self._goals(), goal_id)

    def get_goals_by_date(self, date: str) -> List[Goal]:
        rows = self.store.query(self._goals(), filters={"date": date}, order_by="created_at")
        return [Goal.from_dict(row) for row in rows]

    def get_goals_by_dates(self, dates: Iterable[str]) -> Dict[str, List[Goal]]:
        return {date: self.get_goals_by_date(date) for date in dates}

    def on_goals_by_date(self, date: str, callback: Callable[[List[Goal]], None]) -> Callable[[], None]:
        """Subscribe to a date's goals (oldest first). Returns an unsubscribe function."""
        return self.store.subscribe(
            self._goals(),
            lambda rows: callback([Goal.from_dict(row) for row in rows]),
            filters={"date": date},
            order_by="created_at",
        )

    def get_goal_stats_for_date(self, date: str) -> GoalStats:
        goals = self.store.query(self._goals(), filters={"date": date})
        done = self.store.query(self._goals(), filters={"date": date, "done": True})
        return GoalStats(added=len(goals), completed=len(done))

    # === Chat Suggestions ===

    def add_chat_suggestions(self, conversation_id: str, date: str, titles: List[str]) -> List[str]:
        """Store suggestion titles in one batch. No-op without a conversation or titles."""
        self.require_uid()
        if not conversation_id or not titles:
            return []
        return self.store.batch_add(self._suggestions(conversation_id), [
            {"title": title.strip(), "date": date, "source": "chat", "created_at": SERVER_TIMESTAMP}
            for title in titles
        ])

    def get_chat_suggestions_by_date(self, conversation_id: str, date: str) -> List[GoalSuggestion]:
        """Suggestions for a date, newest first."""
        rows = self.store.query(self._suggestions(conversation_id), filters={"date": date},
                                order_by="created_at", descending=True)
        return [GoalSuggestion.from_dict(row) for row in rows]

    def on_chat_suggestions_by_date(self, conversation_id: str, date: str,
                                    callback: Callable[[List[GoalSuggestion]], None]) -> Callable[[], None]:
        return self.store.subscribe(
            self._suggestions(conversation_id),
            lambda rows: callback([GoalSuggestion.from_dict(row) for row in rows]),
            filters={"date": date},
            order_by="created_at",
            descending=True,
        )

    # === Daily Summaries ===

    def upsert_daily_summary(self, date: str, partial: Dict) -> None:
        """Merge fields into the date's summary; unspecified fields are kept."""
        self.store.set(self._summaries(), date,
                       {**partial, "date": date, "updated_at": SERVER_TIMESTAMP}, merge=True)

    def get_daily_summary(self, date: str) -> Optional[DailySummary]:
        data = self.store.get(self._summaries(), date)
        return DailySummary.from_dict(data) if data else None

    def get_recent_summaries(self, limit_days: int = 60) -> List[DailySummary]:
        rows = self.store.query(self._summaries(), order_by="date",
                                descending=True, limit=RECENT_SUMMARIES_SCAN)
        summaries = [DailySummary.from_dict(row) for row in rows if isinstance(row.get("date"), str)]
        summaries.sort(key=lambda s: s.date, reverse=True)
        return summaries[:limit_days]
