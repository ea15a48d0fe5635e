"""Journal Companion - Guided Journaling Core

Wires the pieces of one user's journal together:
- GuidedSessionAgent (scripted exercises) and JournalAgent (free-form replies)
- Goal extraction from assistant replies into per-date suggestions
- Incremental and full-day summaries (DaySummarizer)
- Per-date turn serialization

Run directly for an interactive console journal.
"""
import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Dict, List, Optional

from agents.guided_session import GuidedSessionAgent, TransitionKind
from agents.journal_agent import JournalAgent
from config.settings import GOOGLE_API_KEY, JOURNAL_USER_ID, TURN_LOCK_TIMEOUT_SECONDS
from core.errors import (
    JournalError,
    NotSignedInError,
    SessionBusyError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from core.observability import Tracer, get_metrics_summary
from models.journal import DailySummary, MOOD_OPTIONS
from models.session import ChatRole, GuidedSessionState, Message, TurnResult
from services.day_summarizer import DaySummarizer
from services.document_store import DocumentStore, get_document_store
from services.journal_repository import JournalRepository
from services.llm_client import GeminiChatClient
from tools.exercises import EXERCISES
from tools.goal_filters import extract_goals
from tools.suggestions import get_suggested_goals

logger = logging.getLogger(__name__)

ERROR_REPLY = "❌ Error getting reply. Please try again."


class JournalSystem:
    """
    Orchestrator for one user's journal.

    Every turn for a journal date runs under that date's lock: the user
    message, the state transition, the LLM call and all writes complete
    before the next turn for the same date starts.

    Attributes:
        repository: Per-user data access (conversations, goals, summaries).
        guide: Scripted exercise state machine.
        journal_agent: Free-form reply generator.
        summarizer: Incremental and full-day summaries.
    """

    def __init__(self, user_id: Optional[str] = JOURNAL_USER_ID,
                 store: Optional[DocumentStore] = None, llm=None,
                 lock_timeout: float = TURN_LOCK_TIMEOUT_SECONDS):
        self.repository = JournalRepository(store or get_document_store(), user_id)
        self.llm = llm or GeminiChatClient()
        self.guide = GuidedSessionAgent()
        self.journal_agent = JournalAgent(self.llm)
        self.summarizer = DaySummarizer(self.repository, self.llm)
        self.lock_timeout = lock_timeout
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _date_lock(self, journal_date: str):
        with self._locks_guard:
            lock = self._locks.setdefault(journal_date, threading.Lock())
        if not lock.acquire(timeout=self.lock_timeout):
            raise SessionBusyError(f"Another turn for {journal_date} is still running")
        try:
            yield
        finally:
            lock.release()

    # === Turns ===

    def start_exercise(self, journal_date: str, exercise_id: str,
                       state: Optional[GuidedSessionState] = None) -> TurnResult:
        """Start or switch to an exercise and store its intro."""
        state = state or GuidedSessionState()
        with self._date_lock(journal_date):
            with Tracer("GuidedSession.start", exercise_id):
                transition = self.guide.start(state, exercise_id)
                if not transition.messages:
                    return TurnResult(transition.state, [])

                cid = self.repository.ensure_daily_conversation(
                    journal_date, f"Start: {transition.exercise.title}")
                emitted = self._store_replies(cid, transition.messages)
                return TurnResult(transition.state, emitted)

    def process_user_turn(self, journal_date: str, text: str,
                          state: Optional[GuidedSessionState] = None) -> TurnResult:
        """
        Handle one user message for a journal date.

        The user message is stored first. On an LLM failure the caller's
        state comes back unchanged with a single unsaved error message and
        failed=True.
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message text must not be empty")
        state = state or GuidedSessionState()

        with self._date_lock(journal_date):
            with Tracer("GuidedSession.turn", text) as trace:
                cid = self.repository.ensure_daily_conversation(journal_date, text)
                self.repository.add_message(cid, Message(ChatRole.USER, text))

                transition = self.guide.handle_message(state, text)
                trace.metadata["kind"] = transition.kind.value

                if transition.kind == TransitionKind.FREE_FORM:
                    return self._free_form_turn(journal_date, cid, text, state, transition.state)

                emitted = self._store_replies(cid, transition.messages)
                if transition.kind == TransitionKind.COMPLETED:
                    self._after_reply(journal_date, cid, transition.messages[-1])
                return TurnResult(transition.state, emitted)

    def _free_form_turn(self, journal_date: str, cid: str, text: str,
                        original: GuidedSessionState, new_state: GuidedSessionState) -> TurnResult:
        try:
            response = self.journal_agent.reply(text)
        except (UpstreamError, TransportError) as e:
            logger.error(f"Reply for {journal_date} failed: {e}")
            return TurnResult(original, [Message(ChatRole.ASSISTANT, ERROR_REPLY)], failed=True)

        emitted = self._store_replies(cid, [response.reply])
        self._record_usage(cid, response.usage)
        self._after_reply(journal_date, cid, response.reply)
        return TurnResult(new_state, emitted)

    def _store_replies(self, cid: str, texts: List[str]) -> List[Message]:
        emitted = []
        for reply in texts:
            message = Message(ChatRole.ASSISTANT, reply)
            message.id = self.repository.add_message(cid, message)
            emitted.append(message)
        return emitted

    def _after_reply(self, journal_date: str, cid: str, reply_text: str):
        """Suggestions and the mini-summary; neither may fail the turn."""
        try:
            goals = extract_goals(reply_text)
            if goals:
                self.repository.add_chat_suggestions(cid, journal_date, goals)
        except NotSignedInError:
            raise
        except Exception as e:
            logger.warning(f"Storing goal suggestions for {journal_date} failed: {e}")

        self.summarizer.quick_update(journal_date, reply_text)

    def _record_usage(self, cid: str, usage: Dict[str, int]):
        if not usage:
            return
        try:
            self.repository.record_usage(cid, usage.get("prompt_tokens", 0),
                                         usage.get("completion_tokens", 0))
        except NotSignedInError:
            raise
        except Exception as e:
            logger.warning(f"Recording token usage failed: {e}")

    # === Public helpers ===

    def extract_goals(self, reply_text: str) -> List[str]:
        return extract_goals(reply_text)

    def quick_summary_update(self, journal_date: str, reply_text: str) -> Optional[DailySummary]:
        return self.summarizer.quick_update(journal_date, reply_text)

    def summarize_day(self, journal_date: str) -> DailySummary:
        with self._date_lock(journal_date):
            return self.summarizer.summarize(journal_date)

    def set_mood(self, journal_date: str, mood: Optional[str]):
        if mood is not None and mood not in MOOD_OPTIONS:
            raise ValidationError(f"Unknown mood: {mood}")
        with self._date_lock(journal_date):
            self.repository.set_mood(journal_date, mood)

    def accept_suggestion(self, journal_date: str, title: str) -> str:
        """Turn a suggestion into a goal linked to the day's conversation."""
        cid = self.repository.get_daily_conversation_id(journal_date)
        return self.repository.add_goal(title, journal_date, source_conversation_id=cid)

    def suggested_goals(self, journal_date: str) -> List[str]:
        """Mood-aware starter goals the user does not already have."""
        conversation = self.repository.get_conversation_by_date(journal_date)
        existing = [goal.title for goal in self.repository.get_goals_by_date(journal_date)]
        return get_suggested_goals(existing, mood=conversation.mood if conversation else None)

    def get_metrics(self) -> dict:
        """Get observability metrics for this process."""
        return get_metrics_summary()


def main():
    print("=== Journal Companion ===")

    if not GOOGLE_API_KEY:
        print("Error: GOOGLE_API_KEY not found.")
        return

    journal = JournalSystem()
    today = date.today().isoformat()
    state = GuidedSessionState()

    print(f"Journal for {today}")
    print("Commands: /tools, /tool <id>, /mood <mood>, /goals, /summary, /quit\n")
    print("Share what's on your mind...")

    while True:
        user_input = input("\nYou: ").strip()
        if not user_input:
            continue
        command, _, arg = user_input.partition(" ")
        arg = arg.strip()

        try:
            if command == "/quit":
                print("Take care! Goodbye.")
                break
            elif command == "/tools":
                for exercise in EXERCISES:
                    print(f"  {exercise.id:<22} {exercise.title} ({exercise.duration_min}min, {exercise.skill.value})")
                continue
            elif command == "/tool":
                result = journal.start_exercise(today, arg, state)
            elif command == "/mood":
                journal.set_mood(today, arg or None)
                print(f"Mood set to {arg or 'none'}.")
                continue
            elif command == "/goals":
                for goal in journal.repository.get_goals_by_date(today):
                    print(f"  [{'x' if goal.done else ' '}] {goal.title}")
                cid = journal.repository.get_daily_conversation_id(today)
                if cid:
                    for suggestion in journal.repository.get_chat_suggestions_by_date(cid, today):
                        print(f"  (suggested) {suggestion.title}")
                for title in journal.suggested_goals(today):
                    print(f"  (starter) {title}")
                continue
            elif command == "/summary":
                summary = journal.summarize_day(today)
                print(f"Summary: {summary.summary}")
                print(f"Topics: {', '.join(summary.topics)}")
                print(f"Goals: {summary.goals_completed}/{summary.goals_added} done")
                continue
            else:
                result = journal.process_user_turn(today, user_input, state)
        except JournalError as e:
            print(f"Error: {e}")
            continue

        state = result.state
        for message in result.messages:
            print(f"Journal: {message.content}")


if __name__ == "__main__":
    main()
