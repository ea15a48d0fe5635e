"""Unit Tests for the per-user journal repository."""
import pytest

from core.errors import NotSignedInError, ValidationError
from models.session import ChatRole, Message
from services.journal_repository import JournalRepository


class TestConversations:
    """Test per-date conversations."""

    def test_one_conversation_per_date(self, repository, journal_date):
        """ensure_daily_conversation returns the same id for the same date."""
        first = repository.ensure_daily_conversation(journal_date, "hello")
        second = repository.ensure_daily_conversation(journal_date, "other hint")
        assert first == second
        assert repository.get_daily_conversation_id(journal_date) == first
        assert repository.get_daily_conversation_id("2024-01-01") is None

    def test_title_from_hint_or_date(self, repository):
        """Titles use the hint (60 chars max) or fall back to the date."""
        repository.ensure_daily_conversation("2024-05-01", "x" * 100)
        repository.ensure_daily_conversation("2024-05-02")
        assert repository.get_conversation_by_date("2024-05-01").title == "x" * 60
        assert repository.get_conversation_by_date("2024-05-02").title == "Journal for 2024-05-02"

    def test_conversations_by_dates(self, repository):
        """Missing dates map to None."""
        repository.ensure_daily_conversation("2024-05-01")
        result = repository.get_conversations_by_dates(["2024-05-01", "2024-05-02"])
        assert result["2024-05-01"].date == "2024-05-01"
        assert result["2024-05-02"] is None

    def test_recent_journal_dates(self, repository, store):
        """Dates are distinct, well-formed and newest first."""
        for date in ["2024-05-01", "2024-05-03", "2024-05-02"]:
            repository.ensure_daily_conversation(date)
        store.add("users/test_user/conversations", {"date": "not-a-date"})

        assert repository.get_recent_journal_dates() == ["2024-05-03", "2024-05-02", "2024-05-01"]
        assert repository.get_recent_journal_dates(limit_days=1) == ["2024-05-03"]

    def test_set_mood_creates_conversation(self, repository, journal_date):
        """Setting a mood creates the day's conversation if needed."""
        repository.set_mood(journal_date, "Sunny")
        assert repository.get_conversation_by_date(journal_date).mood == "Sunny"

    def test_record_usage_accumulates(self, repository, store, journal_date):
        """Token counts add up across calls."""
        cid = repository.ensure_daily_conversation(journal_date)
        repository.record_usage(cid, 10, 20)
        repository.record_usage(cid, 1, 2)
        data = store.get("users/test_user/conversations", cid)
        assert (data["token_in"], data["token_out"]) == (11, 22)


class TestMessages:
    """Test the append-only transcript."""

    def test_messages_in_creation_order(self, repository, journal_date):
        """Messages replay in the order they were added."""
        cid = repository.ensure_daily_conversation(journal_date)
        repository.add_message(cid, Message(ChatRole.USER, "first"))
        repository.add_message(cid, Message(ChatRole.ASSISTANT, "second"))
        repository.add_message(cid, Message(ChatRole.USER, "third"))

        messages = repository.get_all_messages_for_date(journal_date)
        assert [(m.role, m.content) for m in messages] == [
            (ChatRole.USER, "first"),
            (ChatRole.ASSISTANT, "second"),
            (ChatRole.USER, "third"),
        ]
        assert all(m.id and m.created_at for m in messages)
        assert repository.get_conversation_by_date(journal_date).message_count == 3

    def test_no_conversation_no_messages(self, repository):
        """A date without a conversation has an empty transcript."""
        assert repository.get_all_messages_for_date("2024-01-01") == []


class TestGoals:
    """Test user-managed goals and their stats."""

    def test_add_toggle_delete(self, repository, journal_date):
        """Goals can be added, completed and removed."""
        gid = repository.add_goal("  Walk 10 minutes ", journal_date, source_conversation_id="c1")
        goal = repository.get_goals_by_date(journal_date)[0]
        assert (goal.id, goal.title, goal.done, goal.source_conversation_id) == (gid, "Walk 10 minutes", False, "c1")

        repository.toggle_goal(gid, True)
        assert repository.get_goals_by_date(journal_date)[0].done is True

        repository.delete_goal(gid)
        assert repository.get_goals_by_date(journal_date) == []

    def test_empty_title_rejected(self, repository, journal_date):
        """A blank goal title is a ValidationError."""
        with pytest.raises(ValidationError):
            repository.add_goal("   ", journal_date)

    def test_goal_stats(self, repository, journal_date):
        """Stats count added and completed goals for the date only."""
        a = repository.add_goal("Walk to the park", journal_date)
        repository.add_goal("Drink 1 glass water", journal_date)
        repository.add_goal("Other day", "2024-01-01")
        repository.toggle_goal(a, True)

        stats = repository.get_goal_stats_for_date(journal_date)
        assert (stats.added, stats.completed) == (2, 1)

    def test_goals_by_dates(self, repository):
        """Goals are grouped by the requested dates."""
        repository.add_goal("Walk to the park", "2024-05-01")
        result = repository.get_goals_by_dates(["2024-05-01", "2024-05-02"])
        assert [g.title for g in result["2024-05-01"]] == ["Walk to the park"]
        assert result["2024-05-02"] == []

    def test_goal_subscription(self, repository, journal_date):
        """Subscribers see goals for their date, oldest first."""
        seen = []
        unsubscribe = repository.on_goals_by_date(journal_date, lambda goals: seen.append([g.title for g in goals]))
        repository.add_goal("Walk to the park", journal_date)
        repository.add_goal("Call mom tonight", journal_date)
        unsubscribe()
        repository.add_goal("Ignored after unsubscribe", journal_date)

        assert seen == [[], ["Walk to the park"], ["Walk to the park", "Call mom tonight"]]


class TestSuggestions:
    """Test chat-derived goal suggestions."""

    def test_batch_add_newest_first(self, repository, journal_date):
        """Suggestions are trimmed, tagged 'chat', and listed newest first."""
        cid = repository.ensure_daily_conversation(journal_date)
        repository.add_chat_suggestions(cid, journal_date, [" Drink 1 glass water ", "5-minute stretch"])

        suggestions = repository.get_chat_suggestions_by_date(cid, journal_date)
        assert [s.title for s in suggestions] == ["5-minute stretch", "Drink 1 glass water"]
        assert all(s.source == "chat" and s.date == journal_date for s in suggestions)

    def test_no_titles_is_noop(self, repository, journal_date):
        """Nothing is written without titles or a conversation."""
        assert repository.add_chat_suggestions("c1", journal_date, []) == []
        assert repository.add_chat_suggestions("", journal_date, ["Walk a bit"]) == []
        assert repository.get_chat_suggestions_by_date("c1", journal_date) == []

    def test_suggestion_subscription(self, repository, journal_date):
        """Suggestion subscribers get snapshots after each batch."""
        cid = repository.ensure_daily_conversation(journal_date)
        seen = []
        repository.on_chat_suggestions_by_date(cid, journal_date, lambda rows: seen.append(len(rows)))
        repository.add_chat_suggestions(cid, journal_date, ["Walk a bit", "Drink some water"])
        assert seen[0] == 0
        assert seen[-1] == 2


class TestSummaries:
    """Test daily summary storage."""

    def test_upsert_merges(self, repository, journal_date):
        """Upserts keep fields that are not overwritten."""
        repository.upsert_daily_summary(journal_date, {"summary": "Calm day.", "topics": ["calm"]})
        repository.upsert_daily_summary(journal_date, {"goals_added": 2})

        summary = repository.get_daily_summary(journal_date)
        assert (summary.summary, summary.topics, summary.goals_added) == ("Calm day.", ["calm"], 2)
        assert summary.updated_at is not None
        assert repository.get_daily_summary("2024-01-01") is None

    def test_recent_summaries(self, repository):
        """Recent summaries are newest first and limited."""
        for date in ["2024-05-01", "2024-05-03", "2024-05-02"]:
            repository.upsert_daily_summary(date, {"summary": date})
        assert [s.date for s in repository.get_recent_summaries()] == ["2024-05-03", "2024-05-02", "2024-05-01"]
        assert len(repository.get_recent_summaries(limit_days=2)) == 2


class TestSignedOut:
    """Every repository call needs a user id."""

    @pytest.mark.parametrize("call", [
        lambda r: r.ensure_daily_conversation("2024-05-01"),
        lambda r: r.get_daily_conversation_id("2024-05-01"),
        lambda r: r.get_conversation_by_date("2024-05-01"),
        lambda r: r.get_conversations_by_dates(["2024-05-01"]),
        lambda r: r.get_recent_journal_dates(),
        lambda r: r.set_mood("2024-05-01", "Sunny"),
        lambda r: r.add_message("c1", Message(ChatRole.USER, "hi")),
        lambda r: r.get_messages("c1"),
        lambda r: r.get_all_messages_for_date("2024-05-01"),
        lambda r: r.add_goal("Walk a bit", "2024-05-01"),
        lambda r: r.toggle_goal("g1", True),
        lambda r: r.delete_goal("g1"),
        lambda r: r.get_goals_by_date("2024-05-01"),
        lambda r: r.get_goals_by_dates(["2024-05-01"]),
        lambda r: r.on_goals_by_date("2024-05-01", lambda rows: None),
        lambda r: r.add_chat_suggestions("c1", "2024-05-01", []),
        lambda r: r.get_chat_suggestions_by_date("c1", "2024-05-01"),
        lambda r: r.on_chat_suggestions_by_date("c1", "2024-05-01", lambda rows: None),
        lambda r: r.upsert_daily_summary("2024-05-01", {}),
        lambda r: r.get_daily_summary("2024-05-01"),
        lambda r: r.get_recent_summaries(),
        lambda r: r.get_goal_stats_for_date("2024-05-01"),
    ])
    def test_not_signed_in(self, store, call):
        """Calls without a user id raise NotSignedInError."""
        with pytest.raises(NotSignedInError):
            call(JournalRepository(store, user_id=None))
