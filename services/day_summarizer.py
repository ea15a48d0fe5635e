"""Day Summarizer

Turns one day's transcript into a DailySummary:

1. Load every message of the date (one-shot read)
2. Build a bounded context from user turns only
3. Ask the LLM for strict JSON {"summary": str, "topics": [str]}
4. Parse the outermost {...} block, falling back to keyword/sentence
   heuristics for anything missing or malformed
5. Harden an empty summary from the last user messages, then a placeholder
6. Merge into users/{uid}/summaries/{date} with fresh goal stats and mood

Errors from the LLM or the store propagate. quick_update() is the
per-reply incremental path and is best-effort.
"""
import json
import logging
from typing import Any, List, Optional, Sequence, Tuple

from config.settings import MAX_SUMMARY_CONTEXT_CHARS, MAX_SUMMARY_USER_MESSAGES
from core.errors import NotSignedInError
from core.observability import Tracer
from models.journal import MAX_SUMMARY_TOPICS, DailySummary
from models.session import ChatRole, Message
from services.journal_repository import JournalRepository
from services.llm_client import ChatMessage
from tools.text_summary import DAY_STOP_WORDS, clean_text, condense, quick_extract, rank_keywords

logger = logging.getLogger(__name__)

CONTEXT_DELIMITER = "\n---\n"
NO_USER_CONTEXT = "No user messages were recorded for this date."
SUMMARY_PLACEHOLDER = "Summary not available yet."
MIN_SUMMARY_CHARS = 8

SUMMARIZER_SYSTEM_PROMPT = """
You are a concise journaling summarizer.

Task:
- Given the user's day context, produce:
  1) A 2-4 sentence plain-English summary (no formatting).
  2) 5-8 comma-separated topics/keywords.

Rules:
- No bullet points or emojis in the summary.
- Neutral, specific, helpful tone.
- Do not mention "assistant" or "user".

Output (strict JSON only):
{
  "summary": string,
  "topics": string[]
}
""".strip()


def build_user_only_context(messages: Sequence[Message],
                            limit: int = MAX_SUMMARY_USER_MESSAGES,
                            max_chars: int = MAX_SUMMARY_CONTEXT_CHARS) -> str:
    """Last `limit` non-blank user turns joined by a delimiter, capped at max_chars."""
    user_texts = [m.content.strip() for m in messages if m.role == ChatRole.USER]
    tail = [t for t in user_texts if t][-limit:]
    return CONTEXT_DELIMITER.join(tail)[:max_chars]


def build_summary_request(context: str) -> List[ChatMessage]:
    return [
        ChatMessage.system(SUMMARIZER_SYSTEM_PROMPT),
        ChatMessage.user("\n".join([
            "Here is the day context from user messages only (most recent last):",
            "---",
            context or NO_USER_CONTEXT,
            "---",
            'Return only JSON with keys "summary" and "topics".',
        ])),
    ]


def extract_json_block(text: str) -> Optional[str]:
    """Substring from the first '{' to the last '}', or None."""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end <= start:
        return None
    return text[start:end + 1]


def heuristic_summary(reply: str) -> Tuple[str, List[str]]:
    """First 4 sentences (600 chars) and top 8 keywords of a raw reply."""
    summary = condense(reply, sentences=4, max_chars=600, from_end=False)
    topics = rank_keywords(reply, MAX_SUMMARY_TOPICS, stop_words=DAY_STOP_WORDS)
    return summary, topics


def parse_summary_reply(reply: str) -> Tuple[str, List[str]]:
    """
    Read (summary, topics) out of the model's reply.

    Fields that are absent or of the wrong type are taken from the
    heuristic extraction of the raw reply instead.
    """
    parsed: Any = None
    block = extract_json_block(reply) or reply
    try:
        parsed = json.loads(block)
    except ValueError:
        logger.info("Summary reply is not valid JSON, using heuristic extraction")

    if not isinstance(parsed, dict):
        parsed = {}

    fallback_summary, fallback_topics = heuristic_summary(reply)

    summary = parsed.get("summary")
    summary = summary.strip() if isinstance(summary, str) else fallback_summary

    topics = parsed.get("topics")
    if isinstance(topics, list):
        topics = [str(t).strip() for t in topics if str(t).strip()]
    else:
        topics = fallback_topics

    return summary, topics[:MAX_SUMMARY_TOPICS]


def harden_summary(summary: str, messages: Sequence[Message]) -> str:
    """Never return a summary shorter than 8 characters.

    Rebuilds from the last two user messages (newest first, 2 sentences,
    400 chars) and finally falls back to a fixed placeholder.
    """
    if summary and len(summary.strip()) >= MIN_SUMMARY_CHARS:
        return summary

    user_texts = [m.content for m in messages if m.role == ChatRole.USER and m.content]
    seed = clean_text(" ".join(reversed(user_texts[-2:])))
    if seed:
        summary = condense(seed, sentences=2, max_chars=400, from_end=False)

    return summary or SUMMARY_PLACEHOLDER


class DaySummarizer:
    """Builds and stores daily summaries for one user's journal."""

    def __init__(self, repository: JournalRepository, llm):
        self.repository = repository
        self.llm = llm

    def summarize(self, date: str) -> DailySummary:
        with Tracer("DaySummarizer.summarize", date) as trace:
            messages = self.repository.get_all_messages_for_date(date)
            trace.metadata["message_count"] = len(messages)

            if not messages:
                return self._save(date, topics=[], summary="")

            context = build_user_only_context(messages)
            response = self.llm.chat(build_summary_request(context))
            trace.metadata["usage"] = response.usage

            summary, topics = parse_summary_reply(response.reply)
            summary = harden_summary(summary, messages)
            return self._save(date, topics=topics, summary=summary)

    def quick_update(self, date: str, reply_text: str) -> Optional[DailySummary]:
        """
        Refresh the date's summary from a single assistant reply.

        Best-effort: failures are logged and dropped so a missing mini-summary
        never blocks chat. NotSignedInError still propagates.
        """
        try:
            quick = quick_extract(reply_text)
            return self._save(date, topics=quick.topics, summary=quick.summary)
        except NotSignedInError:
            raise
        except Exception as e:
            logger.warning(f"Quick summary update for {date} failed: {e}")
            return None

    def _save(self, date: str, topics: List[str], summary: str) -> DailySummary:
        stats = self.repository.get_goal_stats_for_date(date)
        conversation = self.repository.get_conversation_by_date(date)
        result = DailySummary(
            date=date,
            mood=conversation.mood if conversation else None,
            goals_added=stats.added,
            goals_completed=stats.completed,
            topics=topics,
            summary=summary,
        )
        self.repository.upsert_daily_summary(date, result.to_dict())
        logger.info(f"Saved summary for {date} ({len(result.topics)} topics)")
        return result
