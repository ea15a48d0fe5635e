"""Keyword and sentence heuristics for daily summaries.

quick_extract() runs after every chat reply; the Day Summarizer reuses
rank_keywords() and condense() when the model's JSON cannot be used.
"""
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import FrozenSet, List

STOP_WORDS = frozenset([
    "the", "and", "for", "with", "that", "this", "from", "your", "about", "into",
    "later", "after", "before", "today", "also", "just", "you", "i", "we", "me",
    "my", "our", "but", "not", "are", "was", "were", "been", "will", "shall",
    "can", "could", "would", "should", "a", "an", "to", "in", "on", "of", "at",
    "it", "is", "as",
])

# The full-day fallback also drops pronouns and adverbs of place/time
DAY_STOP_WORDS = STOP_WORDS | frozenset([
    "they", "them", "their", "there", "here", "then", "than",
])

QUICK_TOPIC_LIMIT = 6
QUICK_SUMMARY_CHARS = 220

_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class QuickSummary:
    topics: List[str] = field(default_factory=list)
    summary: str = ""


def clean_text(text: str) -> str:
    """Collapse runs of whitespace into single spaces."""
    return _WHITESPACE.sub(" ", text or "").strip()


def split_sentences(text: str) -> List[str]:
    parts = _SENTENCE_SPLIT.split(clean_text(text))
    return [p.strip() for p in parts if p.strip()]


def rank_keywords(text: str, limit: int, stop_words: FrozenSet[str] = STOP_WORDS) -> List[str]:
    """
    Most frequent content words, highest count first.

    Tokens of 3 characters or fewer and stop words are ignored. Equal counts
    keep the order in which the words first appeared (sorted() is stable).
    """
    tokens = _TOKEN_SPLIT.split(clean_text(text).lower())
    freq = Counter(t for t in tokens if len(t) > 3 and t not in stop_words)
    ranked = sorted(freq.items(), key=lambda item: item[1], reverse=True)
    return [word for word, _ in ranked[:limit]]


def condense(text: str, sentences: int, max_chars: int, from_end: bool = True) -> str:
    """
    Keep a few sentences of text, capped at max_chars.

    Falls back to the whole cleaned text when no sentence can be found.
    """
    parts = split_sentences(text)
    picked = parts[-sentences:] if from_end else parts[:sentences]
    return (" ".join(picked) or clean_text(text))[:max_chars]


def quick_extract(text: str) -> QuickSummary:
    """Up to 6 topics and the last 1-2 sentences (220 chars) of a reply."""
    return QuickSummary(
        topics=rank_keywords(text, QUICK_TOPIC_LIMIT),
        summary=condense(text, sentences=2, max_chars=QUICK_SUMMARY_CHARS),
    )
