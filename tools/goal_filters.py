import re
from typing import Iterable, List, Optional

# Verbs a micro-goal may start with (followed by a space)
GOAL_VERBS = (
    "walk", "drink", "write", "text", "call", "stretch", "breathe", "tidy",
    "plan", "read", "meditate", "journal", "hydrate", "email", "organize",
    "prep", "cook", "clean", "sort", "file", "review", "water", "wash",
    "message", "note", "list", "step", "sit", "stand",
)

# Single words that are too vague to be a goal on their own
VAGUE_GOAL_WORDS = re.compile(
    r"^(breathe|hydrate|journal|walk|stretch|meditate|clean|plan|read)$", re.IGNORECASE
)

_BULLET_PREFIX = re.compile(r"^[-*•\s]+")
_MINUTES_PREFIX = re.compile(r"^[0-9]+(-| )?minutes?\b")
_MIN_PREFIX = re.compile(r"^[0-9]+(-| )?min\b")

MIN_GOAL_WORDS = 2
MAX_GOAL_WORDS = 9
MAX_GOAL_CHARS = 80

# Assistant replies put micro-goals last; only the tail is scanned
GOAL_TAIL_LINES = 8
MAX_GOALS_PER_REPLY = 5


def keep_goal(raw: str) -> Optional[str]:
    """
    Turn one line of assistant text into a short goal phrase, or reject it.

    Returns:
        The cleaned phrase, or None if the line is not a usable micro-goal.

    Rules:
    - Leading bullets/dashes are stripped
    - 2-9 words
    - Longer than 80 chars is cut down with an ellipsis
    - Must start with a known verb or a "N-minute"/"N min" time hint
    """
    text = _BULLET_PREFIX.sub("", raw or "").strip()
    if not text:
        return None

    words = len(text.split())
    if words < MIN_GOAL_WORDS or words > MAX_GOAL_WORDS:
        return None

    if len(text) > MAX_GOAL_CHARS:
        text = text[:MAX_GOAL_CHARS - 3].strip() + "…"

    lower = text.lower()
    starts_ok = (
        any(lower.startswith(verb + " ") for verb in GOAL_VERBS)
        or _MINUTES_PREFIX.match(lower) is not None
        or _MIN_PREFIX.match(lower) is not None
    )
    if not starts_ok:
        return None
    if VAGUE_GOAL_WORDS.match(text):
        return None
    return text


def unique_goals(goals: Iterable[str], cap: int = MAX_GOALS_PER_REPLY) -> List[str]:
    """Case-insensitive dedupe, first-seen order, at most `cap` entries."""
    seen = set()
    out = []
    for goal in goals:
        key = goal.lower()
        if key in seen:
            continue
        seen.add(key)
        out.append(goal)
        if len(out) >= cap:
            break
    return out


def extract_goals(reply_text: str) -> List[str]:
    """
    Pull up to 5 micro-goals out of an assistant reply.

    Only the trailing 8 non-blank lines are considered.
    """
    lines = [line.strip() for line in (reply_text or "").split("\n")]
    lines = [line for line in lines if line]
    pool = lines[-GOAL_TAIL_LINES:] if len(lines) > GOAL_TAIL_LINES else lines

    candidates = []
    for line in pool:
        kept = keep_goal(line)
        if kept:
            candidates.append(kept)
    return unique_goals(candidates, MAX_GOALS_PER_REPLY)
