"""Journal Companion Tools Module.

This module contains deterministic, side-effect free helpers.

Tools:
    keep_goal: Validate/normalize one line of text into a micro-goal.
    extract_goals: Pull up to 5 micro-goals from the tail of a reply.
    quick_extract: Topics + short summary of a reply.
    rank_keywords: Frequency-ranked content words.
    condense: Keep a few sentences of a text.
    get_exercise: Look up a guided exercise by id.
    get_suggested_goals: Mood-aware starter goals.
"""
from tools.goal_filters import keep_goal, extract_goals, unique_goals
from tools.text_summary import quick_extract, rank_keywords, condense, QuickSummary
from tools.exercises import (
    EXERCISES,
    ExerciseDefinition,
    Skill,
    get_exercise,
    filter_by_skill,
    filter_by_max_duration,
    featured_exercises,
)
from tools.suggestions import get_suggested_goals

__all__ = [
    "keep_goal",
    "extract_goals",
    "unique_goals",
    "quick_extract",
    "rank_keywords",
    "condense",
    "QuickSummary",
    "EXERCISES",
    "ExerciseDefinition",
    "Skill",
    "get_exercise",
    "filter_by_skill",
    "filter_by_max_duration",
    "featured_exercises",
    "get_suggested_goals",
]
