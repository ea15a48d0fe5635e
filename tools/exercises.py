"""Guided exercise catalog.

Curated, evidence-aligned exercises kept short and actionable. Entries are
read-only reference data: each one is a frozen dataclass built at import time.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple


class Skill(Enum):
    EMOTIONAL_REGULATION = "Emotional Regulation"
    COPING_SKILLS = "Coping Skills"
    GOAL_SETTING = "Goal Setting"
    STRENGTHS = "Strengths"
    FLEXIBLE_THINKING = "Flexible Thinking"
    PROBLEM_SOLVING = "Problem Solving"
    SELF_ACCEPTANCE = "Self-Acceptance"
    OPTIMISTIC_THINKING = "Optimistic Thinking"


@dataclass(frozen=True)
class ExerciseDefinition:
    id: str
    skill: Skill
    title: str
    duration_min: int            # 2-10 preferred
    summary: str                 # one-liner
    science_note: str            # short evidence note
    steps: Tuple[str, ...]       # 3-6 concise steps
    goal_title: str              # micro-goal shortcut
    tags: Tuple[str, ...] = ()   # e.g. ("solo", "social", "no-phone")
    featured: bool = False       # for quick actions

    def __post_init__(self):
        if not 3 <= len(self.steps) <= 6:
            raise ValueError(f"Exercise {self.id} must have 3-6 steps, got {len(self.steps)}")


EXERCISES: Tuple[ExerciseDefinition, ...] = (
    ExerciseDefinition(
        id="emo-reg-breath-5",
        skill=Skill.EMOTIONAL_REGULATION,
        title="5-minute paced breathing",
        duration_min=5,
        summary="Slow, paced breathing to downshift arousal.",
        science_note="Slow breathing (e.g., 4-6 breaths/min) can reduce sympathetic "
                     "activity and perceived stress in minutes.",
        steps=(
            "Sit upright, relax shoulders.",
            "Inhale through nose 4s, hold 2s.",
            "Exhale through mouth 6s (soft lips).",
            "Repeat 10 rounds at a comfortable pace.",
            "Notice one thing that feels 1% calmer.",
        ),
        goal_title="5-minute breathing",
        tags=("solo", "no-phone"),
        featured=True,
    ),
    ExerciseDefinition(
        id="emo-reg-ground-3",
        skill=Skill.EMOTIONAL_REGULATION,
        title="3-minute 5-4-3-2-1 grounding",
        duration_min=3,
        summary="Orient attention to the present with senses.",
        science_note="Brief grounding interrupts spirals by anchoring attention to sensory input.",
        steps=(
            "Name 5 things you see.",
            "Name 4 things you feel (touch).",
            "Name 3 things you hear.",
            "Name 2 things you smell.",
            "Name 1 thing you taste or appreciate.",
        ),
        goal_title="3-minute grounding",
        tags=("solo",),
        featured=True,
    ),
    ExerciseDefinition(
        id="coping-walk-10",
        skill=Skill.COPING_SKILLS,
        title="10-minute mindful walk",
        duration_min=10,
        summary="Gentle movement to discharge stress.",
        science_note="Light physical activity improves affect and executive control; "
                     "brief bouts help immediately.",
        steps=(
            "Walk at a comfortable pace.",
            "Match steps to your breath naturally.",
            "Notice 3 colors and 3 sounds.",
            "At the end, rate stress 0-10 before/after.",
        ),
        goal_title="10-minute walk",
        tags=("solo", "outdoors"),
        featured=True,
    ),
    ExerciseDefinition(
        id="goal-smart-7",
        skill=Skill.GOAL_SETTING,
        title="SMART micro-goal setup",
        duration_min=7,
        summary="Turn a vague wish into a tiny, trackable step.",
        science_note="Specific, proximal goals with clear criteria increase follow-through "
                     "and self-efficacy.",
        steps=(
            "Write 1 thing you want this week.",
            "Make it Specific and small (15 min or less).",
            "Define Measurable success (e.g., done/not).",
            "Check Achievable with today's energy.",
            "Confirm Relevant to values now.",
            "Set Time-bound: when exactly today?",
        ),
        goal_title="Define 1 SMART micro-goal",
        tags=("solo", "paper"),
    ),
    ExerciseDefinition(
        id="strengths-savor-5",
        skill=Skill.STRENGTHS,
        title="Strengths in action (savoring)",
        duration_min=5,
        summary="Spot and use one strength today.",
        science_note="Using character strengths deliberately correlates with engagement "
                     "and well-being.",
        steps=(
            "Pick 1 strength you've used before (e.g., kindness, curiosity).",
            "Name 1 situation today to use it.",
            "Do a tiny action (5 min or less) using that strength.",
            "Note how it felt afterward.",
        ),
        goal_title="Use 1 strength today",
        tags=("solo", "social"),
    ),
    ExerciseDefinition(
        id="flexible-reframe-5",
        skill=Skill.FLEXIBLE_THINKING,
        title='Reframe with "What else is true?"',
        duration_min=5,
        summary="Broaden perspective to loosen all-or-nothing thoughts.",
        science_note="Cognitive reappraisal reduces negative affect and improves problem orientation.",
        steps=(
            "Write the sticky thought verbatim.",
            'Ask: "What else is true right now?" List 3 items.',
            "Pick a balanced alternative thought.",
            "Choose 1 small action consistent with it.",
        ),
        goal_title="Reframe 1 thought",
        tags=("solo", "paper"),
    ),
    ExerciseDefinition(
        id="problem-solve-7",
        skill=Skill.PROBLEM_SOLVING,
        title="Stepwise problem solve",
        duration_min=7,
        summary="Define, list options, pick one, take the next step.",
        science_note="Structured problem solving reduces avoidance and increases perceived control.",
        steps=(
            "Define the problem in one sentence.",
            "List 3 options (even imperfect).",
            'Pick the "good enough" one.',
            "Break into the next 10-minute step.",
            "Schedule it today.",
        ),
        goal_title="Do 1 ten-minute step",
        tags=("solo",),
    ),
    ExerciseDefinition(
        id="self-accept-noting-4",
        skill=Skill.SELF_ACCEPTANCE,
        title="Noting + kind phrase",
        duration_min=4,
        summary="Notice, name, and respond kindly.",
        science_note="Mindful acceptance reduces struggle; self-compassion improves "
                     "persistence under stress.",
        steps=(
            'Notice a difficult feeling; label it ("anxiety here").',
            "Place a hand on chest or cheek.",
            'Say: "This is hard. May I be kind to myself."',
            "Breathe out slowly once.",
        ),
        goal_title="2-minute self-kindness",
        tags=("solo",),
    ),
    ExerciseDefinition(
        id="optimistic-grat-3",
        skill=Skill.OPTIMISTIC_THINKING,
        title="3 good things (today)",
        duration_min=3,
        summary="Shift attention to small positives.",
        science_note="Brief gratitude practices can increase positive affect and buffer stress.",
        steps=(
            "List 3 things that went okay or better.",
            "Write 1 reason each happened.",
            "Savor one breath for each item.",
        ),
        goal_title="List 3 gratitudes",
        tags=("solo", "paper"),
    ),
    ExerciseDefinition(
        id="sfbp-scaling-4",
        skill=Skill.GOAL_SETTING,
        title="SFBT scaling step",
        duration_min=4,
        summary="Rate 0-10 and move up by 1 point.",
        science_note="Solution-focused scaling clarifies progress and elicits next actions.",
        steps=(
            "Pick an area (e.g., motivation).",
            "Rate now 0-10 (10 = preferred future).",
            'Ask: "What makes it as high as it is?"',
            'Ask: "What\'s 1 tiny sign of +1 point?"',
            "Do that tiny sign today.",
        ),
        goal_title="Do a +1 sign",
        tags=("solo",),
    ),
    ExerciseDefinition(
        id="socratic-ans-5",
        skill=Skill.FLEXIBLE_THINKING,
        title="Socratic loop for anxiety",
        duration_min=5,
        summary="Question assumptions; test a kinder view.",
        science_note="Guided questioning reduces cognitive distortions and avoidance.",
        steps=(
            "Write the worry in one sentence.",
            'Clarify: "What do I mean by...?"',
            'Probe: "What if I didn\'t avoid it?"',
            'Perspective: "What would I tell a friend?"',
            "Plan 1 small test I can run today.",
        ),
        goal_title="Run 1 small test",
        tags=("solo", "paper"),
    ),
    ExerciseDefinition(
        id="coping-inventory-8",
        skill=Skill.COPING_SKILLS,
        title="Coping strategy inventory",
        duration_min=8,
        summary="List stressors, current coping, and 1 upgrade.",
        science_note="Coping audits help replace avoidance with approach strategies.",
        steps=(
            "List 2 current stressors.",
            "Write your go-to responses for each.",
            "Mark one unhelpful pattern.",
            "Pick 1 alternative strategy to try next time.",
        ),
        goal_title="Choose 1 coping upgrade",
        tags=("solo", "paper"),
    ),
)

DURATION_FILTERS = (3, 5, 7, 10)

_BY_ID = {exercise.id: exercise for exercise in EXERCISES}


def get_exercise(exercise_id: Optional[str]) -> Optional[ExerciseDefinition]:
    """Look up a catalog entry by id. Returns None if it is not in the catalog."""
    if exercise_id is None:
        return None
    return _BY_ID.get(exercise_id)


def filter_by_skill(exercises: Sequence[ExerciseDefinition],
                    skill: Optional[Skill] = None) -> List[ExerciseDefinition]:
    if not skill:
        return list(exercises)
    return [e for e in exercises if e.skill == skill]


def filter_by_max_duration(exercises: Sequence[ExerciseDefinition],
                           max_min: Optional[int] = None) -> List[ExerciseDefinition]:
    if not max_min:
        return list(exercises)
    return [e for e in exercises if e.duration_min <= max_min]


def featured_exercises() -> List[ExerciseDefinition]:
    """Exercises surfaced as quick actions."""
    return [e for e in EXERCISES if e.featured]
