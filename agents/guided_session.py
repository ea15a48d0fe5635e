"""GuidedSessionAgent - Scripted Step-by-Step Coach Mode

Walks the user through one catalog exercise, one step per reply.

States:
    Idle:        no active exercise (free-form chat)
    InExercise:  active exercise id + current step index + intro flag

Keywords (case-insensitive, whole message after trimming):
    stop / exit / quit / cancel  -> leave coach mode (sets opted_out)
    skip / next                  -> move to the next step

Any other message while in an exercise counts as having done the step.
After the last step the session completes with a wrap-up message whose
follow-up lines are picked up as goal suggestions.

The agent is pure: it reads a GuidedSessionState and returns a Transition
holding a new state. Persisting messages is the orchestrator's job.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from core.errors import ValidationError
from models.session import GuidedSessionState
from tools.exercises import ExerciseDefinition, get_exercise

logger = logging.getLogger(__name__)

EXIT_PATTERN = re.compile(r"^(stop|exit|quit|cancel)$", re.IGNORECASE)
SKIP_PATTERN = re.compile(r"^(skip|next)$", re.IGNORECASE)

STEP_FOOTER = '(Reply "skip" to skip, "exit" to leave)'
EXIT_MESSAGE = "Okay, exiting coach mode. How can I help now?"


class TransitionKind(Enum):
    INTRO = "intro"
    STEP = "step"
    EXITED = "exited"
    COMPLETED = "completed"
    FREE_FORM = "free_form"   # caller must produce the reply
    UNCHANGED = "unchanged"


@dataclass
class Transition:
    state: GuidedSessionState
    messages: List[str] = field(default_factory=list)
    kind: TransitionKind = TransitionKind.UNCHANGED
    exercise: Optional[ExerciseDefinition] = None


def intro_text(exercise: ExerciseDefinition) -> str:
    return "\n".join([
        f'Let\'s do "{exercise.title}" ({exercise.duration_min}min, {exercise.skill.value}).',
        f"Step 1: {exercise.steps[0]}",
        STEP_FOOTER,
    ])


def step_text(exercise: ExerciseDefinition, index: int, lead: str) -> str:
    return f"{lead} Step {index + 1}: {exercise.steps[index]}\n{STEP_FOOTER}"


def wrap_up_text(exercise: ExerciseDefinition) -> str:
    return "\n".join([
        f'Nice work on "{exercise.title}".',
        "In one line, what did you notice in your body or mind?",
        "Tiny follow-ups for today:",
        f"- {exercise.goal_title}",
        "- 3-minute check-in later",
        "- Share one insight with someone",
    ])


class GuidedSessionAgent:
    """State machine for guided exercises."""

    def start(self, state: GuidedSessionState, exercise_id: str) -> Transition:
        """
        Start (or switch to) an exercise from an explicit request.

        Raises ValidationError for an id that is not in the catalog. The
        intro is skipped only when this exercise is already running and its
        intro has been shown.
        """
        exercise = get_exercise(exercise_id)
        if exercise is None:
            raise ValidationError(f"Unknown exercise: {exercise_id}")

        if state.active_exercise_id == exercise_id:
            new_state = GuidedSessionState(
                active_exercise_id=exercise_id,
                step_index=state.step_index,
                opted_out=False,
                intro_shown_for=state.intro_shown_for,
            )
        else:
            new_state = GuidedSessionState.for_exercise(exercise_id)

        if new_state.intro_shown_for == exercise_id:
            return Transition(new_state, [], TransitionKind.UNCHANGED, exercise)

        new_state.intro_shown_for = exercise_id
        logger.info(f"Starting exercise {exercise_id}")
        return Transition(new_state, [intro_text(exercise)], TransitionKind.INTRO, exercise)

    def handle_message(self, state: GuidedSessionState, text: str) -> Transition:
        """Decide what one user message does to the session."""
        text = (text or "").strip()
        exercise = get_exercise(state.active_exercise_id)

        if exercise is None:
            if state.is_active:
                logger.warning(f"Exercise {state.active_exercise_id} is no longer in the catalog, leaving coach mode")
            return Transition(GuidedSessionState.idle(opted_out=state.opted_out), [], TransitionKind.FREE_FORM)

        if EXIT_PATTERN.match(text):
            return Transition(GuidedSessionState.idle(opted_out=True), [EXIT_MESSAGE],
                              TransitionKind.EXITED, exercise)

        lead = "No problem." if SKIP_PATTERN.match(text) else "Great."
        next_index = state.step_index + 1

        if next_index < len(exercise.steps):
            new_state = GuidedSessionState(
                active_exercise_id=exercise.id,
                step_index=next_index,
                opted_out=state.opted_out,
                intro_shown_for=exercise.id,
            )
            return Transition(new_state, [step_text(exercise, next_index, lead)],
                              TransitionKind.STEP, exercise)

        logger.info(f"Completed exercise {exercise.id}")
        return Transition(GuidedSessionState.idle(opted_out=False), [wrap_up_text(exercise)],
                          TransitionKind.COMPLETED, exercise)
