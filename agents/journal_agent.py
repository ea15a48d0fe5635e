"""JournalAgent - Empathetic Free-Form Replies

Answers a journal entry when no guided exercise is running.

Prompt Engineering:
    - Persona: warm, non-judgmental journaling assistant
    - Short replies: 2-4 sentences, empathy first, then one small nudge
    - Skill vocabulary: the eight resilience skills of the exercise catalog
    - Tail convention: 3-5 micro-goals on their own lines at the very end,
      phrased so the goal filter accepts them (verb or "N-minute" first)

Unlike a scripted fallback, failures are not masked here: UpstreamError and
TransportError reach the orchestrator, which reports a failed turn.
"""
import logging

from config.settings import LLM_TEMPERATURE
from core.observability import Tracer
from services.llm_client import ChatMessage, ChatResponse
from tools.exercises import Skill

logger = logging.getLogger(__name__)


def build_system_prompt() -> str:
    skills = ", ".join(skill.value for skill in Skill)
    return f"""
You are a warm, non-judgmental journaling assistant that helps build emotional resilience.
Use these skills when relevant: {skills}.
Guidelines:
- 2-4 short sentences.
- Empathy first: reflect and normalize.
- Then one small, concrete nudge (no lectures, no long lists).

At the very end of your reply, add 3-5 micro-goals for TODAY, each on its own line:
- 2-6 words
- starts with a verb or time hint (e.g., "5-minute ...")
- doable in 15 minutes or less
- examples: "Drink 1 glass water", "5-minute stretch", "List 3 gratitudes", "Text a friend hello".
""".strip()


SYSTEM_PROMPT = build_system_prompt()


class JournalAgent:
    """
    JournalAgent - the free-form voice of the journal.

    Each reply is a single-shot call: the persona prompt plus the user's
    latest message. Earlier turns are not resent.
    """

    def __init__(self, llm, temperature: float = LLM_TEMPERATURE):
        self.llm = llm
        self.temperature = temperature

    def reply(self, text: str) -> ChatResponse:
        messages = [ChatMessage.system(SYSTEM_PROMPT), ChatMessage.user(text)]
        with Tracer("JournalAgent.reply", text) as trace:
            response = self.llm.chat(messages, temperature=self.temperature)
            trace.metadata["usage"] = response.usage
        logger.info(f"JournalAgent: reply of {len(response.reply)} chars")
        return response
