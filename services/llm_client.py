"""LLM Chat Client

A stateless chat call: an ordered list of role-tagged messages in, reply text
out. Requests are normalized first so the provider always receives
alternating user/assistant turns:

1. Unknown roles become "user"; blank content becomes a single space
2. Consecutive non-system messages with the same role are folded with "\\n"
3. If the first non-system message is not from the user, a synthetic user
   message is inserted before it

GeminiChatClient maps system turns to the model's system_instruction and
translates google-api-core failures into UpstreamError / TransportError.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from google.api_core import exceptions as google_exceptions

from config.llm import get_gemini_model
from config.settings import GEMINI_MODEL_NAME, LLM_TEMPERATURE, LLM_TIMEOUT_SECONDS
from core.errors import TransportError, UpstreamError, ValidationError
from models.session import ChatRole

logger = logging.getLogger(__name__)

SYNTHETIC_USER_PROMPT = (
    "Summarize today's conversation and return strict JSON with \"summary\" and \"topics\"."
)

# Gemini names the assistant side "model"
_GEMINI_ROLES = {ChatRole.USER: "user", ChatRole.ASSISTANT: "model"}


@dataclass
class ChatMessage:
    role: ChatRole
    content: str

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(ChatRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(ChatRole.USER, content)


@dataclass
class ChatResponse:
    reply: str
    usage: Dict[str, int] = field(default_factory=dict)
    model: Optional[str] = None


def normalize_messages(messages: Sequence[Any]) -> List[ChatMessage]:
    """
    Apply the request normalization rules.

    Accepts ChatMessage/Message objects or plain {"role", "content"} dicts.
    Raises ValidationError on an empty list.
    """
    if not messages:
        raise ValidationError("messages must not be empty")

    folded: List[ChatMessage] = []
    for raw in messages:
        if isinstance(raw, dict):
            role, content = raw.get("role"), raw.get("content")
        else:
            role, content = getattr(raw, "role", None), getattr(raw, "content", None)

        msg = ChatMessage(ChatRole.coerce(role), str(content if content is not None else "").strip() or " ")

        prev = folded[-1] if folded else None
        if prev and prev.role == msg.role and msg.role != ChatRole.SYSTEM:
            merged = f"{prev.content.strip()}\n{msg.content.strip()}".strip() or " "
            folded[-1] = ChatMessage(prev.role, merged)
        else:
            folded.append(msg)

    first_turn = next((i for i, m in enumerate(folded) if m.role != ChatRole.SYSTEM), None)
    if first_turn is not None and folded[first_turn].role != ChatRole.USER:
        folded.insert(first_turn, ChatMessage.user(SYNTHETIC_USER_PROMPT))

    return folded


class GeminiChatClient:
    """
    Chat client backed by google-generativeai.

    A model is built per call because the system instruction is bound to the
    GenerativeModel instance.
    """

    def __init__(self, model_factory: Callable = get_gemini_model,
                 default_model: str = GEMINI_MODEL_NAME,
                 timeout: float = LLM_TIMEOUT_SECONDS):
        self.model_factory = model_factory
        self.default_model = default_model
        self.timeout = timeout

    def chat(self, messages: Sequence[Any], model: Optional[str] = None,
             temperature: float = LLM_TEMPERATURE, stream: bool = False) -> ChatResponse:
        normalized = normalize_messages(messages)
        model_name = model or self.default_model

        system_text = "\n\n".join(m.content for m in normalized if m.role == ChatRole.SYSTEM).strip()
        contents = [
            {"role": _GEMINI_ROLES[m.role], "parts": [m.content]}
            for m in normalized
            if m.role != ChatRole.SYSTEM
        ]
        if not contents:
            raise ValidationError("messages must contain at least one user or assistant turn")

        gemini = self.model_factory(model_name=model_name, system_instruction=system_text or None)
        if gemini is None:
            raise UpstreamError("Gemini is not configured (missing GOOGLE_API_KEY)")

        logger.debug(f"Sending {len(contents)} turns to {model_name}")
        try:
            response = gemini.generate_content(
                contents,
                generation_config={"temperature": temperature},
                request_options={"timeout": self.timeout},
                stream=stream,
            )
            reply = self._collect_text(response, stream)
        except (google_exceptions.DeadlineExceeded, google_exceptions.ServiceUnavailable,
                google_exceptions.RetryError, OSError) as e:
            raise TransportError(f"Gemini request did not complete: {e}") from e
        except google_exceptions.GoogleAPICallError as e:
            status = int(e.code) if e.code is not None else None
            raise UpstreamError("Gemini request failed", status=status, body=e.message or "") from e

        if not reply.strip():
            raise UpstreamError("Gemini returned an empty reply")

        return ChatResponse(reply=reply, usage=self._usage(response), model=model_name)

    @staticmethod
    def _collect_text(response, stream: bool) -> str:
        try:
            if stream:
                return "".join(chunk.text for chunk in response)
            return response.text
        except ValueError as e:
            # .text raises when the candidate was blocked or has no parts
            raise UpstreamError("Gemini returned no text", body=str(e)) from e

    @staticmethod
    def _usage(response) -> Dict[str, int]:
        meta = getattr(response, "usage_metadata", None)
        if meta is None:
            return {}
        return {
            "prompt_tokens": getattr(meta, "prompt_token_count", 0) or 0,
            "completion_tokens": getattr(meta, "candidates_token_count", 0) or 0,
        }
