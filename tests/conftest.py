"""Shared pytest fixtures for Journal Companion tests.

No test talks to Gemini or Firestore: the LLM is a scripted fake and the
store is the in-memory backend.
"""
import pytest

from core.observability import metrics
from journal_main import JournalSystem
from services.document_store import InMemoryDocumentStore
from services.journal_repository import JournalRepository
from services.llm_client import ChatResponse

TEST_DATE = "2024-05-01"


class FakeChatClient:
    """Scripted stand-in for GeminiChatClient.

    Each queued item is either reply text or an exception to raise. Every
    call's message list is recorded in `calls`.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.calls = []

    def queue(self, *items):
        self.script.extend(items)

    def chat(self, messages, model=None, temperature=0.7, stream=False):
        self.calls.append(list(messages))
        if not self.script:
            raise AssertionError("FakeChatClient has no scripted reply left")
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return ChatResponse(reply=item, usage={"prompt_tokens": 10, "completion_tokens": 20},
                            model="fake-model")


@pytest.fixture(autouse=True)
def reset_metrics():
    """Keep the global TurnMetrics independent between tests."""
    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture
def journal_date():
    return TEST_DATE


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def repository(store):
    return JournalRepository(store, user_id="test_user")


@pytest.fixture
def fake_llm():
    return FakeChatClient()


@pytest.fixture
def system(store, fake_llm):
    return JournalSystem(user_id="test_user", store=store, llm=fake_llm, lock_timeout=0.2)
