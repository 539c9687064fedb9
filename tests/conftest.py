"""Root conftest for all tests.

Shared fixtures: a scripted generative backend, an in-memory store that
records writes, test settings and a token factory.
"""

import asyncio
from collections.abc import Callable

import pytest

from auracoach.config.settings import Settings
from auracoach.core.auth_jwt import create_access_token
from auracoach.llm.backend import ChatMessage, CompletionOptions, GenerativeBackendError
from auracoach.services import CoachingServices
from auracoach.storage.kv import InMemoryKeyValueStore

Responder = Callable[[str, list[ChatMessage]], str]


class ScriptedBackend:
    """Generative backend double.

    Replies come from ``responder`` when set, otherwise from ``replies`` in
    order. ``error`` is raised on every call when set. ``delay`` seconds are
    slept before answering.
    """

    def __init__(
        self,
        replies: list | None = None,
        error: BaseException | None = None,
        responder: Responder | None = None,
        delay: float = 0.0,
    ):
        self.replies = list(replies or [])
        self.error = error
        self.responder = responder
        self.delay = delay
        self.calls: list[tuple[str, list[ChatMessage], CompletionOptions]] = []

    async def complete(self, system_prompt: str, messages: list[ChatMessage], options: CompletionOptions) -> str:
        self.calls.append((system_prompt, messages, options))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(system_prompt, messages)
        if not self.replies:
            raise GenerativeBackendError("No scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply


class RecordingStore(InMemoryKeyValueStore):
    """In-memory store that remembers every key written with ``put``."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []

    async def put(self, key: str, value: str, ttl_seconds: int | None = None) -> None:
        self.writes.append(key)
        await super().put(key, value, ttl_seconds)


@pytest.fixture
def config() -> Settings:
    return Settings(
        openai_api_key="",
        kv_backend="memory",
        auth_secret_key="test-secret-key",
        require_entitlement=True,
        llm_timeout_seconds=2.0,
        coaching_rate_limit=10,
        coaching_rate_window_seconds=60,
        default_rate_limit=500,
        default_rate_window_seconds=900,
        log_level="WARNING",
    )


@pytest.fixture
def make_backend():
    return ScriptedBackend


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def services(config, backend, store) -> CoachingServices:
    return CoachingServices.build(config, backend=backend, store=store)


@pytest.fixture
def make_token(config):
    """Factory for signed tokens; subscribed users by default."""

    def _make(user_id: str = "user-1", active: bool = True, **claims) -> str:
        return create_access_token(
            user_id,
            email=claims.pop("email", f"{user_id}@example.com"),
            subscription={"active": active, "plan": "pro" if active else None},
            config=config,
            **claims,
        )

    return _make


@pytest.fixture
def onboarding_answers() -> dict:
    """Questionnaire as posted by the onboarding flow."""
    return {
        "mindset": "developed",
        "agency": "primary_driver",
        "regulatory_focus": "promotion",
        "disorganized": 2,
        "outgoing": 4,
        "moody": 2,
        "final_focus": "career growth",
    }
