"""
Pytest configuration and shared fixtures for interview coach tests.

This module provides:
- Async database session fixtures (in-memory SQLite)
- In-memory key-value and session stores
- Scripted text generators standing in for the chat model
- Mock API clients (Anthropic, OpenAI)
- An HTTP client bound to the FastAPI app
"""

import json
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from interview_coach.agents.prompts import ChatMessage
from interview_coach.config import Settings
from interview_coach.models import Base, SessionRecord  # noqa: F401 - registers tables
from interview_coach.services.interview_orchestrator import InterviewOrchestrator
from interview_coach.services.kv_store import InMemoryKeyValueStore
from interview_coach.services.session_store import SessionStore
from interview_coach.services.structured_output import StructuredOutputResolver
from interview_coach.services.text_generator import TextGenerator


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def async_engine():
    """Create an async engine with in-memory SQLite for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture(scope="function")
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session that's rolled back after the test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


# =============================================================================
# Settings and Stores
# =============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        anthropic_api_key="",
        openai_api_key="",
        database_url="sqlite+aiosqlite:///:memory:",
    )


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def session_store(kv, test_settings) -> SessionStore:
    return SessionStore(kv, test_settings)


# =============================================================================
# Scripted Text Generators
# =============================================================================

Output = str | dict[str, Any] | Exception | None


class ScriptedGenerator(TextGenerator):
    """
    Text generator that replays canned outputs.

    Either pops ``outputs`` in order or asks ``responder`` for each call.
    Exceptions in the script are raised instead of returned.
    """

    def __init__(
        self,
        outputs: list[Output] | None = None,
        responder: Callable[[list[ChatMessage]], Output] | None = None,
    ) -> None:
        super().__init__(model="scripted")
        self.outputs = list(outputs or [])
        self.responder = responder
        self.calls: list[list[ChatMessage]] = []

    async def complete(self, messages: list[ChatMessage]) -> str | dict[str, Any] | None:
        self.calls.append(list(messages))
        if self.responder is not None:
            output = self.responder(messages)
        elif self.outputs:
            output = self.outputs.pop(0)
        else:
            raise RuntimeError("Scripted generator has no outputs left")
        if isinstance(output, Exception):
            raise output
        return output


@pytest.fixture
def make_generator() -> Callable[..., ScriptedGenerator]:
    """Factory for scripted generators."""
    return ScriptedGenerator


@pytest.fixture
def sample_grade() -> dict[str, Any]:
    """A well-formed grade as the grading call would return it."""
    return {
        "overallScore": 7,
        "star": {"situation": 8, "task": 7, "action": 7, "result": 5},
        "clarity": 7,
        "impact": 6,
        "strengths": ["Clear situation", "Owned the outcome", "Good pacing", "Extra strength"],
        "improvements": ["Quantify the result"],
        "missing": ["Latency numbers before and after"],
        "improvedAnswer": "In Q3 our checkout latency doubled...",
        "signalUpdates": {"missing_metrics": 1, "rambling": 2},
        "nextQuestionStrategy": "Probe for measurable outcomes.",
    }


def is_grade_request(messages: list[ChatMessage]) -> bool:
    return "interview grader" in messages[0]["content"]


@pytest.fixture
def coach_generator(sample_grade) -> ScriptedGenerator:
    """Generator that answers question requests and grade requests sensibly."""
    counter = {"questions": 0}

    def respond(messages: list[ChatMessage]) -> Output:
        if is_grade_request(messages):
            return json.dumps(sample_grade)
        counter["questions"] += 1
        return json.dumps({
            "question": f"Generated question #{counter['questions']}",
            "rubric_focus": "Quantify the impact.",
        })

    return ScriptedGenerator(responder=respond)


@pytest.fixture
def failing_generator() -> ScriptedGenerator:
    """Generator whose every call raises."""
    return ScriptedGenerator(responder=lambda messages: RuntimeError("model binding missing"))


def build_orchestrator(store: SessionStore, generator: TextGenerator | None, config: Settings) -> InterviewOrchestrator:
    resolver = StructuredOutputResolver(generator, max_attempts=config.structured_output_max_attempts)
    return InterviewOrchestrator(store, resolver, config)


@pytest.fixture
def orchestrator(session_store, coach_generator, test_settings) -> InterviewOrchestrator:
    return build_orchestrator(session_store, coach_generator, test_settings)


@pytest.fixture
def fallback_orchestrator(session_store, failing_generator, test_settings) -> InterviewOrchestrator:
    return build_orchestrator(session_store, failing_generator, test_settings)


# =============================================================================
# Mock API Clients
# =============================================================================

@pytest.fixture
def mock_anthropic_client():
    """Mock Anthropic client for testing."""
    mock_client = AsyncMock()

    mock_response = MagicMock()
    mock_response.content = [MagicMock(text='{"question": "Mock question", "rubric_focus": "STAR"}')]
    mock_client.messages.create = AsyncMock(return_value=mock_response)

    return mock_client


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client for testing chat completions."""
    mock_client = AsyncMock()

    mock_chat_response = MagicMock()
    mock_chat_response.choices = [
        MagicMock(message=MagicMock(content='{"question": "Mock question", "rubric_focus": "STAR"}'))
    ]
    mock_client.chat.completions.create = AsyncMock(return_value=mock_chat_response)

    return mock_client


# =============================================================================
# HTTP Client
# =============================================================================

@pytest.fixture
async def api_client(session_factory, coach_generator) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client for the app, wired to the test database and generator."""
    from interview_coach.main import app
    from interview_coach.models.base import get_db
    from interview_coach.routers.interview import get_shared_text_generator

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_shared_text_generator] = lambda: coach_generator

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# Environment Setup
# =============================================================================

@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment variables."""
    original_env = os.environ.copy()

    os.environ["ANTHROPIC_API_KEY"] = ""
    os.environ["OPENAI_API_KEY"] = ""
    os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"

    yield

    os.environ.clear()
    os.environ.update(original_env)
