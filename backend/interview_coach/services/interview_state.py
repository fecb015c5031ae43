"""Interview session data model.

Everything that is persisted for a session, and every envelope exchanged with
API clients, is a pydantic model here. Field names are snake_case in Python
and camelCase on the wire (and in storage), so a stored document looks like:

    {
        "state": {
            "sessionId": "abc",
            "mode": "behavioral",
            "targetRole": "Backend Engineer",
            "level": "newgrad",
            "focus": ["metrics"],
            "signals": {"missing_metrics": 2, "weak_result": 1, ...},
            "stats": {"questionsAnswered": 3, "avgScore": 6.3, "lastScores": [...]},
            "turn": {"phase": "awaiting_answer", "text": "...", "rubric": "...", "askedAt": "..."}
        },
        "messages": [{"role": "assistant", "content": "...", "ts": "..."}],
        "lastGrade": {"overallScore": 7, ...}
    }

The interview turn is an explicit tagged union (``Idle`` or
``AwaitingAnswer``) instead of an optional "last question" field.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InterviewMode(str, Enum):
    """Interview style; governs rubric and question style."""

    BEHAVIORAL = "behavioral"
    TECHNICAL = "technical"
    MIXED = "mixed"


class CandidateLevel(str, Enum):
    """Seniority the questions are pitched at."""

    INTERN = "intern"
    NEWGRAD = "newgrad"
    MID = "mid"


class TranscriptRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class InterviewPhase(str, Enum):
    """Whether the next free-text message asks for a question or gets graded."""

    IDLE = "idle"
    AWAITING_ANSWER = "awaiting_answer"


class WireModel(BaseModel):
    """Base for models serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# =============================================================================
# Coaching signals and stats
# =============================================================================

SIGNAL_NAMES: tuple[str, ...] = ("missing_metrics", "weak_result", "unclear_task", "rambling")


class CoachingSignals(BaseModel):
    """Counters of recurring weaknesses, only ever increased by grading."""

    model_config = ConfigDict(extra="ignore")

    missing_metrics: int = 0
    weak_result: int = 0
    unclear_task: int = 0
    rambling: int = 0


class SignalDelta(BaseModel):
    """Partial signal increments proposed by a grade."""

    model_config = ConfigDict(extra="ignore")

    missing_metrics: int | None = None
    weak_result: int | None = None
    unclear_task: int | None = None
    rambling: int | None = None


class Stats(WireModel):
    """Rolling score statistics for a session."""

    questions_answered: int = 0
    avg_score: float = 0
    last_scores: list[float] = Field(default_factory=list)


# =============================================================================
# Transcript and turn state
# =============================================================================

class TranscriptMessage(WireModel):
    role: TranscriptRole
    content: str
    ts: datetime = Field(default_factory=utcnow)


class Idle(WireModel):
    """No question is outstanding; the next message triggers a new question."""

    phase: Literal["idle"] = "idle"


class AwaitingAnswer(WireModel):
    """A question was asked and the next free-text message is its answer."""

    phase: Literal["awaiting_answer"] = "awaiting_answer"
    text: str
    rubric: str
    asked_at: datetime = Field(default_factory=utcnow)


TurnState = Annotated[Union[Idle, AwaitingAnswer], Field(discriminator="phase")]


class SessionState(WireModel):
    """Profile, coaching signals, stats and turn state of one session."""

    session_id: str
    mode: InterviewMode = InterviewMode.MIXED
    target_role: str = "Software Engineering Intern"
    level: CandidateLevel = CandidateLevel.INTERN
    focus: list[str] = Field(default_factory=list)
    signals: CoachingSignals = Field(default_factory=CoachingSignals)
    stats: Stats = Field(default_factory=Stats)
    turn: TurnState = Field(default_factory=Idle)

    @property
    def phase(self) -> InterviewPhase:
        if isinstance(self.turn, AwaitingAnswer):
            return InterviewPhase.AWAITING_ANSWER
        return InterviewPhase.IDLE

    @property
    def last_question(self) -> AwaitingAnswer | None:
        """The outstanding question, if the session is awaiting an answer."""
        return self.turn if isinstance(self.turn, AwaitingAnswer) else None


# =============================================================================
# Structured generator outputs
# =============================================================================

class StarScores(BaseModel):
    model_config = ConfigDict(extra="ignore")

    situation: float | None = None
    task: float | None = None
    action: float | None = None
    result: float | None = None


class GradeResult(WireModel):
    """A structured grade for one answer, as returned by the grading call."""

    overall_score: float
    star: StarScores | None = None
    clarity: float | None = None
    impact: float | None = None
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    improved_answer: str | None = None
    signal_updates: SignalDelta | None = None
    next_question_strategy: str | None = None

    @field_validator("strengths", "improvements", "missing", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class QuestionDraft(BaseModel):
    """The next interview question, as returned by the question call."""

    model_config = ConfigDict(extra="ignore")

    question: str
    rubric_focus: str = ""

    @field_validator("rubric_focus", mode="before")
    @classmethod
    def _none_as_blank(cls, value: Any) -> Any:
        return "" if value is None else value


# =============================================================================
# Session document
# =============================================================================

class SessionData(WireModel):
    """The whole durable record of a session."""

    state: SessionState
    messages: list[TranscriptMessage] = Field(default_factory=list)
    last_grade: GradeResult | None = None

    @classmethod
    def new(
        cls,
        session_id: str,
        mode: InterviewMode | str = InterviewMode.MIXED,
        target_role: str = "Software Engineering Intern",
        level: CandidateLevel | str = CandidateLevel.INTERN,
    ) -> "SessionData":
        """Build a zero-state session with the given profile defaults."""
        return cls(
            state=SessionState(
                session_id=session_id,
                mode=InterviewMode(mode),
                target_role=target_role,
                level=CandidateLevel(level),
            ),
        )

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON document stored by the key-value store."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "SessionData":
        return cls.model_validate(document)


# =============================================================================
# API envelopes
# =============================================================================

class ChatRequest(WireModel):
    """One chat turn. Every field is optional."""

    session_id: str | None = None
    message: str | None = None
    mode: InterviewMode | None = None
    target_role: str | None = None
    level: CandidateLevel | None = None
    focus: list[str] | None = None

    @property
    def has_profile_patch(self) -> bool:
        return (
            self.mode is not None
            or self.target_role is not None
            or self.level is not None
            or self.focus is not None
        )


class StatsSnapshot(WireModel):
    avg_score: float
    last_scores: list[float]
    current_focus: str
    questions_answered: int


class ChatResponse(WireModel):
    session_id: str
    reply: str
    stats: StatsSnapshot
    last_grade: GradeResult | None = None


class SummaryResponse(WireModel):
    session_id: str
    mode: InterviewMode
    target_role: str
    level: CandidateLevel
    stats: Stats
    current_focus: str
    top_signals: list[tuple[str, int]]
    last_grade: GradeResult | None = None
