"""Interview orchestrator.

Decides, for every incoming chat message, whether to run a slash-command,
ask a question, or grade an answer, and builds the reply envelope.

Turn state per session:
- Idle: no outstanding question; free text triggers a new question
- AwaitingAnswer: free text is graded, then the next question is asked
  in the same reply

Generator failures never reach the user. Every question or grade that cannot
be resolved is replaced by fixed fallback content. Storage failures are not
masked and propagate to the caller.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from interview_coach.agents.prompts import (
    build_grade_messages,
    build_question_messages,
    rubric_for_mode,
)
from interview_coach.config import Settings, settings as default_settings
from interview_coach.services.coaching_signals import (
    clamp_score,
    current_focus_from_signals,
    format_score,
    top_signals,
)
from interview_coach.services.interview_state import (
    AwaitingAnswer,
    ChatRequest,
    ChatResponse,
    GradeResult,
    InterviewMode,
    InterviewPhase,
    QuestionDraft,
    SessionData,
    SignalDelta,
    StarScores,
    StatsSnapshot,
    SummaryResponse,
    TranscriptRole,
)
from interview_coach.services.session_store import SessionStore
from interview_coach.services.structured_output import StructuredOutputResolver
from interview_coach.utils.text import truncate_answer

logger = logging.getLogger(__name__)

RESET_REPLY = "Session reset. Send `/start behavioral`, `/start technical`, or just say hi to begin."
PROFILE_UPDATED_REPLY = "Profile updated."
NEXT_QUESTION_MARKER = "Next question:"

COMMAND_HELP = """Available commands:
- /start [behavioral|technical|mixed]: ask a new question (optionally switching mode)
- /focus <topic>: add a focus topic, or show the current focus
- /role <title>: set the target role, or show the current one
- /summary: show your progress
- /reset: start over with a fresh session"""


@dataclass
class Command:
    """A parsed slash-command."""

    name: str
    args: str


def parse_command(text: str) -> Command | None:
    """Split ``/name args...`` into a lowercase name and the remaining text."""
    trimmed = text.strip()
    if not trimmed.startswith("/"):
        return None
    parts = trimmed[1:].split(maxsplit=1)
    if not parts:
        return Command(name="", args="")
    args = parts[1].strip() if len(parts) > 1 else ""
    return Command(name=parts[0].lower(), args=args)


def mode_from_argument(argument: str, current: InterviewMode) -> InterviewMode:
    """Pick a mode from a loose ``/start`` argument, keeping ``current`` otherwise."""
    arg = argument.lower()
    if "tech" in arg:
        return InterviewMode.TECHNICAL
    if "behav" in arg:
        return InterviewMode.BEHAVIORAL
    if "mixed" in arg:
        return InterviewMode.MIXED
    return current


def fallback_question(mode: InterviewMode) -> QuestionDraft:
    """Canned question used when the generator cannot produce one."""
    if mode == InterviewMode.TECHNICAL:
        return QuestionDraft(
            question=(
                "Design a rate limiter for an API. Walk me through your approach, data structures, "
                "and tradeoffs (burstiness, distributed instances, and storage)."
            ),
            rubric_focus="Explain assumptions, algorithm, complexity, and edge cases.",
        )
    return QuestionDraft(
        question=(
            "Tell me about a time you faced a tight deadline. What was the situation, what was "
            "your task, what actions did you take, and what was the result?"
        ),
        rubric_focus="Use STAR, include measurable results, and keep it concise.",
    )


def fallback_grade() -> GradeResult:
    """Canned grade used when the generator cannot produce one."""
    return GradeResult(
        overall_score=5,
        star=StarScores(situation=5, task=5, action=5, result=4),
        clarity=5,
        impact=4,
        strengths=["You provided a coherent narrative."],
        improvements=[
            "Add concrete actions you personally took.",
            "Add measurable results/impact.",
        ],
        missing=["Key metric/result", "Specific actions and decisions"],
        improved_answer="",
        signal_updates=SignalDelta(missing_metrics=1, weak_result=1),
        next_question_strategy="Ask follow-ups that force specific actions + measurable results.",
    )


def format_grade_reply(grade: GradeResult) -> str:
    """Render a grade as the human-readable feedback block."""
    lines = [f"Score: {format_score(clamp_score(grade.overall_score))}/10"]

    sections = (
        ("What you did well:", grade.strengths[:3]),
        ("Top improvements:", grade.improvements[:3]),
        ("Missing details to add next time:", grade.missing[:5]),
    )
    for title, items in sections:
        if items:
            lines.extend(["", title])
            lines.extend(f"- {item}" for item in items)

    if grade.improved_answer and grade.improved_answer.strip():
        lines.extend(["", "Improved answer (rewrite):", grade.improved_answer.strip()])

    return "\n".join(lines).strip()


def stats_snapshot(session: SessionData) -> StatsSnapshot:
    stats = session.state.stats
    return StatsSnapshot(
        avg_score=stats.avg_score,
        last_scores=list(stats.last_scores),
        current_focus=current_focus_from_signals(session.state.signals),
        questions_answered=stats.questions_answered,
    )


class InterviewOrchestrator:
    """Per-request dispatcher for the mock-interview chat."""

    def __init__(
        self,
        store: SessionStore,
        resolver: StructuredOutputResolver,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.config = config or default_settings
        self._commands: dict[str, Callable[[SessionData, str], Awaitable[ChatResponse]]] = {
            "reset": self._command_reset,
            "summary": self._command_summary,
            "focus": self._command_focus,
            "role": self._command_role,
            "start": self._command_start,
            "help": self._command_help,
        }

    # =========================================================================
    # Entry points
    # =========================================================================

    async def handle_chat(self, request: ChatRequest) -> ChatResponse:
        """Handle one chat turn and return the reply envelope."""
        session_id = (request.session_id or "").strip() or str(uuid.uuid4())
        message = (request.message or "").strip()

        session = await self._ensure_session(session_id, request)

        command = parse_command(message) if message else None
        if command is not None:
            return await self._dispatch_command(session, command)

        if not message:
            if request.has_profile_patch:
                return self._envelope(session, PROFILE_UPDATED_REPLY)
            return await self.next_question(session_id)

        if session.state.phase == InterviewPhase.IDLE:
            return await self.next_question(session_id)

        return await self._grade_answer(session, session.state.turn, message)

    async def summary(self, session_id: str) -> SummaryResponse:
        """Progress snapshot for a session. Does not mutate anything."""
        session = await self.store.get_session(session_id)
        state = session.state
        return SummaryResponse(
            session_id=session_id,
            mode=state.mode,
            target_role=state.target_role,
            level=state.level,
            stats=state.stats,
            current_focus=current_focus_from_signals(state.signals),
            top_signals=top_signals(state.signals),
            last_grade=session.last_grade,
        )

    async def reset(self, session_id: str) -> None:
        await self.store.reset(session_id)

    async def next_question(self, session_id: str, session: SessionData | None = None) -> ChatResponse:
        """Produce and persist the next question; reply with it."""
        question_text, latest = await self._produce_question(session_id, session)
        return self._envelope(latest, question_text)

    # =========================================================================
    # Commands
    # =========================================================================

    async def _dispatch_command(self, session: SessionData, command: Command) -> ChatResponse:
        handler = self._commands.get(command.name)
        if handler is None:
            logger.info(f"[InterviewOrchestrator] Unknown command /{command.name}")
            return self._envelope(session, f"Unknown command `/{command.name}`.\n\n{COMMAND_HELP}")
        return await handler(session, command.args)

    async def _command_reset(self, session: SessionData, args: str) -> ChatResponse:
        fresh = await self.store.reset(session.state.session_id)
        return self._envelope(fresh, RESET_REPLY)

    async def _command_summary(self, session: SessionData, args: str) -> ChatResponse:
        current = await self.store.get_session(session.state.session_id)
        stats = current.state.stats
        reply = "\n".join([
            "Progress summary",
            f"- Questions answered: {stats.questions_answered}",
            f"- Average score: {format_score(stats.avg_score)}",
            f"- Current focus: {current_focus_from_signals(current.state.signals)}",
            "",
            "Tip: use `/focus metrics` to bias feedback toward quantification.",
        ])
        return self._envelope(current, reply)

    async def _command_focus(self, session: SessionData, topic: str) -> ChatResponse:
        if not topic:
            current = ", ".join(session.state.focus) or "none"
            return self._envelope(session, f"Current focus: {current}")

        updated = await self.store.patch_profile(
            session.state.session_id, focus=[*session.state.focus, topic]
        )
        return self._envelope(updated, f"Focus updated: {', '.join(updated.state.focus)}")

    async def _command_role(self, session: SessionData, role: str) -> ChatResponse:
        if not role:
            return self._envelope(session, f"Current target role: {session.state.target_role}")

        updated = await self.store.patch_profile(session.state.session_id, target_role=role)
        return self._envelope(updated, f"Target role updated to: {updated.state.target_role}")

    async def _command_start(self, session: SessionData, args: str) -> ChatResponse:
        session_id = session.state.session_id
        mode = mode_from_argument(args, session.state.mode)
        if mode != session.state.mode:
            await self.store.patch_profile(session_id, mode=mode)
        await self.store.clear_last_question(session_id)
        return await self.next_question(session_id)

    async def _command_help(self, session: SessionData, args: str) -> ChatResponse:
        return self._envelope(session, COMMAND_HELP)

    # =========================================================================
    # Interview turns
    # =========================================================================

    async def _ensure_session(self, session_id: str, request: ChatRequest) -> SessionData:
        """Load the session, applying any profile fields from the request first."""
        if not request.has_profile_patch:
            return await self.store.get_session(session_id)
        return await self.store.patch_profile(
            session_id,
            mode=request.mode,
            target_role=request.target_role,
            level=request.level,
            focus=request.focus,
        )

    async def _produce_question(
        self,
        session_id: str,
        session: SessionData | None = None,
    ) -> tuple[str, SessionData]:
        """Resolve the next question (or its fallback) and store it as outstanding."""
        current = session or await self.store.get_session(session_id)
        state = current.state

        result = await self.resolver.resolve(
            build_question_messages(
                mode=state.mode,
                target_role=state.target_role,
                level=state.level,
                focus=state.focus,
                signals=state.signals,
                recent_messages=current.messages,
            ),
            QuestionDraft,
        )
        fallback = fallback_question(state.mode)
        if result.ok:
            draft = result.value
        else:
            logger.info(f"[InterviewOrchestrator] Using fallback question for {session_id}: {result.reason}")
            draft = fallback

        question_text = draft.question.strip() or fallback.question
        rubric = f"{rubric_for_mode(state.mode)}\n\nRubric focus: {draft.rubric_focus}".strip()

        await self.store.set_last_question(session_id, question_text, rubric)
        latest = await self.store.get_session(session_id)
        return question_text, latest

    async def _grade_answer(
        self,
        session: SessionData,
        question: AwaitingAnswer,
        message: str,
    ) -> ChatResponse:
        """Grade the answer, update stats, and chain straight into the next question."""
        state = session.state
        session_id = state.session_id

        answer, _ = truncate_answer(message, self.config.max_answer_length)
        await self.store.append_message(session_id, TranscriptRole.USER, answer)

        result = await self.resolver.resolve(
            build_grade_messages(
                mode=state.mode,
                question_text=question.text,
                rubric=rubric_for_mode(state.mode),
                answer_text=answer,
                target_role=state.target_role,
                level=state.level,
                focus=state.focus,
            ),
            GradeResult,
        )
        if result.ok:
            grade = result.value
        else:
            logger.info(f"[InterviewOrchestrator] Using fallback grade for {session_id}: {result.reason}")
            grade = fallback_grade()

        score = clamp_score(grade.overall_score)
        grade = grade.model_copy(update={"overall_score": score})
        await self.store.set_last_grade(session_id, grade)
        updated = await self.store.update_after_grade(session_id, score, grade.signal_updates)

        grade_reply = format_grade_reply(grade)
        await self.store.append_message(session_id, TranscriptRole.ASSISTANT, grade_reply)

        question_text, _ = await self._produce_question(session_id)

        reply = "\n".join([grade_reply, "", NEXT_QUESTION_MARKER, question_text]).strip()
        return ChatResponse(
            session_id=session_id,
            reply=reply,
            stats=stats_snapshot(updated),
            last_grade=grade,
        )

    def _envelope(self, session: SessionData, reply: str) -> ChatResponse:
        return ChatResponse(
            session_id=session.state.session_id,
            reply=reply,
            stats=stats_snapshot(session),
            last_grade=session.last_grade,
        )
