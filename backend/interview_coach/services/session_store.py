"""Session store adapter.

Typed read-modify-write operations over the per-session document held in a
``KeyValueStore``. Every operation loads the record, applies one change and
persists the whole record again, so each call is observed as a unit by the
next read on the same session id.

There is no locking: at most one in-flight request per session id is
assumed. Overlapping requests on one id can interleave their writes.
"""

import logging

from interview_coach.config import Settings, settings as default_settings
from interview_coach.services.coaching_signals import (
    apply_signal_updates,
    compute_stats_after_grade,
)
from interview_coach.services.interview_state import (
    AwaitingAnswer,
    CandidateLevel,
    GradeResult,
    Idle,
    InterviewMode,
    SessionData,
    SignalDelta,
    Stats,
    TranscriptMessage,
    TranscriptRole,
    utcnow,
)
from interview_coach.services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:v1:"


def trim_transcript(messages: list[TranscriptMessage], limit: int) -> list[TranscriptMessage]:
    """Keep only the most recent ``limit`` transcript entries."""
    if len(messages) <= limit:
        return messages
    return messages[len(messages) - limit:]


def dedupe_focus(focus: list[str]) -> list[str]:
    """Drop blank and repeated topics, keeping first-seen order."""
    topics = (topic.strip() for topic in focus)
    return list(dict.fromkeys(topic for topic in topics if topic))


class SessionStore:
    """Typed operations on interview session records."""

    def __init__(self, kv: KeyValueStore, config: Settings | None = None) -> None:
        self.kv = kv
        self.config = config or default_settings

    @staticmethod
    def _key(session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def _new_session(self, session_id: str) -> SessionData:
        return SessionData.new(
            session_id,
            mode=self.config.default_mode,
            target_role=self.config.default_target_role,
            level=self.config.default_level,
        )

    async def get_session(self, session_id: str) -> SessionData:
        """Return the session, creating and persisting a zero-state one if absent."""
        document = await self.kv.get(self._key(session_id))
        if document is not None:
            return SessionData.from_document(document)

        created = self._new_session(session_id)
        await self.set_session(created)
        logger.info(f"[SessionStore] Created session {session_id}")
        return created

    async def set_session(self, session: SessionData) -> None:
        """Trim the transcript, then replace the stored record."""
        session.messages = trim_transcript(session.messages, self.config.transcript_limit)
        await self.kv.put(self._key(session.state.session_id), session.to_document())

    async def patch_profile(
        self,
        session_id: str,
        mode: InterviewMode | str | None = None,
        target_role: str | None = None,
        level: CandidateLevel | str | None = None,
        focus: list[str] | None = None,
    ) -> SessionData:
        """Overlay only the provided profile fields."""
        session = await self.get_session(session_id)
        state = session.state
        if mode is not None:
            state.mode = InterviewMode(mode)
        if target_role is not None:
            state.target_role = target_role
        if level is not None:
            state.level = CandidateLevel(level)
        if focus is not None:
            state.focus = dedupe_focus(focus)

        await self.set_session(session)
        return session

    async def append_message(self, session_id: str, role: TranscriptRole, content: str) -> None:
        session = await self.get_session(session_id)
        session.messages.append(TranscriptMessage(role=role, content=content))
        await self.set_session(session)

    async def set_last_question(self, session_id: str, text: str, rubric: str) -> None:
        """Record the outstanding question and add it to the transcript."""
        session = await self.get_session(session_id)
        asked_at = utcnow()
        session.state.turn = AwaitingAnswer(text=text, rubric=rubric, asked_at=asked_at)
        session.messages.append(
            TranscriptMessage(role=TranscriptRole.ASSISTANT, content=text, ts=asked_at)
        )
        await self.set_session(session)

    async def clear_last_question(self, session_id: str) -> None:
        session = await self.get_session(session_id)
        session.state.turn = Idle()
        await self.set_session(session)

    async def set_last_grade(self, session_id: str, grade: GradeResult) -> None:
        session = await self.get_session(session_id)
        session.last_grade = grade
        await self.set_session(session)

    async def update_after_grade(
        self,
        session_id: str,
        score: float,
        signal_delta: SignalDelta | None = None,
    ) -> SessionData:
        """Fold one graded answer into the signals and rolling stats."""
        session = await self.get_session(session_id)
        state = session.state

        last_scores, avg_score = compute_stats_after_grade(
            state.stats.last_scores, score, window=self.config.score_window
        )
        state.signals = apply_signal_updates(state.signals, signal_delta)
        state.stats = Stats(
            questions_answered=state.stats.questions_answered + 1,
            last_scores=last_scores,
            avg_score=avg_score,
        )

        await self.set_session(session)
        logger.debug(
            f"[SessionStore] Graded {session_id}: score={score}, "
            f"answered={state.stats.questions_answered}, avg={avg_score}"
        )
        return session

    async def reset(self, session_id: str) -> SessionData:
        """Replace the session with fresh defaults, ignoring its prior content."""
        fresh = self._new_session(session_id)
        await self.set_session(fresh)
        logger.info(f"[SessionStore] Reset session {session_id}")
        return fresh
