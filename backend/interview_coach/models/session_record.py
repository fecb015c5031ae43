"""Session record model: one JSON document per interview session."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from interview_coach.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionRecord(Base):
    """
    Durable storage row for a single interview session.

    The whole session (profile, coaching signals, stats, transcript and last
    grade) is stored as one JSON blob keyed by the session identifier. The
    row is always replaced as a whole, never merged field by field.

    Attributes:
        id: The session identifier (opaque string chosen by the client)
        data: Serialized SessionData document
        created_at: When the session was first stored
        updated_at: When the session was last written
    """

    __tablename__ = "interview_sessions"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<SessionRecord(id='{self.id}')>"
