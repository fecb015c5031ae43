"""Database models for the Interview Coach backend."""

from interview_coach.models.base import Base, get_db, init_db, AsyncSessionLocal
from interview_coach.models.session_record import SessionRecord

__all__ = [
    "Base",
    "get_db",
    "init_db",
    "AsyncSessionLocal",
    "SessionRecord",
]
