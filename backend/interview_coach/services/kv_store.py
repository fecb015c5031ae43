"""Key-value persistence for session documents.

The session store only depends on the narrow ``KeyValueStore`` interface
(``get``/``put`` of one JSON document per key). Two implementations:

- ``InMemoryKeyValueStore``: process-local dict, used in tests and demos
- ``SqlKeyValueStore``: SQLAlchemy-backed, one ``interview_sessions`` row per key

Usage:
    store = SqlKeyValueStore(db)
    await store.put("session-123", {"state": {...}, "messages": []})
    doc = await store.get("session-123")
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from interview_coach.models.session_record import SessionRecord

logger = logging.getLogger(__name__)

Document = dict[str, Any]


class SessionStoreError(RuntimeError):
    """The durable store failed to read or write a session document."""


class KeyValueStore(ABC):
    """Durable storage of one JSON document per key."""

    @abstractmethod
    async def get(self, key: str) -> Document | None:
        """Return the stored document, or None if the key was never written."""
        pass

    @abstractmethod
    async def put(self, key: str, value: Document) -> None:
        """Replace the document stored under ``key``."""
        pass


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Documents are copied in and out."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}

    async def get(self, key: str) -> Document | None:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    async def put(self, key: str, value: Document) -> None:
        self._documents[key] = copy.deepcopy(value)

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, key: object) -> bool:
        return key in self._documents


class SqlKeyValueStore(KeyValueStore):
    """
    Store backed by the ``interview_sessions`` table.

    Writes are flushed but not committed; the request-scoped session
    dependency commits once the request succeeds.
    """

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize the store.

        Args:
            db: SQLAlchemy async session
        """
        self.db = db

    async def get(self, key: str) -> Document | None:
        try:
            record = await self.db.get(SessionRecord, key)
        except SQLAlchemyError as e:
            logger.error(f"[SqlKeyValueStore] Failed to load {key}: {e}")
            raise SessionStoreError(f"Failed to load session {key}") from e
        if record is None:
            return None
        return copy.deepcopy(record.data)

    async def put(self, key: str, value: Document) -> None:
        data = copy.deepcopy(value)
        try:
            record = await self.db.get(SessionRecord, key)
            if record is None:
                self.db.add(SessionRecord(id=key, data=data))
                logger.debug(f"[SqlKeyValueStore] Created session: {key}")
            else:
                # Reassign so the JSON column is marked dirty
                record.data = data
                logger.debug(f"[SqlKeyValueStore] Updated session: {key}")
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error(f"[SqlKeyValueStore] Failed to store {key}: {e}")
            raise SessionStoreError(f"Failed to store session {key}") from e
