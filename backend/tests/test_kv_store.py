"""
Tests for the key-value stores backing session persistence.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from interview_coach.models.session_record import SessionRecord
from interview_coach.services.kv_store import (
    InMemoryKeyValueStore,
    SessionStoreError,
    SqlKeyValueStore,
)


# =============================================================================
# In-Memory Store
# =============================================================================

class TestInMemoryKeyValueStore:
    """Tests for the dict-backed store."""

    @pytest.mark.unit
    async def test_get_missing_key(self):
        assert await InMemoryKeyValueStore().get("session:v1:none") is None

    @pytest.mark.unit
    async def test_put_then_get(self):
        store = InMemoryKeyValueStore()
        await store.put("k", {"state": {"sessionId": "k"}})

        assert await store.get("k") == {"state": {"sessionId": "k"}}
        assert "k" in store
        assert len(store) == 1

    @pytest.mark.unit
    async def test_documents_are_copied(self):
        """Mutating a returned or written document does not leak into the store."""
        store = InMemoryKeyValueStore()
        document = {"messages": []}
        await store.put("k", document)
        document["messages"].append("written later")

        loaded = await store.get("k")
        loaded["messages"].append("mutated after read")

        assert await store.get("k") == {"messages": []}


# =============================================================================
# SQL Store
# =============================================================================

class TestSqlKeyValueStore:
    """Tests for the SQLAlchemy-backed store."""

    @pytest.mark.unit
    async def test_put_creates_row(self, db):
        store = SqlKeyValueStore(db)
        await store.put("session:v1:abc", {"state": {"sessionId": "abc"}, "messages": []})

        rows = (await db.execute(select(SessionRecord))).scalars().all()
        assert len(rows) == 1
        assert rows[0].id == "session:v1:abc"
        assert rows[0].data["state"]["sessionId"] == "abc"

    @pytest.mark.unit
    async def test_put_replaces_whole_document(self, db):
        store = SqlKeyValueStore(db)
        await store.put("k", {"a": 1, "b": 2})
        await store.put("k", {"a": 3})

        assert await store.get("k") == {"a": 3}
        rows = (await db.execute(select(SessionRecord))).scalars().all()
        assert len(rows) == 1

    @pytest.mark.unit
    async def test_get_missing_key(self, db):
        assert await SqlKeyValueStore(db).get("missing") is None

    @pytest.mark.unit
    async def test_read_failure_raises_store_error(self):
        db = AsyncMock()
        db.get.side_effect = OperationalError("SELECT", {}, Exception("disk I/O error"))

        with pytest.raises(SessionStoreError, match="Failed to load"):
            await SqlKeyValueStore(db).get("k")

    @pytest.mark.unit
    async def test_write_failure_raises_store_error(self):
        db = AsyncMock()
        db.get.return_value = None
        db.add = MagicMock()
        db.flush.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

        with pytest.raises(SessionStoreError, match="Failed to store"):
            await SqlKeyValueStore(db).put("k", {"a": 1})
