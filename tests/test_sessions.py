"""Unit tests for the session stores and the expiry sweeper."""

import asyncio
from datetime import timedelta

import pytest

from connectx.core.sessions import (
    MemorySessionStore,
    SQLSessionStore,
    build_session_store,
    run_session_sweeper,
)
from connectx.database import utcnow


@pytest.fixture(params=["memory", "sql"])
def store(request, tmp_path):
    if request.param == "memory":
        yield MemorySessionStore()
    else:
        sql_store = SQLSessionStore(f"sqlite:///{tmp_path / 'sessions.db'}")
        yield sql_store
        sql_store.close()


class TestSessionStore:
    """Behaviour shared by every backend."""

    def test_create_and_get(self, store):
        record = store.create(7, timedelta(hours=1))

        fetched = store.get(record.sid)
        assert fetched is not None
        assert fetched.user_id == 7
        assert fetched.expires_at > utcnow()

    def test_session_ids_are_unique(self, store):
        sids = {store.create(1, timedelta(hours=1)).sid for _ in range(20)}
        assert len(sids) == 20

    def test_delete_invalidates(self, store):
        record = store.create(7, timedelta(hours=1))
        store.delete(record.sid)
        assert store.get(record.sid) is None
        # deleting again is harmless
        store.delete(record.sid)

    def test_expired_session_not_returned(self, store):
        record = store.create(7, timedelta(seconds=-1))
        assert store.get(record.sid) is None

    def test_unknown_sid(self, store):
        assert store.get("does-not-exist") is None

    def test_prune_removes_only_expired(self, store):
        live = store.create(1, timedelta(hours=1))
        store.create(2, timedelta(seconds=-5))
        store.create(3, timedelta(seconds=-5))

        assert store.prune() == 2
        assert store.prune() == 0
        assert store.get(live.sid) is not None

    def test_prune_with_explicit_clock(self, store):
        record = store.create(1, timedelta(minutes=10))
        assert store.prune(now=utcnow() + timedelta(minutes=5)) == 0
        assert store.prune(now=utcnow() + timedelta(minutes=11)) == 1
        assert store.get(record.sid) is None


def test_build_session_store(tmp_path):
    assert isinstance(build_session_store(None), MemorySessionStore)
    sql_store = build_session_store(f"sqlite:///{tmp_path / 's.db'}")
    assert isinstance(sql_store, SQLSessionStore)
    sql_store.close()


def test_sweeper_prunes_periodically():
    store = MemorySessionStore()
    live = store.create(1, timedelta(hours=1))
    store.create(2, timedelta(seconds=-1))

    async def scenario():
        task = asyncio.create_task(run_session_sweeper(store, 0.01))
        await asyncio.sleep(0.2)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert len(store) == 1
    assert store.get(live.sid) is not None
