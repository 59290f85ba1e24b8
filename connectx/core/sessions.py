"""Login session stores.

Sessions live apart from the entity store so either can be swapped without
touching the other. Records expire on their own schedule; `prune()` removes the
dead ones and `run_session_sweeper` calls it periodically.
"""

import asyncio
import logging
import secrets
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, NamedTuple, Optional

from sqlalchemy import Column, DateTime, Integer, String, delete
from sqlalchemy.orm import declarative_base

from connectx.database import make_engine, make_session_factory, utcnow

logger = logging.getLogger(__name__)


class SessionRecord(NamedTuple):
    sid: str
    user_id: int
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at


class SessionStore(ABC):
    """Interface every session backend implements."""

    @abstractmethod
    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        """Open a session for `user_id` lasting `ttl`."""

    @abstractmethod
    def get(self, sid: str) -> Optional[SessionRecord]:
        """Live session by id, or None if unknown or expired."""

    @abstractmethod
    def delete(self, sid: str) -> None:
        """Invalidate a session. Unknown ids are ignored."""

    @abstractmethod
    def prune(self, now: Optional[datetime] = None) -> int:
        """Remove expired sessions; returns how many were removed."""

    def close(self) -> None:
        pass

    @staticmethod
    def _new_record(user_id: int, ttl: timedelta) -> SessionRecord:
        now = utcnow()
        return SessionRecord(
            sid=secrets.token_urlsafe(32),
            user_id=user_id,
            created_at=now,
            expires_at=now + ttl,
        )


class MemorySessionStore(SessionStore):
    """Process-local session store."""

    def __init__(self):
        self._sessions: Dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        record = self._new_record(user_id, ttl)
        with self._lock:
            self._sessions[record.sid] = record
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        with self._lock:
            record = self._sessions.get(sid)
            if record is None:
                return None
            if record.is_expired():
                del self._sessions[sid]
                return None
            return record

    def delete(self, sid: str) -> None:
        with self._lock:
            self._sessions.pop(sid, None)

    def prune(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        with self._lock:
            expired = [sid for sid, rec in self._sessions.items() if rec.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# Own metadata so session tables never mix with entity tables
SessionBase = declarative_base()


class LoginSession(SessionBase):
    __tablename__ = "login_sessions"

    sid = Column(String(64), primary_key=True)
    user_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=False, index=True)


class SQLSessionStore(SessionStore):
    """Session store backed by its own database engine."""

    def __init__(self, url: str):
        self.engine = make_engine(url)
        self._session_factory = make_session_factory(self.engine)
        SessionBase.metadata.create_all(bind=self.engine)

    def create(self, user_id: int, ttl: timedelta) -> SessionRecord:
        record = self._new_record(user_id, ttl)
        with self._session_factory() as db:
            db.add(LoginSession(**record._asdict()))
            db.commit()
        return record

    def get(self, sid: str) -> Optional[SessionRecord]:
        with self._session_factory() as db:
            row = db.get(LoginSession, sid)
            if row is None:
                return None
            record = SessionRecord(row.sid, row.user_id, row.created_at, row.expires_at)
            if record.is_expired():
                db.delete(row)
                db.commit()
                return None
            return record

    def delete(self, sid: str) -> None:
        with self._session_factory() as db:
            db.execute(delete(LoginSession).where(LoginSession.sid == sid))
            db.commit()

    def prune(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        with self._session_factory() as db:
            result = db.execute(delete(LoginSession).where(LoginSession.expires_at <= now))
            db.commit()
            return result.rowcount or 0

    def close(self) -> None:
        self.engine.dispose()


def build_session_store(url: Optional[str]) -> SessionStore:
    """SQL-backed store when a URL is configured, in-memory otherwise."""
    if url:
        return SQLSessionStore(url)
    return MemorySessionStore()


async def run_session_sweeper(store: SessionStore, interval_seconds: float) -> None:
    """Prune expired sessions every `interval_seconds` until cancelled."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await asyncio.to_thread(store.prune)
        except Exception:
            logger.exception("[SESSION] Sweep failed")
            continue
        if removed:
            logger.info(f"[SESSION] Pruned {removed} expired session(s)")
