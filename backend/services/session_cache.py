"""
Process-wide cache of authenticated sessions, keyed by session token.

Entries expire after a fixed TTL and are dropped explicitly on sign-out so a
logged-out token is never served from memory.
"""
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, Optional

from config import SESSION_CACHE_TTL_SECONDS
from models.user import User


@dataclass
class Session:
    """The authenticated caller, passed explicitly to handlers and services"""
    token: str
    user: User
    expires_at: datetime

    @property
    def user_id(self) -> str:
        return self.user.user_id


@dataclass
class _Entry:
    session: Session
    cached_at: float = field(default_factory=time.monotonic)


class SessionCache:
    def __init__(self, ttl_seconds: float = SESSION_CACHE_TTL_SECONDS,
                 clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, _Entry] = {}

    def _expired(self, entry: _Entry, now: float) -> bool:
        return now - entry.cached_at > self.ttl_seconds

    def get(self, token: str) -> Optional[Session]:
        entry = self._entries.get(token)
        if entry is None:
            return None
        if self._expired(entry, self.clock()):
            del self._entries[token]
            return None
        return entry.session

    def put(self, session: Session):
        now = self.clock()
        self.prune(now)
        self._entries[session.token] = _Entry(session, now)

    def prune(self, now: Optional[float] = None) -> int:
        """Drop expired entries, including tokens never presented again"""
        now = self.clock() if now is None else now
        stale = [t for t, e in self._entries.items() if self._expired(e, now)]
        for token in stale:
            del self._entries[token]
        return len(stale)

    def invalidate(self, token: str):
        self._entries.pop(token, None)

    def invalidate_user(self, user_id: str):
        """Drop every cached session of a user, e.g. after a role change"""
        for token in [t for t, e in self._entries.items() if e.session.user_id == user_id]:
            del self._entries[token]

    def clear(self):
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


session_cache = SessionCache()


def get_session_cache() -> SessionCache:
    return session_cache
