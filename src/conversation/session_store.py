"""
Keyed store for buyer intake sessions.

Sessions live in memory for the lifetime of the process. Each buyer address
gets its own asyncio.Lock so two messages from the same buyer are handled
one after the other, while different buyers never wait on each other.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Optional

from src.config import settings
from src.schemas.session_schema import SessionData

logger = logging.getLogger(__name__)


class SessionStore:
    """In-memory map of buyer address -> SessionData with per-key locking."""

    def __init__(self, idle_timeout_minutes: Optional[float] = None) -> None:
        self._sessions: dict[str, SessionData] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        if idle_timeout_minutes is None:
            idle_timeout_minutes = settings.session.idle_timeout_minutes
        self._idle_timeout = (
            timedelta(minutes=idle_timeout_minutes) if idle_timeout_minutes > 0 else None
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, address: str) -> bool:
        return address in self._sessions

    @asynccontextmanager
    async def lock(self, address: str) -> AsyncIterator[None]:
        """Serialize turns for a single buyer address.

        The lock is dropped once nobody holds or awaits it and the address
        has no live session, so finished conversations leave nothing behind.
        """
        lock = self._locks.setdefault(address, asyncio.Lock())
        self._lock_users[address] = self._lock_users.get(address, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[address] -= 1
            if self._lock_users[address] == 0:
                del self._lock_users[address]
                if address not in self._sessions:
                    self._locks.pop(address, None)

    @property
    def lock_count(self) -> int:
        return len(self._locks)

    def get(self, address: str) -> Optional[SessionData]:
        """Return the live session for an address, dropping it if it went idle."""
        session = self._sessions.get(address)
        if session is None:
            return None
        if self._is_expired(session):
            logger.info("Session for %s expired after inactivity", address)
            del self._sessions[address]
            self._release_lock(address)
            return None
        return session

    def create(self, address: str) -> SessionData:
        """Start a fresh session, replacing any existing one for the address."""
        if address in self._sessions:
            logger.debug("Overwriting existing session for %s", address)
        session = SessionData(address=address)
        self._sessions[address] = session
        return session

    def delete(self, address: str) -> bool:
        """Destroy a session. Returns True if one existed."""
        existed = self._sessions.pop(address, None) is not None
        self._release_lock(address)
        return existed

    def purge_idle(self) -> int:
        """Drop every idle session and its lock. Returns how many were removed."""
        expired = [a for a, s in self._sessions.items() if self._is_expired(s)]
        for address in expired:
            del self._sessions[address]
            self._release_lock(address)
        if expired:
            logger.info("Purged %d idle sessions", len(expired))
        return len(expired)

    def _release_lock(self, address: str) -> None:
        # A lock still in use is dropped by lock() when its last user leaves.
        if address not in self._lock_users:
            self._locks.pop(address, None)

    def _is_expired(self, session: SessionData) -> bool:
        if self._idle_timeout is None:
            return False
        return datetime.now(timezone.utc) - session.touched_at > self._idle_timeout
