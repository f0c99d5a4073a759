"""In-memory store of drafting sessions"""

import asyncio
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from legal_contract_ai.services.session import DraftingSession

SessionFactory = Callable[[str], DraftingSession]


def default_session_factory(session_id: str) -> DraftingSession:
    """Session wired to the shared template store and credential store."""
    from legal_contract_ai.services.ai_service import AIService
    from legal_contract_ai.services.credentials import get_credential_store
    from legal_contract_ai.services.template_store import get_template_store

    ai = AIService(api_key_provider=get_credential_store().get)
    return DraftingSession(ai, get_template_store(), session_id)


class SessionEntry:
    """A session entry holding the drafting session and metadata"""

    def __init__(self, session: DraftingSession):
        self.session = session
        self.session_id = session.id
        self.created_at = datetime.now()
        self.last_active = datetime.now()

    def touch(self):
        self.last_active = datetime.now()


class SessionStore:
    """Sessions kept in memory with idle expiry and a size cap."""

    def __init__(
        self,
        ttl_minutes: int = 30,
        max_sessions: int = 1000,
        session_factory: Optional[SessionFactory] = None,
    ):
        self._sessions: dict[str, SessionEntry] = {}
        self._ttl = timedelta(minutes=ttl_minutes)
        self._max = max_sessions
        self._factory = session_factory or default_session_factory
        self._lock = asyncio.Lock()

    async def create(self) -> SessionEntry:
        """Start a new session at contract type selection"""
        async with self._lock:
            if len(self._sessions) >= self._max:
                self._evict_oldest()
            entry = SessionEntry(self._factory(str(uuid4())))
            self._sessions[entry.session_id] = entry
            return entry

    async def get(self, session_id: str) -> Optional[SessionEntry]:
        """Get session by ID, returns None if not found or expired"""
        async with self._lock:
            entry = self._sessions.get(session_id)
            if entry and (datetime.now() - entry.last_active) < self._ttl:
                entry.touch()
                return entry
            return None

    async def delete(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def evict_expired(self) -> int:
        """Remove idle sessions; sessions with a request in flight are kept"""
        async with self._lock:
            now = datetime.now()
            expired = [
                sid for sid, entry in self._sessions.items()
                if (now - entry.last_active) >= self._ttl and not entry.session.busy
            ]
            for sid in expired:
                del self._sessions[sid]
            return len(expired)

    def _evict_oldest(self):
        """Remove the oldest session to make room (called under lock)"""
        if not self._sessions:
            return
        oldest_id = min(self._sessions, key=lambda sid: self._sessions[sid].last_active)
        del self._sessions[oldest_id]

    @property
    def active_count(self) -> int:
        return len(self._sessions)
