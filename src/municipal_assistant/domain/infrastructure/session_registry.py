"""Process-lifetime registry of conversation sessions.

Sessions are created on first message and never persisted. Sessions that
stay idle longer than ``idle_ttl`` are swept on the next ``get_or_create``
call and their turn history is dropped.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from loguru import logger

from municipal_assistant.domain.models import Session
from municipal_assistant.domain.protocols import ITurnHistoryStore


def _utcnow() -> datetime:
    return datetime.now(UTC)


def synthesize_session_id() -> str:
    """Session ID for callers that did not supply one."""
    return f"default_{int(time.time() * 1000)}"


class SessionRegistry:
    """Maps session IDs to sessions and owns their idle eviction.

    Parameters
    ----------
    history:
        Turn store whose entries are dropped together with an evicted session.
    idle_ttl:
        Idle time after which a session is evicted. ``None`` disables eviction.
    clock:
        Source of the current time (injectable for tests).
    """

    def __init__(
        self,
        history: ITurnHistoryStore,
        idle_ttl: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.history = history
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def get_or_create(self, session_id: str | None = None) -> Session:
        """Return the existing session or register a new one.

        If *session_id* is empty, a new ID is synthesized from the current time.
        """
        now = self._clock()
        self.sweep_idle(now)

        sid = session_id or synthesize_session_id()
        session = self._sessions.get(sid)
        if session is None:
            session = Session(id=sid, created_at=now, last_seen_at=now)
            self._sessions[sid] = session
            logger.info("Created new session {}", sid)
        else:
            session.last_seen_at = now
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def sweep_idle(self, now: datetime | None = None) -> list[str]:
        """Evict sessions idle longer than the TTL. Returns the evicted IDs."""
        if self.idle_ttl is None:
            return []
        cutoff = (now or self._clock()) - self.idle_ttl
        expired = [sid for sid, s in self._sessions.items() if s.last_seen_at < cutoff]
        for sid in expired:
            del self._sessions[sid]
            self.history.drop(sid)
        if expired:
            logger.info("Evicted {} idle session(s)", len(expired))
        return expired

    def __len__(self) -> int:
        return len(self._sessions)
