"""In-memory, per-session bounded turn history.

Each session keeps only its most recent ``limit`` turns; older turns are
dropped oldest-first after every append. State lives for the lifetime of
the store instance, which is owned by the application lifespan.
"""

from __future__ import annotations

from loguru import logger

from municipal_assistant.domain.models import Role, Turn, utcnow_iso

DEFAULT_HISTORY_LIMIT = 10


class InMemoryTurnHistoryStore:
    """Ordered turn log keyed by session ID."""

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._turns: dict[str, list[Turn]] = {}

    def append(self, session_id: str, role: Role, content: str) -> Turn:
        """Add a turn stamped with the current time, creating the session's log if needed."""
        turn = Turn(role=role, content=content, timestamp=utcnow_iso())
        self._turns.setdefault(session_id, []).append(turn)
        self.evict_oldest(session_id, self.limit)
        return turn

    def get(self, session_id: str) -> list[Turn]:
        """Return the session's turns, oldest first (a copy; empty if unknown)."""
        return list(self._turns.get(session_id, ()))

    def evict_oldest(self, session_id: str, keep: int) -> int:
        """Trim from the front so at most *keep* turns remain. Returns the number dropped."""
        turns = self._turns.get(session_id)
        if not turns or len(turns) <= keep:
            return 0
        dropped = len(turns) - keep
        del turns[:dropped]
        logger.debug("Trimmed {} turn(s) from session {}", dropped, session_id)
        return dropped

    def drop(self, session_id: str) -> None:
        self._turns.pop(session_id, None)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._turns

    def __len__(self) -> int:
        return len(self._turns)
