"""Domain service interfaces (ports).

These protocols define the contracts that infrastructure implementations
must satisfy.  The application layer depends on these abstractions,
not on concrete classes.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from municipal_assistant.domain.models import (
    FinalizedComplaint,
    KnowledgeSnapshot,
    Role,
    Session,
    Turn,
)

# ---------------------------------------------------------------------------
# Conversation state
# ---------------------------------------------------------------------------


@runtime_checkable
class ITurnHistoryStore(Protocol):
    """Interface for per-session bounded turn history.

    Implementations: InMemoryTurnHistoryStore.
    """

    def append(self, session_id: str, role: Role, content: str) -> Turn: ...

    def get(self, session_id: str) -> list[Turn]: ...

    def evict_oldest(self, session_id: str, keep: int) -> int: ...

    def drop(self, session_id: str) -> None: ...


@runtime_checkable
class ISessionRegistry(Protocol):
    """Interface for the session-id → session mapping.

    Implementations: SessionRegistry.
    """

    def get_or_create(self, session_id: str | None = None) -> Session: ...

    def get(self, session_id: str) -> Session | None: ...


# ---------------------------------------------------------------------------
# Knowledge
# ---------------------------------------------------------------------------


@runtime_checkable
class IKnowledgeRepository(Protocol):
    """Interface for reading the assistant's reference documents.

    Implementations: MongoKnowledgeRepository.
    """

    def fetch_services(self) -> Any: ...

    def fetch_complaint_types(self) -> Any: ...

    def fetch_complaint_process(self) -> Any: ...

    def fetch_snapshot(self) -> KnowledgeSnapshot: ...


# ---------------------------------------------------------------------------
# Complaints
# ---------------------------------------------------------------------------


@runtime_checkable
class IComplaintRepository(Protocol):
    """Interface for complaint persistence.

    Implementations: MongoComplaintRepository.
    """

    def save(self, complaint: FinalizedComplaint) -> str: ...

    def get_by_report_id(self, report_id: str) -> dict | None: ...

    def list_all(self) -> list[dict]: ...

    def list_by_user(self, user_id: str) -> list[dict]: ...

    def update_status(self, report_id: str, update: dict[str, Any]) -> dict | None: ...


# ---------------------------------------------------------------------------
# Text generation
# ---------------------------------------------------------------------------


@runtime_checkable
class ITextGenerator(Protocol):
    """Interface for the free-text generation service.

    Implementations: AgentTextGenerator (PydanticAI agent).
    """

    async def generate(self, prompt: str) -> str: ...


@runtime_checkable
class IKnowledgeWriter(Protocol):
    """Interface for seeding and extending the reference documents.

    Implementations: MongoKnowledgeRepository.
    """

    def save_document(self, doc_type: str, data: dict[str, Any]) -> str: ...

    def insert_entries(self, entries: list[dict[str, Any]]) -> list[str]: ...
