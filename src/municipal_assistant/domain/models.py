"""Domain entities and value objects.

These are the core data structures of the complaint assistant domain,
independent of any infrastructure or framework concerns.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

Role = Literal["user", "assistant"]

# ---------------------------------------------------------------------------
# Complaint lifecycle
# ---------------------------------------------------------------------------

STATUS_PENDING_APPROVAL = "Pending Approval"
STATUS_REJECTED = "Rejected"

COMPLAINT_STATUSES = (
    STATUS_PENDING_APPROVAL,
    "Approved",
    STATUS_REJECTED,
    "In Progress",
    "Completed",
    "Closed",
)

UNKNOWN_USER_ID = "Unknown User ID"
UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_USER_EMAIL = "Unknown Email"

# Knowledge document types (the ``type`` field of stored documents)
SERVICES_DOC = "services"
COMPLAINT_TYPES_DOC = "complaint_types"
COMPLAINT_PROCESS_DOC = "complaint_process"
INDIVIDUAL_SERVICE_DOC = "individual_service"


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---------------------------------------------------------------------------
# Conversation entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Turn:
    """One message in a session's history. Immutable once appended."""

    role: Role
    content: str
    timestamp: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp}


@dataclass
class Session:
    id: str
    created_at: datetime
    last_seen_at: datetime


# ---------------------------------------------------------------------------
# Knowledge
# ---------------------------------------------------------------------------


@dataclass
class KnowledgeSnapshot:
    """The three reference documents used to ground a response.

    Each document is arbitrary JSON and treated opaquely.
    """

    services: Any = None
    complaint_types: Any = None
    complaint_process: Any = None

    def missing(self) -> list[str]:
        """Names of the documents that could not be loaded."""
        return [
            name
            for name in ("services", "complaint_types", "complaint_process")
            if not getattr(self, name)
        ]


# ---------------------------------------------------------------------------
# Complaint records
# ---------------------------------------------------------------------------


class CandidateRecord:
    """A parsed-but-unvalidated complaint payload.

    Wraps whatever JSON object the assistant emitted. Accessors apply
    defaults rather than failing on a missing or oddly-shaped field,
    since the generator's output shape is not contractually guaranteed.
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = dict(data)

    @property
    def data(self) -> dict[str, Any]:
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def section(self, key: str) -> dict[str, Any]:
        """Return a nested object, or an empty dict when absent or not an object."""
        value = self._data.get(key)
        return value if isinstance(value, dict) else {}

    def text(self, key: str, default: str = "") -> str:
        value = self._data.get(key)
        return _as_text(value, default)

    @property
    def complaint_type(self) -> str:
        return self.text("complaint_type")

    @property
    def description(self) -> str:
        return self.text("description")

    @property
    def location(self) -> dict[str, Any]:
        return self.section("complaint_location")

    @property
    def complainant(self) -> dict[str, Any]:
        return self.section("complainant")

    def complainant_field(self, key: str, default: str = "") -> str:
        return _as_text(self.complainant.get(key), default)

    @property
    def complainant_name(self) -> str:
        """``first_name last_name`` from the embedded complainant, empty if neither is set."""
        parts = [self.complainant_field("first_name"), self.complainant_field("last_name")]
        return " ".join(p for p in parts if p)

    @property
    def complainant_email(self) -> str:
        return self.complainant_field("email")

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CandidateRecord):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"CandidateRecord({self._data!r})"


def _as_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


@dataclass
class CallerIdentity:
    """Identity fields supplied by the portal alongside a message."""

    user_id: str | None = None
    user_name: str | None = None
    user_email: str | None = None


@dataclass
class FinalizedComplaint:
    """A candidate record enriched with identifiers, identity, status and audit history."""

    report_id: str
    session_id: str
    user_id: str
    user_name: str
    user_email: str
    timestamp: str
    status: str
    conversation_history: list[Turn]
    record: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Flatten into the stored document shape.

        Metadata keys take precedence over same-named keys in the record.
        """
        return {
            **self.record,
            "reportId": self.report_id,
            "sessionId": self.session_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "userEmail": self.user_email,
            "timestamp": self.timestamp,
            "status": self.status,
            "conversationHistory": [t.to_dict() for t in self.conversation_history],
        }
