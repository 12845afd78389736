"""HTTP request/response schemas (Pydantic models) for the REST API.

The portal front-end speaks camelCase JSON; fields are declared in
snake_case and aliased.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class ChatRequest(CamelModel):
    """Request body for POST /chat.

    Identity fields are optional and come from the portal's signed-in user.
    """

    message: str = Field(min_length=1, description="The new user message")
    session_id: str | None = Field(
        default=None,
        description="Existing session to continue. None starts a new session.",
    )
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None


class ChatResponse(CamelModel):
    """Response body from POST /chat."""

    response: str = Field(description="Text to show (and speak) to the user")
    session_id: str = Field(description="The session ID (new or existing)")
    saved: bool = Field(default=False, description="Whether a complaint was stored this turn")
    report_id: str | None = Field(default=None, description="Report ID of the stored complaint")
    persisted_id: str | None = Field(default=None, description="Document store ID")
    error: str | None = Field(
        default=None, description="Set when a complaint was detected but could not be saved"
    )


class TurnResponse(BaseModel):
    role: str
    content: str
    timestamp: str


class SessionHistoryResponse(CamelModel):
    session_id: str
    turns: list[TurnResponse] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Complaints (staff console)
# ---------------------------------------------------------------------------


class ComplaintListResponse(BaseModel):
    complaints: list[dict[str, Any]] = Field(default_factory=list)
    count: int = 0


class ComplaintResponse(BaseModel):
    complaint: dict[str, Any]


class StatusUpdateRequest(BaseModel):
    """Request body for PUT /complaints/{report_id}/status."""

    status: str = Field(description="One of the allowed complaint statuses")
    reason: str | None = Field(default=None, description="Rejection reason (Rejected only)")


class StatusUpdateResponse(BaseModel):
    success: bool = True
    message: str
    complaint: dict[str, Any]


# ---------------------------------------------------------------------------
# Knowledge
# ---------------------------------------------------------------------------


class KnowledgeResponse(BaseModel):
    """The knowledge documents the assistant is grounded on."""

    services: Any = None
    complaint_types: Any = None
    complaint_process: Any = None


class KnowledgeInitRequest(BaseModel):
    """Request body for POST /knowledge/init: the three core documents."""

    services: dict[str, Any]
    complaint_types: dict[str, Any]
    complaint_process: dict[str, Any]


class KnowledgeInitResponse(BaseModel):
    success: bool = True
    message: str = "Knowledge base initialized successfully"
    ids: dict[str, str]


class KnowledgeSaveResponse(CamelModel):
    success: bool = True
    message: str
    inserted_ids: list[str]
    count: int
