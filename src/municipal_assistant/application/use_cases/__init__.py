"""Use cases — framework-independent business logic."""

from municipal_assistant.application.use_cases.complaint_chat import (
    ChatTurnRequest,
    ChatTurnResult,
    ComplaintChatUseCase,
)

__all__ = ["ChatTurnRequest", "ChatTurnResult", "ComplaintChatUseCase"]
