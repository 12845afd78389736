"""Chat routes — health, message submission and session history."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from loguru import logger

from municipal_assistant.application.exceptions import (
    EmptyMessageError,
    GenerationError,
    KnowledgeUnavailableError,
)
from municipal_assistant.application.use_cases.complaint_chat import (
    ChatTurnRequest,
    ChatTurnResult,
    ComplaintChatUseCase,
)
from municipal_assistant.domain.protocols import ISessionRegistry, ITurnHistoryStore
from municipal_assistant.presentation.infrastructure.auth import (
    AuthenticatedUser,
    get_current_user,
)
from municipal_assistant.presentation.schemas import (
    ChatRequest,
    ChatResponse,
    SessionHistoryResponse,
    TurnResponse,
)

router = APIRouter(tags=["chat"])


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health")
async def health():
    """Simple liveness / readiness check."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(request: ChatRequest, raw_request: Request):
    """Send a message to the assistant.

    Send ``sessionId=null`` to start a new conversation, or pass the
    returned ID to continue one.  When the assistant completes a complaint
    the response carries ``saved=true`` and the ``reportId``.
    """
    uc: ComplaintChatUseCase = raw_request.app.state.chat_uc

    logger.info(
        "POST /chat | session={} user={} msg={}",
        request.session_id,
        request.user_id,
        request.message[:60],
    )

    try:
        result: ChatTurnResult = await uc.execute(
            ChatTurnRequest(
                message=request.message,
                session_id=request.session_id,
                user_id=request.user_id,
                user_email=request.user_email,
                user_name=request.user_name,
            )
        )
    except EmptyMessageError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except KnowledgeUnavailableError as exc:
        logger.error("POST /chat | {}", exc)
        raise HTTPException(status_code=503, detail="Knowledge base not available")
    except GenerationError:
        logger.exception("POST /chat | generation failed")
        raise HTTPException(status_code=502, detail="AI processing failed")

    return ChatResponse(
        response=result.response,
        session_id=result.session_id,
        saved=result.saved,
        report_id=result.report_id,
        persisted_id=result.persisted_id,
        error=result.error,
    )


# ---------------------------------------------------------------------------
# Session history
# ---------------------------------------------------------------------------


@router.get("/sessions/{session_id}/history", response_model=SessionHistoryResponse)
async def get_session_history(
    session_id: str,
    raw_request: Request,
    _current_user: AuthenticatedUser = Depends(get_current_user),
):
    """Return the retained turns of a live session, oldest first."""
    sessions: ISessionRegistry = raw_request.app.state.sessions
    history: ITurnHistoryStore = raw_request.app.state.history

    if sessions.get(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionHistoryResponse(
        session_id=session_id,
        turns=[
            TurnResponse(role=t.role, content=t.content, timestamp=t.timestamp)
            for t in history.get(session_id)
        ],
    )
