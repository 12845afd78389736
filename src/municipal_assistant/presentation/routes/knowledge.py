"""Knowledge routes — the assistant's reference documents.

Reads are public; seeding and uploads are restricted to administrators.
"""

from __future__ import annotations

from typing import Any, Literal

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from loguru import logger

from municipal_assistant.application.exceptions import (
    InvalidKnowledgeEntryError,
    KnowledgeUnavailableError,
    PersistenceError,
)
from municipal_assistant.application.use_cases.knowledge_admin import KnowledgeAdminUseCase
from municipal_assistant.domain.protocols import IKnowledgeRepository
from municipal_assistant.presentation.infrastructure.auth import AuthenticatedUser, require_admin
from municipal_assistant.presentation.schemas import (
    KnowledgeInitRequest,
    KnowledgeInitResponse,
    KnowledgeResponse,
    KnowledgeSaveResponse,
)

router = APIRouter(tags=["knowledge"])


@router.get("/knowledge", response_model=KnowledgeResponse, response_model_exclude_none=True)
async def get_knowledge(
    raw_request: Request,
    doc_type: Literal["services", "complaint_types", "complaint_process"] | None = Query(
        default=None, alias="type"
    ),
):
    """Return one knowledge document (``?type=``) or all three."""
    knowledge: IKnowledgeRepository = raw_request.app.state.knowledge

    try:
        if doc_type == "services":
            return KnowledgeResponse(services=knowledge.fetch_services())
        if doc_type == "complaint_types":
            return KnowledgeResponse(complaint_types=knowledge.fetch_complaint_types())
        if doc_type == "complaint_process":
            return KnowledgeResponse(complaint_process=knowledge.fetch_complaint_process())
    except KnowledgeUnavailableError as exc:
        logger.error("GET /knowledge | {}", exc)
        raise HTTPException(status_code=503, detail="Knowledge base not available")

    snapshot = knowledge.fetch_snapshot()
    return KnowledgeResponse(
        services=snapshot.services,
        complaint_types=snapshot.complaint_types,
        complaint_process=snapshot.complaint_process,
    )


@router.post("/knowledge/init", response_model=KnowledgeInitResponse)
async def init_knowledge(
    request: KnowledgeInitRequest,
    raw_request: Request,
    _admin: AuthenticatedUser = Depends(require_admin),
):
    """Create or replace the services, complaint types and process documents."""
    uc: KnowledgeAdminUseCase = raw_request.app.state.knowledge_admin_uc
    try:
        ids = uc.initialize(request.services, request.complaint_types, request.complaint_process)
    except PersistenceError:
        logger.exception("POST /knowledge/init failed")
        raise HTTPException(status_code=500, detail="Failed to initialize knowledge base")
    return KnowledgeInitResponse(ids=ids)


@router.post("/knowledge/save", response_model=KnowledgeSaveResponse)
async def save_knowledge_entries(
    raw_request: Request,
    entries: list[dict[str, Any]] = Body(...),
    admin: AuthenticatedUser = Depends(require_admin),
):
    """Add uploaded services (``service_name``, ``category``, ``description`` required)."""
    uc: KnowledgeAdminUseCase = raw_request.app.state.knowledge_admin_uc
    try:
        inserted = uc.add_entries(entries, created_by=admin.email or admin.user_id)
    except InvalidKnowledgeEntryError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except PersistenceError:
        logger.exception("POST /knowledge/save failed")
        raise HTTPException(status_code=500, detail="Failed to save knowledge entries")

    return KnowledgeSaveResponse(
        message=f"Successfully saved {len(inserted)} knowledge entries",
        inserted_ids=inserted,
        count=len(inserted),
    )
