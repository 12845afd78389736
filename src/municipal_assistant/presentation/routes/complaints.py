"""Complaint routes — listing, lookup and staff status updates."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from loguru import logger

from municipal_assistant.application.exceptions import (
    ComplaintNotFoundError,
    InvalidStatusError,
    PersistenceError,
)
from municipal_assistant.application.use_cases.complaint_review import (
    ComplaintReviewUseCase,
    Reviewer,
)
from municipal_assistant.presentation.infrastructure.auth import (
    AuthenticatedUser,
    get_current_user,
    require_admin,
)
from municipal_assistant.presentation.schemas import (
    ComplaintListResponse,
    ComplaintResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)

router = APIRouter(tags=["complaints"])


@router.get("/complaints", response_model=ComplaintListResponse)
async def list_complaints(
    raw_request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
    _current_user: AuthenticatedUser = Depends(get_current_user),
):
    """List complaints newest first, optionally only those of one user."""
    uc: ComplaintReviewUseCase = raw_request.app.state.review_uc
    complaints = uc.list_complaints(user_id)
    return ComplaintListResponse(complaints=complaints, count=len(complaints))


@router.get("/complaints/{report_id}", response_model=ComplaintResponse)
async def get_complaint(
    report_id: str,
    raw_request: Request,
    _current_user: AuthenticatedUser = Depends(get_current_user),
):
    uc: ComplaintReviewUseCase = raw_request.app.state.review_uc
    try:
        complaint = uc.get_complaint(report_id)
    except ComplaintNotFoundError:
        raise HTTPException(status_code=404, detail="Complaint not found")
    return ComplaintResponse(complaint=complaint)


@router.put("/complaints/{report_id}/status", response_model=StatusUpdateResponse)
async def update_complaint_status(
    report_id: str,
    request: StatusUpdateRequest,
    raw_request: Request,
    current_user: AuthenticatedUser = Depends(require_admin),
):
    """Approve, reject or progress a complaint.

    Restricted to administrators; the acting admin is recorded in
    ``lastUpdatedBy``.
    """
    uc: ComplaintReviewUseCase = raw_request.app.state.review_uc
    reviewer = Reviewer(admin_id=current_user.user_id, admin_email=current_user.email)

    try:
        complaint = uc.update_status(report_id, request.status, reviewer, request.reason)
    except InvalidStatusError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ComplaintNotFoundError:
        raise HTTPException(status_code=404, detail="Complaint not found")
    except PersistenceError:
        logger.exception("PUT /complaints/{}/status failed", report_id)
        raise HTTPException(status_code=500, detail="Failed to update complaint status")

    return StatusUpdateResponse(
        message=f"Complaint {request.status.lower()} successfully",
        complaint=complaint,
    )
