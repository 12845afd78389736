"""Complaint review use case — staff triage of stored complaints."""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger

from municipal_assistant.application.exceptions import (
    ComplaintNotFoundError,
    InvalidStatusError,
)
from municipal_assistant.domain.models import COMPLAINT_STATUSES, STATUS_REJECTED, utcnow_iso
from municipal_assistant.domain.protocols import IComplaintRepository


@dataclass
class Reviewer:
    admin_id: str
    admin_email: str


class ComplaintReviewUseCase:
    """Lists complaints and applies staff status decisions."""

    def __init__(self, repository: IComplaintRepository) -> None:
        self.repository = repository

    def list_complaints(self, user_id: str | None = None) -> list[dict]:
        """All complaints, or only *user_id*'s, newest first."""
        if user_id:
            return self.repository.list_by_user(user_id)
        return self.repository.list_all()

    def get_complaint(self, report_id: str) -> dict:
        complaint = self.repository.get_by_report_id(report_id)
        if complaint is None:
            raise ComplaintNotFoundError(f"Complaint {report_id} not found")
        return complaint

    def update_status(
        self,
        report_id: str,
        status: str,
        reviewer: Reviewer,
        reason: str | None = None,
    ) -> dict:
        """Set a new status and record who changed it.

        Raises:
            InvalidStatusError: *status* is not an allowed value.
            ComplaintNotFoundError: No complaint has *report_id*.
        """
        if status not in COMPLAINT_STATUSES:
            raise InvalidStatusError(
                f"Invalid status '{status}'. Allowed: {', '.join(COMPLAINT_STATUSES)}"
            )

        update: dict = {
            "status": status,
            "lastUpdatedBy": {
                "adminId": reviewer.admin_id,
                "adminEmail": reviewer.admin_email,
                "timestamp": utcnow_iso(),
            },
        }
        if status == STATUS_REJECTED and reason:
            update["rejectionReason"] = reason

        updated = self.repository.update_status(report_id, update)
        if updated is None:
            raise ComplaintNotFoundError(f"Complaint {report_id} not found")

        logger.info("Complaint {} set to '{}' by {}", report_id, status, reviewer.admin_id)
        return updated
