"""Turns an extracted candidate record into a stored complaint."""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Sequence
from dataclasses import dataclass

from loguru import logger

from municipal_assistant.application.exceptions import PersistenceError
from municipal_assistant.domain.models import (
    STATUS_PENDING_APPROVAL,
    UNKNOWN_USER_EMAIL,
    UNKNOWN_USER_ID,
    UNKNOWN_USER_NAME,
    CallerIdentity,
    CandidateRecord,
    FinalizedComplaint,
    Turn,
    utcnow_iso,
)
from municipal_assistant.domain.protocols import IComplaintRepository

REPORT_ID_PREFIX = "CMP"
_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
_SUFFIX_LENGTH = 6


def generate_report_id() -> str:
    """``CMP`` + epoch milliseconds + 6 random uppercase alphanumerics.

    Uniqueness is best-effort: there is no collision check.
    """
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{REPORT_ID_PREFIX}{millis}{suffix}"


@dataclass
class FinalizationResult:
    complaint: FinalizedComplaint
    persisted_id: str | None

    @property
    def report_id(self) -> str:
        return self.complaint.report_id

    @property
    def saved(self) -> bool:
        return self.persisted_id is not None


class ComplaintFinalizer:
    """Enriches candidate records and hands them to the complaint store.

    Parameters
    ----------
    repository:
        Complaint persistence collaborator.
    """

    def __init__(self, repository: IComplaintRepository) -> None:
        self.repository = repository

    def finalize(
        self,
        candidate: CandidateRecord,
        session_id: str,
        caller: CallerIdentity,
        history: Sequence[Turn],
    ) -> FinalizedComplaint:
        """Attach report ID, identity, status and audit trail to *candidate*.

        Caller-supplied identity wins over identity embedded in the record;
        when both are absent a placeholder is used so identity fields are
        never empty.
        """
        return FinalizedComplaint(
            report_id=generate_report_id(),
            session_id=session_id,
            user_id=caller.user_id or candidate.text("userId") or UNKNOWN_USER_ID,
            user_name=caller.user_name or candidate.complainant_name or UNKNOWN_USER_NAME,
            user_email=caller.user_email or candidate.complainant_email or UNKNOWN_USER_EMAIL,
            timestamp=utcnow_iso(),
            status=STATUS_PENDING_APPROVAL,
            conversation_history=list(history),
            record=candidate.data,
        )

    def submit(
        self,
        candidate: CandidateRecord,
        session_id: str,
        caller: CallerIdentity,
        history: Sequence[Turn],
    ) -> FinalizationResult:
        """Finalize *candidate* and persist it.

        A store failure is logged and reported as ``persisted_id=None``.
        """
        complaint = self.finalize(candidate, session_id, caller, history)
        try:
            persisted_id = self.repository.save(complaint)
        except PersistenceError:
            logger.exception(
                "Failed to persist complaint {} | session={} | record={}",
                complaint.report_id,
                session_id,
                candidate.data,
            )
            persisted_id = None
        return FinalizationResult(complaint=complaint, persisted_id=persisted_id)
