"""Tests for ComplaintFinalizer — report IDs, identity merge and persistence."""

from __future__ import annotations

import re
from unittest.mock import MagicMock

from municipal_assistant.application.exceptions import PersistenceError
from municipal_assistant.application.finalizer import (
    ComplaintFinalizer,
    FinalizationResult,
    generate_report_id,
)
from municipal_assistant.domain.models import (
    STATUS_PENDING_APPROVAL,
    UNKNOWN_USER_EMAIL,
    UNKNOWN_USER_ID,
    UNKNOWN_USER_NAME,
    CallerIdentity,
    CandidateRecord,
    Turn,
)

REPORT_ID_PATTERN = re.compile(r"CMP\d+[A-Z0-9]{6}")

HISTORY = [
    Turn(role="user", content="पानी नहीं आ रहा", timestamp="2026-01-15T10:00:00.000Z"),
    Turn(role="assistant", content="आपका pincode?", timestamp="2026-01-15T10:00:05.000Z"),
]


def _candidate(**complainant) -> CandidateRecord:
    return CandidateRecord(
        {
            "complaint_type": "WATER",
            "description": "no water for 3 days",
            "complaint_location": {"pincode": "452001"},
            "complainant": complainant,
        }
    )


class TestReportId:
    def test_format(self):
        assert REPORT_ID_PATTERN.fullmatch(generate_report_id())

    def test_distinct_ids_without_caller_identity(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        first = finalizer.finalize(_candidate(first_name="Ravi"), "s1", CallerIdentity(), HISTORY)
        second = finalizer.finalize(_candidate(first_name="Sita"), "s1", CallerIdentity(), HISTORY)

        assert REPORT_ID_PATTERN.fullmatch(first.report_id)
        assert REPORT_ID_PATTERN.fullmatch(second.report_id)
        assert first.report_id != second.report_id


class TestIdentityMerge:
    def test_caller_identity_preferred(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        caller = CallerIdentity(user_id="u-1", user_name="Portal User", user_email="p@example.in")
        complaint = finalizer.finalize(
            _candidate(first_name="Ravi", last_name="Kumar", email="ravi@example.in"),
            "s1",
            caller,
            HISTORY,
        )
        assert complaint.user_id == "u-1"
        assert complaint.user_name == "Portal User"
        assert complaint.user_email == "p@example.in"

    def test_falls_back_to_embedded_complainant(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        complaint = finalizer.finalize(
            _candidate(first_name="Ravi", last_name="Kumar", email="ravi@example.in"),
            "s1",
            CallerIdentity(),
            HISTORY,
        )
        assert complaint.user_name == "Ravi Kumar"
        assert complaint.user_email == "ravi@example.in"
        assert complaint.user_id == UNKNOWN_USER_ID

    def test_placeholders_when_nothing_known(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        complaint = finalizer.finalize(CandidateRecord({"a": 1}), "s1", CallerIdentity(), [])
        assert complaint.user_id == UNKNOWN_USER_ID
        assert complaint.user_name == UNKNOWN_USER_NAME
        assert complaint.user_email == UNKNOWN_USER_EMAIL

    def test_odd_shaped_complainant_is_tolerated(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        complaint = finalizer.finalize(
            CandidateRecord({"complainant": "Ravi"}), "s1", CallerIdentity(), []
        )
        assert complaint.user_name == UNKNOWN_USER_NAME


class TestFinalizedShape:
    def test_status_history_and_record(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        complaint = finalizer.finalize(_candidate(first_name="Ravi"), "sess-9", CallerIdentity(), HISTORY)

        assert complaint.status == STATUS_PENDING_APPROVAL
        assert complaint.session_id == "sess-9"
        assert complaint.conversation_history == HISTORY
        assert complaint.record["complaint_type"] == "WATER"

    def test_document_metadata_wins_over_record(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        candidate = CandidateRecord({"status": "Approved", "reportId": "FAKE", "description": "x"})
        doc = finalizer.finalize(candidate, "s1", CallerIdentity(), HISTORY).to_document()

        assert doc["status"] == STATUS_PENDING_APPROVAL
        assert doc["reportId"] != "FAKE"
        assert doc["description"] == "x"
        assert doc["conversationHistory"][0] == {
            "role": "user",
            "content": "पानी नहीं आ रहा",
            "timestamp": "2026-01-15T10:00:00.000Z",
        }


class TestSubmit:
    def test_persists_and_returns_store_id(self, complaint_repo: MagicMock):
        finalizer = ComplaintFinalizer(complaint_repo)
        result = finalizer.submit(_candidate(first_name="Ravi"), "s1", CallerIdentity(), HISTORY)

        assert isinstance(result, FinalizationResult)
        assert result.saved is True
        assert result.persisted_id == "665f1c2ab1e4a7d9c0ffee01"
        saved_complaint = complaint_repo.save.call_args[0][0]
        assert saved_complaint.report_id == result.report_id

    def test_persistence_failure_yields_none(self, complaint_repo: MagicMock):
        complaint_repo.save.side_effect = PersistenceError("write concern failed")
        finalizer = ComplaintFinalizer(complaint_repo)
        result = finalizer.submit(_candidate(first_name="Ravi"), "s1", CallerIdentity(), HISTORY)

        assert result.persisted_id is None
        assert result.saved is False
        assert REPORT_ID_PATTERN.fullmatch(result.report_id)
