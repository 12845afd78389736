"""Knowledge admin use case — seeding and extending the reference documents."""

from __future__ import annotations

from typing import Any

from municipal_assistant.application.exceptions import InvalidKnowledgeEntryError
from municipal_assistant.domain.models import (
    COMPLAINT_PROCESS_DOC,
    COMPLAINT_TYPES_DOC,
    SERVICES_DOC,
    utcnow_iso,
)
from municipal_assistant.domain.protocols import IKnowledgeWriter

REQUIRED_ENTRY_FIELDS = ("service_name", "category", "description")


class KnowledgeAdminUseCase:
    def __init__(self, repository: IKnowledgeWriter) -> None:
        self.repository = repository

    def initialize(
        self,
        services: dict[str, Any],
        complaint_types: dict[str, Any],
        complaint_process: dict[str, Any],
    ) -> dict[str, str]:
        """Upsert the three core documents; returns their IDs by type."""
        return {
            SERVICES_DOC: self.repository.save_document(SERVICES_DOC, services),
            COMPLAINT_TYPES_DOC: self.repository.save_document(COMPLAINT_TYPES_DOC, complaint_types),
            COMPLAINT_PROCESS_DOC: self.repository.save_document(
                COMPLAINT_PROCESS_DOC, complaint_process
            ),
        }

    def add_entries(self, entries: list[dict[str, Any]], created_by: str) -> list[str]:
        """Validate and store uploaded service entries.

        Raises:
            InvalidKnowledgeEntryError: An entry is missing a required field;
                nothing is stored in that case.
        """
        for position, entry in enumerate(entries):
            missing = [f for f in REQUIRED_ENTRY_FIELDS if not entry.get(f)]
            if missing:
                raise InvalidKnowledgeEntryError(
                    f"Entry {position} is missing required fields: {', '.join(missing)}"
                )

        now = utcnow_iso()
        enriched = [
            {
                **entry,
                "created_at": now,
                "updated_at": now,
                "created_by": created_by,
                "source": "file_upload",
                "status": "active",
            }
            for entry in entries
        ]
        return self.repository.insert_entries(enriched)
