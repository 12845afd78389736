"""MongoDB-backed knowledge and complaint repositories.

The portal's document store holds three collections used here:

- ``knowledge_base`` — the ``services`` document, ``individual_service``
  entries added through uploads, and the ``complaint_process`` document
- ``complaint_types`` — the ``complaint_types`` taxonomy document
- ``complaints`` — finalized complaints, keyed by ``reportId``
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from bson.errors import BSONError
from loguru import logger
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database
from pymongo.errors import PyMongoError

from municipal_assistant.application.exceptions import (
    KnowledgeUnavailableError,
    PersistenceError,
)
from municipal_assistant.domain.models import (
    COMPLAINT_PROCESS_DOC,
    COMPLAINT_TYPES_DOC,
    INDIVIDUAL_SERVICE_DOC,
    SERVICES_DOC,
    FinalizedComplaint,
    KnowledgeSnapshot,
)

KNOWLEDGE_COLLECTION = "knowledge_base"
COMPLAINT_TYPES_COLLECTION = "complaint_types"
COMPLAINTS_COLLECTION = "complaints"

# Writes fail either in the driver or while encoding the document to BSON
# (keys containing NUL, integers wider than 8 bytes).
_WRITE_ERRORS = (PyMongoError, BSONError, OverflowError)


def _serialize(doc: dict | None) -> dict | None:
    """Make a stored document JSON-friendly (ObjectId → str)."""
    if doc is None:
        return None
    out = dict(doc)
    if "_id" in out:
        out["_id"] = str(out["_id"])
    return out


# ---------------------------------------------------------------------------
# Knowledge base
# ---------------------------------------------------------------------------


class MongoKnowledgeRepository:
    """Access to the reference documents the assistant is grounded on.

    Reads raise ``KnowledgeUnavailableError`` when the store fails;
    writes raise ``PersistenceError``.
    """

    def __init__(self, db: Database) -> None:
        self.knowledge = db[KNOWLEDGE_COLLECTION]
        self.complaint_types = db[COMPLAINT_TYPES_COLLECTION]

    def _collection_for(self, doc_type: str):
        return self.complaint_types if doc_type == COMPLAINT_TYPES_DOC else self.knowledge

    def _read(self, doc_type: str) -> dict | None:
        try:
            return _serialize(self._collection_for(doc_type).find_one({"type": doc_type}))
        except PyMongoError as exc:
            raise KnowledgeUnavailableError(f"Could not read '{doc_type}': {exc}") from exc

    def fetch_services(self) -> Any:
        """Return the services document merged with individually uploaded services.

        Falls back to the bare list of uploaded entries when no main document
        exists, and to ``None`` when neither does.
        """
        main = self._read(SERVICES_DOC)
        try:
            individual = [
                _serialize(d) for d in self.knowledge.find({"type": INDIVIDUAL_SERVICE_DOC})
            ]
        except PyMongoError as exc:
            raise KnowledgeUnavailableError(f"Could not read uploaded services: {exc}") from exc

        if main and isinstance(main.get("services"), list):
            return {**main, "services": [*main["services"], *individual]}
        if individual:
            return individual
        return main

    def fetch_complaint_types(self) -> Any:
        return self._read(COMPLAINT_TYPES_DOC)

    def fetch_complaint_process(self) -> Any:
        return self._read(COMPLAINT_PROCESS_DOC)

    def fetch_snapshot(self) -> KnowledgeSnapshot:
        """Load all three documents. Store errors yield an empty snapshot."""
        try:
            return KnowledgeSnapshot(
                services=self.fetch_services(),
                complaint_types=self.fetch_complaint_types(),
                complaint_process=self.fetch_complaint_process(),
            )
        except KnowledgeUnavailableError:
            logger.exception("Failed to load knowledge base from MongoDB")
            return KnowledgeSnapshot()

    def save_document(self, doc_type: str, data: dict[str, Any]) -> str:
        """Create or replace the fields of the single document of *doc_type*.

        Returns the stored document's ID.
        """
        now = datetime.now(UTC)
        fields = {k: v for k, v in data.items() if k != "_id"}
        try:
            doc = self._collection_for(doc_type).find_one_and_update(
                {"type": doc_type},
                {
                    "$set": {**fields, "type": doc_type, "updatedAt": now},
                    "$setOnInsert": {"createdAt": now},
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except _WRITE_ERRORS as exc:
            raise PersistenceError(f"Could not save '{doc_type}' document: {exc}") from exc
        logger.info("Saved knowledge document '{}'", doc_type)
        return str(doc["_id"])

    def insert_entries(self, entries: list[dict[str, Any]]) -> list[str]:
        """Store uploaded services as ``individual_service`` documents."""
        now = datetime.now(UTC)
        docs = [
            {**entry, "type": INDIVIDUAL_SERVICE_DOC, "createdAt": now, "updatedAt": now}
            for entry in entries
        ]
        try:
            result = self.knowledge.insert_many(docs)
        except _WRITE_ERRORS as exc:
            raise PersistenceError(f"Could not save {len(docs)} knowledge entries: {exc}") from exc
        logger.info("Inserted {} individual service entries", len(docs))
        return [str(i) for i in result.inserted_ids]


# ---------------------------------------------------------------------------
# Complaints
# ---------------------------------------------------------------------------


class MongoComplaintRepository:
    """Complaint persistence in the ``complaints`` collection."""

    def __init__(self, db: Database) -> None:
        self.collection = db[COMPLAINTS_COLLECTION]

    def save(self, complaint: FinalizedComplaint) -> str:
        """Insert a finalized complaint and return the store-assigned ID."""
        now = datetime.now(UTC)
        doc = {**complaint.to_document(), "createdAt": now, "updatedAt": now}
        try:
            result = self.collection.insert_one(doc)
        except _WRITE_ERRORS as exc:
            raise PersistenceError(f"Could not save complaint {complaint.report_id}: {exc}") from exc
        inserted_id = str(result.inserted_id)
        logger.info("Saved complaint {} as {}", complaint.report_id, inserted_id)
        return inserted_id

    def get_by_report_id(self, report_id: str) -> dict | None:
        return _serialize(self.collection.find_one({"reportId": report_id}))

    def list_all(self) -> list[dict]:
        """All complaints, newest first."""
        cursor = self.collection.find({}).sort("createdAt", DESCENDING)
        return [_serialize(d) for d in cursor]

    def list_by_user(self, user_id: str) -> list[dict]:
        """Complaints filed by one user, newest first."""
        cursor = self.collection.find({"userId": user_id}).sort("createdAt", DESCENDING)
        return [_serialize(d) for d in cursor]

    def update_status(self, report_id: str, update: dict[str, Any]) -> dict | None:
        """Apply *update* and return the updated document, or None if no such report."""
        try:
            doc = self.collection.find_one_and_update(
                {"reportId": report_id},
                {"$set": {**update, "updatedAt": datetime.now(UTC)}},
                return_document=ReturnDocument.AFTER,
            )
        except _WRITE_ERRORS as exc:
            raise PersistenceError(f"Could not update complaint {report_id}: {exc}") from exc
        return _serialize(doc)
