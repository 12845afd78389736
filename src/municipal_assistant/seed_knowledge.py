"""Seed the knowledge base from JSON files.

Writes (or replaces) the ``services``, ``complaint_types`` and
``complaint_process`` documents, and optionally appends uploaded service
entries.  Run this once against a fresh database, before the first chat.

Usage:
    municipal-seed-knowledge \\
        --services knowledge/services.json \\
        --complaint-types knowledge/complaint_types.json \\
        --complaint-process knowledge/complaint_process.json

    # Append individual services as well
    municipal-seed-knowledge ... --entries knowledge/extra_services.json

MONGODB_URL and MONGODB_DB_NAME come from the environment / .env unless
overridden with ``--mongodb-url`` / ``--db``.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from loguru import logger
from pymongo import MongoClient

from municipal_assistant.application.exceptions import (
    InvalidKnowledgeEntryError,
    PersistenceError,
)
from municipal_assistant.application.use_cases.knowledge_admin import KnowledgeAdminUseCase
from municipal_assistant.config import get_settings
from municipal_assistant.domain.infrastructure.mongo_repositories import MongoKnowledgeRepository
from municipal_assistant.logging_config import setup_logging


def _load_json(path: Path):
    with path.open(encoding="utf-8") as fh:
        return json.load(fh)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Seed the assistant's knowledge base in MongoDB.")
    parser.add_argument("--services", type=Path, required=True, help="Services JSON object")
    parser.add_argument(
        "--complaint-types", type=Path, required=True, help="Complaint taxonomy JSON object"
    )
    parser.add_argument(
        "--complaint-process", type=Path, required=True, help="Registration process JSON object"
    )
    parser.add_argument("--entries", type=Path, help="Extra service entries (JSON array)")
    parser.add_argument("--mongodb-url", help="Override MONGODB_URL")
    parser.add_argument("--db", help="Override MONGODB_DB_NAME")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(level=settings.log_level)

    try:
        services = _load_json(args.services)
        complaint_types = _load_json(args.complaint_types)
        complaint_process = _load_json(args.complaint_process)
        entries = _load_json(args.entries) if args.entries else []
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read seed files: {}", exc)
        return 1

    if not isinstance(entries, list):
        logger.error("--entries must contain a JSON array")
        return 1

    client = MongoClient(args.mongodb_url or settings.mongodb_url)
    try:
        db = client[args.db or settings.mongodb_db_name]
        uc = KnowledgeAdminUseCase(MongoKnowledgeRepository(db))
        ids = uc.initialize(services, complaint_types, complaint_process)
        for doc_type, doc_id in ids.items():
            logger.info("  OK  {} -> {}", doc_type, doc_id)
        if entries:
            inserted = uc.add_entries(entries, created_by="seed_knowledge")
            logger.info("  OK  {} individual service entries", len(inserted))
    except (InvalidKnowledgeEntryError, PersistenceError) as exc:
        logger.error("Seeding failed: {}", exc)
        return 1
    finally:
        client.close()

    logger.info("Knowledge base seeded | db={}", args.db or settings.mongodb_db_name)
    return 0


if __name__ == "__main__":
    sys.exit(main())
