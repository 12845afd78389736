"""FastAPI backend for the municipal services assistant.

This module is the **composition root**: it builds the shared services
once per application lifetime and wires them into the use cases.  Routes
live in ``presentation.routes`` and business logic in
``application.use_cases``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from pymongo import MongoClient

from municipal_assistant import __version__
from municipal_assistant.application.finalizer import ComplaintFinalizer
from municipal_assistant.application.infrastructure.agent import AgentTextGenerator, create_agent
from municipal_assistant.application.use_cases.complaint_chat import ComplaintChatUseCase
from municipal_assistant.application.use_cases.complaint_review import ComplaintReviewUseCase
from municipal_assistant.application.use_cases.knowledge_admin import KnowledgeAdminUseCase
from municipal_assistant.config import Settings, get_settings
from municipal_assistant.domain.infrastructure.mongo_repositories import (
    MongoComplaintRepository,
    MongoKnowledgeRepository,
)
from municipal_assistant.domain.infrastructure.session_registry import SessionRegistry
from municipal_assistant.domain.infrastructure.turn_history_store import InMemoryTurnHistoryStore
from municipal_assistant.logging_config import setup_logging
from municipal_assistant.presentation.routes import chat, complaints, knowledge
from municipal_assistant.telemetry import is_observability_active, setup_telemetry

# ---------------------------------------------------------------------------
# Lifespan: initialise shared resources once at startup
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up and tear down services around the application lifetime."""
    settings: Settings = app.state.settings
    settings.validate_runtime()

    mongo = MongoClient(settings.mongodb_url)
    db = mongo[settings.mongodb_db_name]
    knowledge_repo = MongoKnowledgeRepository(db)
    complaint_repo = MongoComplaintRepository(db)

    # Conversation state lives only as long as this process
    history = InMemoryTurnHistoryStore(limit=settings.history_limit)
    ttl = settings.session_idle_ttl_minutes
    sessions = SessionRegistry(history, idle_ttl=timedelta(minutes=ttl) if ttl > 0 else None)

    agent = create_agent(settings, instrument=is_observability_active(settings))

    app.state.history = history
    app.state.sessions = sessions
    app.state.knowledge = knowledge_repo
    app.state.chat_uc = ComplaintChatUseCase(
        sessions=sessions,
        history=history,
        knowledge=knowledge_repo,
        generator=AgentTextGenerator(agent),
        finalizer=ComplaintFinalizer(complaint_repo),
    )
    app.state.review_uc = ComplaintReviewUseCase(complaint_repo)
    app.state.knowledge_admin_uc = KnowledgeAdminUseCase(knowledge_repo)

    logger.info("Application startup complete | db={}", settings.mongodb_db_name)
    yield

    mongo.close()
    logger.info("Application shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Optional Settings override (defaults to get_settings()).
    """
    s = settings or get_settings()
    setup_logging(level=s.log_level, json=s.log_json)

    application = FastAPI(
        title="Municipal Services Assistant",
        description="Voice/text assistant for municipal service questions and complaint intake.",
        version=__version__,
        lifespan=lifespan,
    )
    application.state.settings = s

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(chat.router)
    application.include_router(complaints.router)
    application.include_router(knowledge.router)

    # No-op when OBSERVABILITY=off
    setup_telemetry(application, s)
    return application


app = create_app()


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    import uvicorn

    uvicorn.run("municipal_assistant.main:app", host="0.0.0.0", port=8000, reload=True)
