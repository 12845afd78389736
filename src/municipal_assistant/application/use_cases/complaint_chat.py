"""Complaint chat use case — one conversational turn with the assistant.

This module contains the business logic for handling a message:
session lookup, history bookkeeping, prompt composition, generation,
save-marker extraction and complaint finalization.  It has **no
dependency on FastAPI** and can be invoked from any transport layer.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from loguru import logger

from municipal_assistant.application.exceptions import (
    EmptyMessageError,
    ExtractionError,
    KnowledgeUnavailableError,
)
from municipal_assistant.application.extraction import extract_complaint_record
from municipal_assistant.application.finalizer import ComplaintFinalizer
from municipal_assistant.application.prompt import compose_prompt
from municipal_assistant.domain.models import CallerIdentity
from municipal_assistant.domain.protocols import (
    IKnowledgeRepository,
    ISessionRegistry,
    ITextGenerator,
    ITurnHistoryStore,
)

SAVE_FAILED_ERROR = "Failed to save complaint data"


def confirmation_text(cleaned_text: str, report_id: str) -> str:
    """User-visible reply for a registered complaint."""
    confirmation = (
        "✅ आपकी complaint successfully register हो गई है!\n"
        f"🆔 Report ID: {report_id}\n"
        "📝 कृपया इस ID को safe रखें।"
    )
    if not cleaned_text:
        return confirmation
    return f"{cleaned_text}\n\n{confirmation}"


# ---------------------------------------------------------------------------
# Request / result containers
# ---------------------------------------------------------------------------


@dataclass
class ChatTurnRequest:
    message: str
    session_id: str | None = None
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None

    @property
    def caller(self) -> CallerIdentity:
        return CallerIdentity(
            user_id=self.user_id, user_name=self.user_name, user_email=self.user_email
        )


@dataclass
class ChatTurnResult:
    """Outcome of one turn. ``error`` is set when a record was found but not saved."""

    response: str
    session_id: str
    saved: bool = False
    report_id: str | None = None
    persisted_id: str | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Use case
# ---------------------------------------------------------------------------


class ComplaintChatUseCase:
    """Orchestrates a single turn of the complaint assistant.

    Parameters
    ----------
    sessions:
        Registry resolving (or synthesizing) the session for a message.
    history:
        Bounded per-session turn store.
    knowledge:
        Source of the knowledge snapshot, fetched fresh on every turn.
    generator:
        Free-text generation service.
    finalizer:
        Builds and persists complaints extracted from responses.
    """

    def __init__(
        self,
        sessions: ISessionRegistry,
        history: ITurnHistoryStore,
        knowledge: IKnowledgeRepository,
        generator: ITextGenerator,
        finalizer: ComplaintFinalizer,
    ) -> None:
        self.sessions = sessions
        self.history = history
        self.knowledge = knowledge
        self.generator = generator
        self.finalizer = finalizer

    async def execute(self, request: ChatTurnRequest) -> ChatTurnResult:
        """Run one turn and return the reply plus any save outcome.

        Raises:
            EmptyMessageError: If the message is blank.
            KnowledgeUnavailableError: If a knowledge document is missing.
            GenerationError: If the generation service fails (propagated).
        """
        if not request.message or not request.message.strip():
            raise EmptyMessageError("message must not be empty")

        session = self.sessions.get_or_create(request.session_id)
        sid = session.id
        self.history.append(sid, "user", request.message)

        snapshot = self.knowledge.fetch_snapshot()
        missing = snapshot.missing()
        if missing:
            raise KnowledgeUnavailableError(
                f"Knowledge base not available (missing: {', '.join(missing)})"
            )

        prompt = compose_prompt(snapshot, self.history.get(sid), request.message)

        t0 = time.perf_counter()
        text = await self.generator.generate(prompt)
        latency = int((time.perf_counter() - t0) * 1000)
        logger.info("Generation completed | session={} | latency={}ms", sid, latency)

        self.history.append(sid, "assistant", text)

        try:
            extracted = extract_complaint_record(text)
        except ExtractionError as exc:
            logger.warning(
                "Complaint extraction failed | session={} | kind={} | {} | raw={!r} | response={!r}",
                sid,
                exc.kind,
                exc,
                exc.raw,
                text,
            )
            return ChatTurnResult(response=text, session_id=sid, error=SAVE_FAILED_ERROR)

        if extracted is None:
            return ChatTurnResult(response=text, session_id=sid)

        result = self.finalizer.submit(
            extracted.record, sid, request.caller, self.history.get(sid)
        )
        if not result.saved:
            return ChatTurnResult(
                response=extracted.cleaned_text, session_id=sid, error=SAVE_FAILED_ERROR
            )

        reply = confirmation_text(extracted.cleaned_text, result.report_id)
        self.history.append(sid, "assistant", reply)
        logger.info("Complaint registered | session={} | report={}", sid, result.report_id)

        return ChatTurnResult(
            response=reply,
            session_id=sid,
            saved=True,
            report_id=result.report_id,
            persisted_id=result.persisted_id,
        )
