"""Shared fixtures for backend tests."""

import sys
from pathlib import Path

# Make `municipal_assistant` importable without installing the package.
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)

from unittest.mock import MagicMock

import pytest

from municipal_assistant.application.finalizer import ComplaintFinalizer
from municipal_assistant.application.use_cases.complaint_chat import ComplaintChatUseCase
from municipal_assistant.domain.infrastructure.session_registry import SessionRegistry
from municipal_assistant.domain.infrastructure.turn_history_store import InMemoryTurnHistoryStore
from municipal_assistant.domain.models import KnowledgeSnapshot


def pytest_configure(config):
    """Set pytest-asyncio mode to auto so async test functions work without markers."""
    config.option.asyncio_mode = "auto"


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class FakeGenerator:
    """Returns canned responses in order and records every prompt it receives."""

    def __init__(self, *responses: str) -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.responses.pop(0)


class FakeKnowledge:
    """Knowledge repository serving a fixed snapshot."""

    def __init__(self, snapshot: KnowledgeSnapshot) -> None:
        self.snapshot = snapshot
        self.fetches = 0

    def fetch_services(self):
        return self.snapshot.services

    def fetch_complaint_types(self):
        return self.snapshot.complaint_types

    def fetch_complaint_process(self):
        return self.snapshot.complaint_process

    def fetch_snapshot(self) -> KnowledgeSnapshot:
        self.fetches += 1
        return self.snapshot


SNAPSHOT = KnowledgeSnapshot(
    services={
        "type": "services",
        "services": [
            {"service_name": "Birth Certificate", "procedure": "Fill Form 1", "tag": ["birth"]},
        ],
    },
    complaint_types={
        "type": "complaint_types",
        "categories": [{"name": "WATER", "subtypes": ["Water Shortage", "Pipe Leakage"]}],
    },
    complaint_process={"type": "complaint_process", "steps": ["type", "description", "location"]},
)


@pytest.fixture()
def snapshot() -> KnowledgeSnapshot:
    return SNAPSHOT


@pytest.fixture()
def knowledge() -> FakeKnowledge:
    return FakeKnowledge(SNAPSHOT)


@pytest.fixture()
def history() -> InMemoryTurnHistoryStore:
    return InMemoryTurnHistoryStore(limit=10)


@pytest.fixture()
def sessions(history: InMemoryTurnHistoryStore) -> SessionRegistry:
    return SessionRegistry(history)


@pytest.fixture()
def complaint_repo() -> MagicMock:
    """A mock complaint repository whose save() returns a fixed store ID."""
    repo = MagicMock()
    repo.save.return_value = "665f1c2ab1e4a7d9c0ffee01"
    return repo


@pytest.fixture()
def make_use_case(sessions, history, knowledge, complaint_repo):
    """Factory: a ComplaintChatUseCase whose generator replies with *responses*."""

    def _make(*responses: str) -> tuple[ComplaintChatUseCase, FakeGenerator]:
        generator = FakeGenerator(*responses)
        uc = ComplaintChatUseCase(
            sessions=sessions,
            history=history,
            knowledge=knowledge,
            generator=generator,
            finalizer=ComplaintFinalizer(complaint_repo),
        )
        return uc, generator

    return _make
