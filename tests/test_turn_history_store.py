"""Tests for InMemoryTurnHistoryStore — bounded per-session history."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from municipal_assistant.domain.infrastructure.turn_history_store import InMemoryTurnHistoryStore
from municipal_assistant.domain.protocols import ITurnHistoryStore


def _contents(store: InMemoryTurnHistoryStore, session_id: str) -> list[str]:
    return [t.content for t in store.get(session_id)]


class TestAppend:
    def test_creates_session_on_first_append(self, history: InMemoryTurnHistoryStore):
        assert "s1" not in history
        history.append("s1", "user", "नमस्ते")
        assert "s1" in history
        assert _contents(history, "s1") == ["नमस्ते"]

    def test_turn_fields(self, history: InMemoryTurnHistoryStore):
        turn = history.append("s1", "assistant", "जी, बताइए")
        assert turn.role == "assistant"
        assert turn.content == "जी, बताइए"
        assert turn.timestamp.endswith("Z")
        assert "T" in turn.timestamp

    def test_turns_are_immutable(self, history: InMemoryTurnHistoryStore):
        turn = history.append("s1", "user", "hello")
        with pytest.raises(FrozenInstanceError):
            turn.content = "changed"  # type: ignore[misc]

    def test_sessions_are_isolated(self, history: InMemoryTurnHistoryStore):
        history.append("a", "user", "one")
        history.append("b", "user", "two")
        assert _contents(history, "a") == ["one"]
        assert _contents(history, "b") == ["two"]


class TestGet:
    def test_unknown_session_is_empty(self, history: InMemoryTurnHistoryStore):
        assert history.get("missing") == []

    def test_returns_copy(self, history: InMemoryTurnHistoryStore):
        history.append("s1", "user", "hello")
        turns = history.get("s1")
        turns.clear()
        assert len(history.get("s1")) == 1


class TestTrimming:
    def test_never_exceeds_limit(self, history: InMemoryTurnHistoryStore):
        for i in range(25):
            history.append("s1", "user" if i % 2 == 0 else "assistant", f"turn {i}")
            assert len(history.get("s1")) <= 10

    def test_keeps_most_recent_oldest_first(self, history: InMemoryTurnHistoryStore):
        for i in range(1, 16):
            history.append("s1", "user", f"turn {i}")
        assert _contents(history, "s1") == [f"turn {i}" for i in range(6, 16)]

    def test_three_to_four_to_ten_turns(self, history: InMemoryTurnHistoryStore):
        for i in range(1, 4):
            history.append("s1", "user", f"turn {i}")
        assert len(history.get("s1")) == 3

        history.append("s1", "assistant", "turn 4")
        assert len(history.get("s1")) == 4

        for i in range(5, 13):
            history.append("s1", "user", f"turn {i}")
        assert _contents(history, "s1") == [f"turn {i}" for i in range(3, 13)]

    def test_custom_limit(self):
        store = InMemoryTurnHistoryStore(limit=2)
        for text in ("a", "b", "c"):
            store.append("s", "user", text)
        assert _contents(store, "s") == ["b", "c"]

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            InMemoryTurnHistoryStore(limit=0)

    def test_evict_oldest_reports_dropped(self, history: InMemoryTurnHistoryStore):
        for i in range(5):
            history.append("s1", "user", str(i))
        assert history.evict_oldest("s1", keep=2) == 3
        assert _contents(history, "s1") == ["3", "4"]
        assert history.evict_oldest("s1", keep=2) == 0
        assert history.evict_oldest("unknown", keep=2) == 0


class TestDrop:
    def test_drop_removes_session(self, history: InMemoryTurnHistoryStore):
        history.append("s1", "user", "hello")
        history.drop("s1")
        assert history.get("s1") == []
        assert len(history) == 0

    def test_drop_unknown_is_noop(self, history: InMemoryTurnHistoryStore):
        history.drop("never-existed")


def test_satisfies_protocol(history: InMemoryTurnHistoryStore):
    assert isinstance(history, ITurnHistoryStore)
