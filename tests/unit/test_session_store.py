"""Unit tests for server-side session persistence."""

from __future__ import annotations

from pathlib import Path

import pytest

from stepwise.server.session_store import SessionStore, new_session_id
from stepwise.workflow import StepSession


def test_in_memory_store() -> None:
    store = SessionStore()
    assert store.get(None) == StepSession()
    assert store.get("unknown") == StepSession()

    store.save("abc", StepSession({"name": "Alice"}))
    assert store.get("abc").to_dict() == {"name": "Alice"}

    store.discard("abc")
    assert len(store) == 0


def test_store_roundtrip(tmp_path: Path) -> None:
    path = tmp_path / "state" / "sessions.json"
    store = SessionStore(path)
    store.save("abc", StepSession({"name": "Alice", "age": "30"}))

    reloaded = SessionStore(path)

    assert reloaded.get("abc").to_dict() == {"name": "Alice", "age": "30"}


def test_corrupt_state_file_starts_empty(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    path.write_text("{not json", encoding="utf-8")

    assert len(SessionStore(path)) == 0

    path.write_text('{"abc": {"name": "Alice", "bad": 1}, "xyz": []}', encoding="utf-8")
    store = SessionStore(path)
    assert len(store) == 1
    assert store.get("abc").to_dict() == {"name": "Alice"}


def test_session_ids_are_unique() -> None:
    assert len({new_session_id() for _ in range(100)}) == 100


def test_least_recently_used_sessions_are_evicted() -> None:
    store = SessionStore(max_sessions=3)
    for session_id in ("a", "b", "c"):
        store.save(session_id, StepSession({"name": session_id}))

    # Reading "a" makes "b" the oldest.
    assert store.get("a").to_dict() == {"name": "a"}
    store.save("d", StepSession({"name": "d"}))
    store.save("e", StepSession({"name": "e"}))

    assert len(store) == 3
    assert store.get("b") == StepSession()
    assert store.get("c") == StepSession()
    assert store.get("a").to_dict() == {"name": "a"}


def test_state_file_is_trimmed_on_load(tmp_path: Path) -> None:
    path = tmp_path / "sessions.json"
    big = SessionStore(path)
    for index in range(5):
        big.save(f"s{index}", StepSession({"n": str(index)}))

    small = SessionStore(path, max_sessions=2)

    assert len(small) == 2
    assert small.get("s4").to_dict() == {"n": "4"}


def test_max_sessions_must_be_positive() -> None:
    with pytest.raises(ValueError):
        SessionStore(max_sessions=0)
