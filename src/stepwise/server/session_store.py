"""Server-side session storage keyed by an opaque cookie id.

Sessions live in memory and, when a path is configured, are mirrored to a
JSON file so they survive restarts (best-effort). Writes are last-write-wins;
two requests advancing the same session race at this layer.

The store holds at most ``max_sessions`` entries; the least recently used
session is evicted first.
"""

from __future__ import annotations

import json
import threading
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path

from stepwise.workflow.session import StepSession

DEFAULT_MAX_SESSIONS = 10_000


def new_session_id() -> str:
    return uuid.uuid4().hex


@dataclass
class SessionStore:
    path: Path | None = None
    max_sessions: int = DEFAULT_MAX_SESSIONS
    _sessions: OrderedDict[str, dict[str, str]] = field(
        default_factory=OrderedDict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._lock = threading.Lock()
        if self.path is not None:
            self._sessions = self._load_unlocked(self.path)
            self._evict_unlocked()

    @staticmethod
    def _load_unlocked(path: Path) -> OrderedDict[str, dict[str, str]]:
        sessions: OrderedDict[str, dict[str, str]] = OrderedDict()
        if not path.exists():
            return sessions
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            return sessions
        if not isinstance(raw, dict):
            return sessions
        for session_id, entries in raw.items():
            if isinstance(entries, dict):
                sessions[str(session_id)] = {
                    str(k): v for k, v in entries.items() if isinstance(v, str)
                }
        return sessions

    def _save_unlocked(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(self._sessions, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def _evict_unlocked(self) -> None:
        while len(self._sessions) > self.max_sessions:
            self._sessions.popitem(last=False)

    def get(self, session_id: str | None) -> StepSession:
        if session_id is None:
            return StepSession()
        with self._lock:
            entries = self._sessions.get(session_id)
            if entries is None:
                return StepSession()
            self._sessions.move_to_end(session_id)
            return StepSession.from_mapping(entries)

    def save(self, session_id: str, session: StepSession) -> None:
        with self._lock:
            self._sessions[session_id] = session.to_dict()
            self._sessions.move_to_end(session_id)
            self._evict_unlocked()
            self._save_unlocked()

    def discard(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is not None:
                self._save_unlocked()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
