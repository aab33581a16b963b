"""Map step labels to URLs under a fixed base path."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True, slots=True)
class PathStepRouter:
    """Steps are served at ``{base_path}/{label}`` for both GET and POST."""

    base_path: str = ""

    def _url(self, label: str) -> str:
        return f"{self.base_path.rstrip('/')}/{quote(label, safe='')}"

    def resolve_get(self, label: str) -> str:
        return self._url(label)

    def resolve_post(self, label: str) -> str:
        return self._url(label)

    def resolve_stream(self, label: str) -> str:
        return f"{self._url(label)}/stream"
