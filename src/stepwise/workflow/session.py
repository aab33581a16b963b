"""Client-held step values, keyed by step label."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol


class Session(Protocol):
    """What the sequencer needs from the host's session."""

    def get(self, label: str) -> str | None: ...

    def with_entry(self, label: str, value: str) -> Session: ...

    def clear(self) -> Session: ...


@dataclass(frozen=True, slots=True)
class StepSession:
    """Immutable label -> serialized value mapping.

    ``with_entry`` and ``clear`` return new sessions; the receiver is left
    untouched so callers can keep using the snapshot they traversed with.
    """

    _entries: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_entries", MappingProxyType(dict(self._entries)))

    @classmethod
    def from_mapping(cls, entries: Mapping[str, object] | None) -> StepSession:
        if not entries:
            return cls()
        return cls({str(k): v for k, v in entries.items() if isinstance(v, str)})

    def get(self, label: str) -> str | None:
        return self._entries.get(label)

    def with_entry(self, label: str, value: str) -> StepSession:
        return StepSession({**self._entries, label: value})

    def clear(self) -> StepSession:
        return StepSession()

    def to_dict(self) -> dict[str, str]:
        return dict(self._entries)

    def __contains__(self, label: object) -> bool:
        return label in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
