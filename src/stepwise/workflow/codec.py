"""Codecs convert a step's value to and from the session's string storage.

A codec is resolved once, when the workflow is defined, and travels with the
step node that uses it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from .errors import DecodeError, WorkflowError

A = TypeVar("A")


@dataclass(frozen=True, slots=True)
class Codec(Generic[A]):
    encode: Callable[[A], str]
    decode: Callable[[str], A]
    name: str = "codec"

    def read(self, raw: str, *, label: str | None = None) -> A:
        """Decode a stored value, reporting malformed payloads as DecodeError."""

        try:
            return self.decode(raw)
        except WorkflowError:
            raise
        except Exception as exc:
            where = f" for step {label!r}" if label is not None else ""
            raise DecodeError(
                f"Cannot decode stored value{where} with {self.name}: {exc}", label=label
            ) from exc


def _decode_int(raw: str) -> int:
    # int() accepts surrounding whitespace and underscores; stored values never contain them.
    if raw != raw.strip() or "_" in raw:
        raise ValueError(f"invalid integer literal: {raw!r}")
    return int(raw)


def _decode_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValueError(f"invalid boolean literal: {raw!r}")


text_codec: Codec[str] = Codec(encode=lambda value: value, decode=lambda raw: raw, name="text")

int_codec: Codec[int] = Codec(encode=str, decode=_decode_int, name="int")

bool_codec: Codec[bool] = Codec(
    encode=lambda value: "true" if value else "false", decode=_decode_bool, name="bool"
)


def json_codec(tp: Any) -> Codec[Any]:
    """Build a JSON codec for anything pydantic can validate.

    Works for models, dataclasses, TypedDicts and plain containers, e.g.
    ``json_codec(list[int])`` or ``json_codec(Address)``.
    """

    adapter: TypeAdapter[Any] = TypeAdapter(tp)

    def encode(value: Any) -> str:
        return adapter.dump_json(value).decode("utf-8")

    def decode(raw: str) -> Any:
        return adapter.validate_json(raw)

    name = getattr(tp, "__name__", None) or repr(tp)
    return Codec(encode=encode, decode=decode, name=f"json[{name}]")
