"""Step contract and the per-request context handed to step functions."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeAlias, TypeVar

A = TypeVar("A")

Handle: TypeAlias = str


class StepRouter(Protocol):
    """Resolves step labels to the host's handles (usually URLs)."""

    def resolve_get(self, label: str) -> Handle: ...

    def resolve_post(self, label: str) -> Handle: ...


@dataclass(frozen=True, slots=True)
class StepContext(Generic[A]):
    """Facts a step function may rely on for one request.

    Attributes:
        current_handle: Where this step's form should be submitted.
        previous_handle: The previous step's handle, if there is one.
        stored_value: The value stored by an earlier visit to this step.
        restart_handle: Handle that clears the session and starts over.
        resolve: Maps any label to its handle.
    """

    current_handle: Handle
    previous_handle: Handle | None
    stored_value: A | None
    restart_handle: Handle
    resolve: Callable[[str], Handle]


@dataclass(frozen=True, slots=True)
class Respond:
    """Process outcome: show this response, store nothing."""

    response: Any


@dataclass(frozen=True, slots=True)
class Advance(Generic[A]):
    """Process outcome: store the value and move to the next step."""

    value: A


ProcessResult: TypeAlias = Respond | Advance[Any]

RenderFn: TypeAlias = Callable[[StepContext[Any], Any], "Awaitable[Any | None] | Any | None"]
ProcessFn: TypeAlias = Callable[[StepContext[Any], Any], "Awaitable[ProcessResult] | ProcessResult"]
StreamHandler: TypeAlias = Callable[[StepContext[Any], Any], Awaitable[None]]


def skip_render(ctx: StepContext[Any], request: Any) -> None:
    """Default render: go straight to processing."""

    _ = (ctx, request)
    return None


@dataclass(frozen=True, slots=True)
class Step(Generic[A]):
    """A single unit of interaction in a workflow.

    ``render`` produces the step's page. Returning ``None`` sends the request
    on to ``process``. ``process`` validates the submission and returns either
    ``Respond`` (e.g. the form again, with errors) or ``Advance`` with the value
    to store. ``stream`` optionally serves a duplex channel for the step; it is
    expected to submit a process request itself to move the workflow on.

    Functions may be plain callables or coroutines.
    """

    process: ProcessFn
    render: RenderFn = skip_render
    stream: StreamHandler | None = None
