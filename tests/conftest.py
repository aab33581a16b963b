"""Test configuration and fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from stepwise.config import WorkflowSettings
from stepwise.workflow import Advance, Respond, Step, StepContext, StepSession


class LabelRouter:
    """Step router with distinguishable GET and POST handles."""

    def resolve_get(self, label: str) -> str:
        return f"/get/{label}"

    def resolve_post(self, label: str) -> str:
        return f"/post/{label}"


class RecordingStep:
    """Builds a Step whose calls are recorded for assertions.

    Requests are plain dicts: ``{"value": ...}`` advances with that value,
    anything else short-circuits with a ``"missing"`` response.
    """

    def __init__(self, *, renders: bool = True) -> None:
        self.renders = renders
        self.calls: list[tuple[str, StepContext[Any]]] = []

    def render(self, ctx: StepContext[Any], request: Any) -> str | None:
        self.calls.append(("render", ctx))
        if not self.renders:
            return None
        return f"page stored={ctx.stored_value!r}"

    def process(self, ctx: StepContext[Any], request: Any) -> Respond | Advance[Any]:
        self.calls.append(("process", ctx))
        if "value" not in request:
            return Respond("missing")
        return Advance(request["value"])

    def step(self) -> Step[Any]:
        return Step(render=self.render, process=self.process)

    def kinds(self) -> list[str]:
        return [kind for kind, _ctx in self.calls]


@pytest.fixture
def router() -> LabelRouter:
    """Provide a router with distinguishable handles."""
    return LabelRouter()


@pytest.fixture
def empty_session() -> StepSession:
    """Provide a session with no completed steps."""
    return StepSession()


@pytest.fixture
def settings() -> WorkflowSettings:
    """Provide settings isolated from any local `.env` file."""
    return WorkflowSettings(_env_file=None)


@pytest.fixture
def recording() -> type[RecordingStep]:
    """Provide the RecordingStep factory."""
    return RecordingStep
