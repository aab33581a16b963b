"""Locate a step in a workflow and run its render, process or stream function.

Every request replays the workflow from its root. Each step before the
target is fed the value stored under its label, which yields the next node,
until the node labeled with the target is reached. Nothing is cached between
requests: the definition is immutable and the session snapshot is the only
state.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from .definition import Pure, StepNode, Workflow
from .errors import (
    DuplicateLabelError,
    FlowExhaustedError,
    MissingStepValueError,
    UnsupportedStreamError,
)
from .session import Session
from .step import Advance, Handle, Respond, StepContext, StepRouter, StreamHandler

A = TypeVar("A")

RESTART_LABEL = "start"


def _default_logger() -> logging.Logger:
    return logging.getLogger("stepwise.workflow")


@dataclass(frozen=True, slots=True)
class WorkflowConf:
    """A workflow definition together with how its labels map to handles."""

    workflow: Workflow[Any]
    router: StepRouter
    restart_label: str = RESTART_LABEL
    detect_duplicate_labels: bool = True
    logger: logging.Logger = field(default_factory=_default_logger)


@dataclass(frozen=True, slots=True)
class Redirect:
    """Send the client to ``location`` and store ``session`` for it.

    ``reset`` marks a restart: the host should start a fresh session rather
    than update the existing one.
    """

    location: Handle
    session: Session
    reset: bool = False


@dataclass(frozen=True, slots=True)
class StreamBinding(Generic[A]):
    """A located step's stream handler, bound to its context."""

    label: str
    context: StepContext[A]
    handler: StreamHandler

    async def __call__(self, channel: Any) -> None:
        await self.handler(self.context, channel)


@dataclass(frozen=True, slots=True)
class _Located:
    node: StepNode[Any, Any]
    previous_label: str | None


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


def first_label(workflow: Workflow[Any]) -> str:
    """Label of the first step, without consulting any session."""

    node = workflow.resume()
    if isinstance(node, Pure):
        raise FlowExhaustedError("Workflow has no steps: it is already finished")
    return node.label


def _next_label(after: str, workflow: Workflow[Any]) -> str:
    node = workflow.resume()
    if isinstance(node, Pure):
        raise FlowExhaustedError(
            f"Workflow finished after step {after!r}; end it with a step that renders "
            "a final page instead of a pure value",
            label=after,
        )
    return node.label


def _stored_value(node: StepNode[A, Any], session: Session) -> A:
    raw = session.get(node.label)
    if raw is None:
        raise MissingStepValueError(
            f"No stored value for step {node.label!r}; it must be completed first",
            label=node.label,
        )
    return node.codec.read(raw, label=node.label)


def _optional_stored_value(node: StepNode[A, Any], session: Session) -> A | None:
    raw = session.get(node.label)
    if raw is None:
        return None
    return node.codec.read(raw, label=node.label)


def _locate(conf: WorkflowConf, target: str, session: Session) -> _Located:
    previous: str | None = None
    seen: set[str] = set()
    node = conf.workflow.resume()
    while True:
        if isinstance(node, Pure):
            raise FlowExhaustedError(
                f"Workflow finished before reaching step {target!r}", label=target
            )
        if conf.detect_duplicate_labels:
            if node.label in seen:
                raise DuplicateLabelError(
                    f"Step label {node.label!r} appears twice on the same path",
                    label=node.label,
                )
            seen.add(node.label)
        if node.label == target:
            return _Located(node=node, previous_label=previous)

        conf.logger.debug(
            "Replaying stored step value",
            extra={"step_label": node.label, "target_label": target},
        )
        value = _stored_value(node, session)
        previous = node.label
        node = node.next(value).resume()


def _context(conf: WorkflowConf, located: _Located, stored: Any) -> StepContext[Any]:
    router = conf.router
    previous = located.previous_label
    return StepContext(
        current_handle=router.resolve_post(located.node.label),
        previous_handle=router.resolve_post(previous) if previous is not None else None,
        stored_value=stored,
        restart_handle=router.resolve_get(conf.restart_label),
        resolve=router.resolve_get,
    )


async def _process(conf: WorkflowConf, located: _Located, request: Any, session: Session) -> Any:
    node = located.node
    stored = _optional_stored_value(node, session)
    ctx = _context(conf, located, stored)
    outcome = await _resolve(node.step.process(ctx, request))

    if isinstance(outcome, Respond):
        conf.logger.debug("Step responded without advancing", extra={"step_label": node.label})
        return outcome.response
    if not isinstance(outcome, Advance):
        raise TypeError(
            f"Step {node.label!r} process must return Respond or Advance, got {outcome!r}"
        )

    updated = session.with_entry(node.label, node.codec.encode(outcome.value))
    following = _next_label(node.label, node.next(outcome.value))
    conf.logger.debug(
        "Stored step value, redirecting",
        extra={"step_label": node.label, "target_label": following},
    )
    return Redirect(location=conf.router.resolve_get(following), session=updated)


async def handle_get(conf: WorkflowConf, label: str, *, request: Any, session: Session) -> Any:
    """Render the step ``label``.

    The restart label clears the session and redirects to the first step.
    Returns the step's response, or a :class:`Redirect` when the step has no
    render output and its processing advanced the workflow.
    """

    if label == conf.restart_label:
        initial = first_label(conf.workflow)
        conf.logger.debug("Restarting workflow", extra={"target_label": initial})
        return Redirect(
            location=conf.router.resolve_get(initial), session=session.clear(), reset=True
        )

    located = _locate(conf, label, session)
    node = located.node
    stored = _optional_stored_value(node, session)
    rendered = await _resolve(node.step.render(_context(conf, located, stored), request))
    if rendered is not None:
        return rendered
    return await _process(conf, located, request, session)


async def handle_post(conf: WorkflowConf, label: str, *, request: Any, session: Session) -> Any:
    """Process a submission for step ``label``.

    Returns the step's short-circuit response unchanged, or a :class:`Redirect`
    to the next step carrying the session with this step's value stored.
    """

    located = _locate(conf, label, session)
    return await _process(conf, located, request, session)


def handle_stream(
    conf: WorkflowConf, label: str, *, request: Any, session: Session
) -> StreamBinding[Any]:
    """Bind step ``label``'s stream handler to a fresh context.

    Only earlier steps' values are replayed; the step's own stored value is
    not loaded.
    """

    _ = request
    located = _locate(conf, label, session)
    handler = located.node.step.stream
    if handler is None:
        raise UnsupportedStreamError(f"Step {label!r} does not support streams", label=label)
    return StreamBinding(label=label, context=_context(conf, located, None), handler=handler)


def _walk_path(workflow: Workflow[Any], session: Session) -> tuple[list[str], str | None]:
    seen: set[str] = set()
    labels: list[str] = []
    node = workflow.resume()
    while isinstance(node, StepNode):
        if node.label in seen:
            return labels, node.label
        seen.add(node.label)
        labels.append(node.label)
        if session.get(node.label) is None:
            break
        node = node.next(_stored_value(node, session)).resume()
    return labels, None


def reachable_labels(workflow: Workflow[Any], session: Session) -> list[str]:
    """Labels along the path the session determines.

    The walk stops at the first step without a stored value (included), when
    the workflow finishes, or before a label that was already visited.
    """

    labels, _duplicate = _walk_path(workflow, session)
    return labels


def validate_labels(workflow: Workflow[Any], session: Session) -> list[str]:
    """Check the currently determined path for repeated labels.

    Labels further along may depend on values not yet stored, so this can
    only validate as far as ``session`` reaches. Returns the checked labels.
    """

    labels, duplicate = _walk_path(workflow, session)
    if duplicate is not None:
        raise DuplicateLabelError(
            f"Step label {duplicate!r} appears twice on the same path", label=duplicate
        )
    return labels
