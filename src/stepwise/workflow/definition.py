"""Lazy, composable workflow definitions.

A workflow is a blueprint: building one never runs a step or reads a
session. Binding records the continuation and only :meth:`Workflow.resume`
(called by the sequencer during traversal) evaluates it, with a value that
came either from a successful ``process`` call or from the session.

After ``resume()`` a workflow is always one of two shapes:

- :class:`Pure` - finished, carrying its result;
- :class:`StepNode` - a labeled step and the continuation computing the rest.
"""

from __future__ import annotations

import functools
from collections.abc import Callable, Generator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .codec import Codec
from .step import Step

A = TypeVar("A")
B = TypeVar("B")
T = TypeVar("T")


class Workflow(Generic[T]):
    """A sequence of steps that eventually yields a value of type ``T``."""

    __slots__ = ()

    def flat_map(self, f: Callable[[T], Workflow[B]]) -> Workflow[B]:
        """Continue with the workflow ``f`` builds from this workflow's value."""

        return FlatMap(self, f)

    bind = flat_map

    def map(self, f: Callable[[T], B]) -> Workflow[B]:
        return self.flat_map(lambda value: Pure(f(value)))

    def then(self, other: Workflow[B]) -> Workflow[B]:
        """Run ``other`` after this workflow, discarding this one's value."""

        return self.flat_map(lambda _value: other)

    def resume(self) -> Pure[T] | StepNode[Any, T]:
        """Unfold pending binds until a finished value or a step is exposed."""

        wf: Workflow[Any] = self
        pending: list[Callable[[Any], Workflow[Any]]] = []
        while True:
            if isinstance(wf, FlatMap):
                pending.append(wf.f)
                wf = wf.source
            elif isinstance(wf, Pure):
                if not pending:
                    return wf
                wf = pending.pop()(wf.value)
            elif isinstance(wf, StepNode):
                if not pending:
                    return wf
                return wf.extend(pending)
            else:
                raise TypeError(f"Not a workflow: {wf!r}")


@dataclass(frozen=True, slots=True)
class Pure(Workflow[T]):
    value: T


@dataclass(frozen=True, slots=True)
class StepNode(Workflow[T], Generic[A, T]):
    label: str
    step: Step[A]
    codec: Codec[A]
    next: Callable[[A], Workflow[T]]

    def extend(self, pending: list[Callable[[Any], Workflow[Any]]]) -> StepNode[A, Any]:
        # `pending` is a stack: the innermost bind was pushed last.
        conts = tuple(reversed(pending))
        inner = self.next

        def next_(value: A) -> Workflow[Any]:
            wf: Workflow[Any] = inner(value)
            for f in conts:
                wf = FlatMap(wf, f)
            return wf

        return StepNode(label=self.label, step=self.step, codec=self.codec, next=next_)


@dataclass(frozen=True, slots=True)
class FlatMap(Workflow[B], Generic[A, B]):
    source: Workflow[A]
    f: Callable[[A], Workflow[B]]


def pure(value: T) -> Workflow[T]:
    """A workflow that is already finished."""

    return Pure(value)


def step(label: str, step_def: Step[A], codec: Codec[A]) -> Workflow[A]:
    """Lift a single step into a one-node workflow whose value is the step's value.

    Args:
        label: Names the step in URLs and keys its value in the session.
            Must be unique along any path through the workflow.
        step_def: The step's render/process/stream functions.
        codec: Converts the step's value to and from session storage.
    """

    if not label:
        raise ValueError("Step label must not be empty")
    return StepNode(label=label, step=step_def, codec=codec, next=Pure)


def workflow(
    fn: Callable[..., Generator[Workflow[Any], Any, T]],
) -> Callable[..., Workflow[T]]:
    """Build a workflow from a generator function.

    Each ``yield`` hands a workflow to the engine and receives its value; the
    generator's return value is the workflow's value::

        @workflow
        def signup():
            name = yield step("name", name_step, text_codec)
            if name == "admin":
                yield step("token", token_step, text_codec)
            yield step("done", done_step, text_codec)

    Generators cannot be copied, so every continuation replays a fresh
    generator with the values received so far. The body must therefore be a
    pure function of those values.
    """

    @functools.wraps(fn)
    def build(*args: Any, **kwargs: Any) -> Workflow[T]:
        def resume_with(received: tuple[Any, ...]) -> Workflow[T]:
            gen = fn(*args, **kwargs)
            try:
                current = next(gen)
                for value in received:
                    current = gen.send(value)
            except StopIteration as stop:
                return Pure(stop.value)
            return current.flat_map(lambda value: resume_with((*received, value)))

        return FlatMap(Pure(()), resume_with)

    return build
