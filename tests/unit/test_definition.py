"""Unit tests for lazy workflow composition."""

from __future__ import annotations

from typing import Any

import pytest

from stepwise.workflow import Pure, Step, StepNode, Respond, pure, step, text_codec, workflow

NOOP: Step[Any] = Step(process=lambda ctx, request: Respond("noop"))


def test_pure_bind_resumes_to_value() -> None:
    wf = pure(1).flat_map(lambda x: pure(x + 1)).map(lambda x: x * 10)
    assert wf.resume() == Pure(20)


def test_binding_a_step_does_not_run_the_continuation() -> None:
    calls: list[str] = []

    def cont(value: str) -> Any:
        calls.append(value)
        return step("second", NOOP, text_codec)

    wf = step("first", NOOP, text_codec).flat_map(cont)
    node = wf.resume()

    assert isinstance(node, StepNode)
    assert node.label == "first"
    assert calls == []

    following = node.next("v").resume()
    assert calls == ["v"]
    assert isinstance(following, StepNode)
    assert following.label == "second"


def test_bind_alias_and_then() -> None:
    wf = step("a", NOOP, text_codec).bind(lambda _a: step("b", NOOP, text_codec)).then(pure("end"))
    node = wf.resume()
    assert node.label == "a"
    node = node.next("x").resume()
    assert node.label == "b"
    assert node.next("y").resume() == Pure("end")


def test_step_value_flows_through_map() -> None:
    node = step("age", NOOP, text_codec).map(len).resume()
    assert node.next("hello").resume() == Pure(5)


def test_deeply_nested_binds_do_not_exhaust_the_stack() -> None:
    wf = pure(0)
    for _ in range(10_000):
        wf = wf.flat_map(lambda x: pure(x + 1))
    assert wf.resume() == Pure(10_000)

    stepped = step("count", NOOP, text_codec).map(int)
    for _ in range(5_000):
        stepped = stepped.map(lambda x: x + 1)
    assert stepped.resume().next("1").resume() == Pure(5_001)


def test_definition_is_reusable() -> None:
    wf = step("a", NOOP, text_codec).flat_map(
        lambda a: step(f"b-{a}", NOOP, text_codec)
    )
    first = wf.resume().next("x").resume()
    second = wf.resume().next("y").resume()
    assert first.label == "b-x"
    assert second.label == "b-y"
    assert wf.resume().next("x").resume().label == "b-x"


def test_empty_label_rejected() -> None:
    with pytest.raises(ValueError):
        step("", NOOP, text_codec)


def test_generator_workflow_is_lazy_and_branches() -> None:
    visited: list[str] = []

    @workflow
    def flow(prefix: str) -> Any:
        visited.append("body")
        kind = yield step(f"{prefix}kind", NOOP, text_codec)
        if kind == "A":
            extra = yield step(f"{prefix}a", NOOP, text_codec)
        else:
            extra = yield step(f"{prefix}b", NOOP, text_codec)
        return f"{kind}:{extra}"

    wf = flow("p-")
    assert visited == []

    node = wf.resume()
    assert node.label == "p-kind"

    branch_a = node.next("A").resume()
    branch_b = node.next("B").resume()
    assert branch_a.label == "p-a"
    assert branch_b.label == "p-b"
    assert branch_a.next("1").resume() == Pure("A:1")


def test_generator_workflow_can_yield_composite_workflows() -> None:
    pair = step("x", NOOP, text_codec).flat_map(
        lambda x: step("y", NOOP, text_codec).map(lambda y: x + y)
    )

    @workflow
    def flow() -> Any:
        joined = yield pair
        return joined.upper()

    node = flow().resume()
    assert node.label == "x"
    node = node.next("a").resume()
    assert node.label == "y"
    assert node.next("b").resume() == Pure("AB")


def test_generator_without_steps_is_finished() -> None:
    @workflow
    def nothing() -> Any:
        return "done"
        yield  # pragma: no cover

    assert nothing().resume() == Pure("done")
