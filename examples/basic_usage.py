#!/usr/bin/env python3
"""Programmatic workflow example.

This demonstrates a small signup wizard:

* ask for a name, then an age
* adults pick a plan, minors are asked for a guardian's email
* finish on a summary page

Serve it over HTTP with any ASGI server, e.g.::

    uvicorn examples.basic_usage:app

or run this file to drive the engine directly, without HTTP.
"""

from __future__ import annotations

import argparse
import asyncio
from html import escape
from typing import Any, Sequence

from fastapi.responses import HTMLResponse

from stepwise import Advance, Respond, Step, StepContext, step, workflow
from stepwise.server import create_app, form_data
from stepwise.workflow import (
    Redirect,
    StepSession,
    WorkflowConf,
    handle_get,
    handle_post,
    int_codec,
    text_codec,
)


def _page(ctx: StepContext[Any], title: str, field: str, error: str = "") -> HTMLResponse:
    back = f'<a href="{escape(ctx.previous_handle)}">Back</a>' if ctx.previous_handle else ""
    value = "" if ctx.stored_value is None else escape(str(ctx.stored_value))
    return HTMLResponse(
        f"<h1>{escape(title)}</h1><p>{escape(error)}</p>"
        f'<form method="post" action="{escape(ctx.current_handle)}">'
        f'<input name="{field}" value="{value}"><button>Next</button></form>'
        f'{back} <a href="{escape(ctx.restart_handle)}">Start over</a>'
    )


async def _submitted(request: Any, field: str) -> str:
    if isinstance(request, dict):
        return str(request.get(field, "")).strip()
    return (await form_data(request)).get(field, "").strip()


def text_step(title: str, field: str) -> Step[str]:
    async def process(ctx: StepContext[str], request: Any) -> Respond | Advance[str]:
        value = await _submitted(request, field)
        if not value:
            return Respond(_page(ctx, title, field, error="Required"))
        return Advance(value)

    return Step(render=lambda ctx, _request: _page(ctx, title, field), process=process)


async def _process_age(ctx: StepContext[int], request: Any) -> Respond | Advance[int]:
    raw = await _submitted(request, "age")
    if not raw.isdigit():
        return Respond(_page(ctx, "How old are you?", "age", error="Enter a whole number"))
    return Advance(int(raw))


age_step: Step[int] = Step(
    render=lambda ctx, _request: _page(ctx, "How old are you?", "age"), process=_process_age
)


def summary_step(lines: list[str]) -> Step[str]:
    def render(ctx: StepContext[str], _request: Any) -> HTMLResponse:
        items = "".join(f"<li>{escape(line)}</li>" for line in lines)
        return HTMLResponse(
            f"<h1>All done</h1><ul>{items}</ul>"
            f'<a href="{escape(ctx.restart_handle)}">Start over</a>'
        )

    return Step(render=render, process=lambda ctx, _request: Respond(render(ctx, _request)))


@workflow
def signup():
    name = yield step("name", text_step("What is your name?", "name"), text_codec)
    age = yield step("age", age_step, int_codec)
    if age >= 18:
        plan = yield step("plan", text_step("Which plan?", "plan"), text_codec)
        details = f"Plan: {plan}"
    else:
        guardian = yield step("guardian", text_step("Guardian email?", "guardian"), text_codec)
        details = f"Guardian: {guardian}"
    yield step("done", summary_step([f"Name: {name}", f"Age: {age}", details]), text_codec)


app = create_app(signup(), title="stepwise signup example")


class _Router:
    def resolve_get(self, label: str) -> str:
        return f"/workflow/{label}"

    def resolve_post(self, label: str) -> str:
        return f"/workflow/{label}"


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Walk the signup workflow without HTTP.")
    parser.add_argument("--name", default="Alice", help="Name to submit")
    parser.add_argument("--age", type=int, default=30, help="Age to submit")
    parser.add_argument("--answer", default="basic", help="Plan (adults) or guardian email")
    return parser.parse_args(argv)


async def _walk(args: argparse.Namespace) -> StepSession:
    conf = WorkflowConf(workflow=signup(), router=_Router())
    session = StepSession()
    label = "name"
    answers = {"name": args.name, "age": str(args.age), "plan": args.answer, "guardian": args.answer}
    while label != "done":
        field = label
        result = await handle_post(conf, label, request={field: answers[field]}, session=session)
        if not isinstance(result, Redirect):
            raise SystemExit(f"Step {label!r} rejected the answer {answers[field]!r}")
        session = result.session
        label = result.location.rsplit("/", 1)[-1]
        print(f"-> {result.location}")

    await handle_get(conf, "done", request={}, session=session)
    return session


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    session = asyncio.run(_walk(args))
    print(f"Session: {session.to_dict()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
