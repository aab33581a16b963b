"""FastAPI adapter for serving a workflow.

Endpoints are thin wrappers over :mod:`stepwise.workflow.sequencer`: they
load the caller's session, hand the request to the engine, and turn its
result back into an HTTP response.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket
from fastapi.encoders import jsonable_encoder
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from stepwise import __version__
from stepwise.config import WorkflowSettings
from stepwise.logging import configure_logging
from stepwise.server.routing import PathStepRouter
from stepwise.server.session_store import SessionStore, new_session_id
from stepwise.workflow.definition import Workflow
from stepwise.workflow.errors import (
    DecodeError,
    MissingStepValueError,
    UnsupportedStreamError,
    WorkflowError,
)
from stepwise.workflow.sequencer import (
    Redirect,
    WorkflowConf,
    handle_get,
    handle_post,
    handle_stream,
)
from stepwise.workflow.session import StepSession

logger = logging.getLogger(__name__)

# RFC 6455: the endpoint received data it cannot accept.
WS_UNSUPPORTED = 1003
WS_INTERNAL_ERROR = 1011


async def form_data(request: Request) -> dict[str, str]:
    """Submitted form fields (urlencoded or multipart); file uploads are left out."""

    form = await request.form()
    return {key: value for key, value in form.items() if isinstance(value, str)}


def _status_for(exc: WorkflowError) -> int:
    if isinstance(exc, MissingStepValueError):
        return 409
    if isinstance(exc, DecodeError):
        return 400
    if isinstance(exc, UnsupportedStreamError):
        return 404
    return 500


def _http_error(exc: WorkflowError) -> HTTPException:
    status = _status_for(exc)
    if status >= 500:
        logger.error("Workflow misconfigured", extra={"step_label": exc.label}, exc_info=exc)
    else:
        logger.info(
            "Workflow request rejected", extra={"step_label": exc.label, "reason": str(exc)}
        )
    return HTTPException(status_code=status, detail=str(exc))


def _to_response(result: Any) -> Response:
    if isinstance(result, Response):
        return result
    if isinstance(result, str):
        return HTMLResponse(result)
    return JSONResponse(jsonable_encoder(result))


def create_workflow_router(
    workflow: Workflow[Any],
    *,
    settings: WorkflowSettings,
    store: SessionStore,
    prefix: str = "",
) -> APIRouter:
    """Serve ``workflow`` at ``{prefix}/{label}``.

    GET renders a step, POST submits it, and ``{prefix}/{label}/stream`` is a
    websocket for steps with a stream handler.
    """

    conf = WorkflowConf(
        workflow=workflow,
        router=PathStepRouter(prefix),
        restart_label=settings.restart_label,
        detect_duplicate_labels=settings.detect_duplicate_labels,
        logger=logging.getLogger("stepwise.workflow"),
    )
    cookie = settings.session_cookie
    router = APIRouter(prefix=prefix)

    async def load(connection: Request | WebSocket) -> StepSession:
        return await run_in_threadpool(store.get, connection.cookies.get(cookie))

    async def finish(request: Request, result: Any) -> Response:
        session_id = request.cookies.get(cookie)
        if not isinstance(result, Redirect):
            return _to_response(result)

        location = result.location
        entries = _entries(result)
        if result.reset:
            if session_id is not None:
                await run_in_threadpool(store.discard, session_id)
            session_id = None
            if request.url.query:
                location = f"{location}?{request.url.query}"

        response = RedirectResponse(location, status_code=303)
        if not entries:
            # Nothing to remember yet; a session id is minted on the first stored value.
            response.delete_cookie(cookie)
            return response

        if session_id is None:
            session_id = new_session_id()
        await run_in_threadpool(store.save, session_id, StepSession.from_mapping(entries))
        response.set_cookie(cookie, session_id, httponly=True, samesite="lax")
        return response

    @router.get("/{label}", response_model=None)
    async def get_step(label: str, request: Request) -> Response:
        session = await load(request)
        try:
            result = await handle_get(conf, label, request=request, session=session)
        except WorkflowError as exc:
            raise _http_error(exc) from exc
        return await finish(request, result)

    @router.post("/{label}", response_model=None)
    async def post_step(label: str, request: Request) -> Response:
        session = await load(request)
        try:
            result = await handle_post(conf, label, request=request, session=session)
        except WorkflowError as exc:
            raise _http_error(exc) from exc
        return await finish(request, result)

    @router.websocket("/{label}/stream")
    async def stream_step(websocket: WebSocket, label: str) -> None:
        session = await load(websocket)
        try:
            binding = handle_stream(conf, label, request=websocket, session=session)
        except UnsupportedStreamError:
            await websocket.close(code=WS_UNSUPPORTED)
            return
        except WorkflowError as exc:
            logger.info(
                "Workflow stream rejected", extra={"step_label": exc.label, "reason": str(exc)}
            )
            await websocket.close(code=WS_INTERNAL_ERROR)
            return

        await websocket.accept()
        await binding(websocket)

    return router


def _entries(result: Redirect) -> dict[str, str]:
    session = result.session
    if isinstance(session, StepSession):
        return session.to_dict()
    to_dict = getattr(session, "to_dict", None)
    if callable(to_dict):
        return dict(to_dict())
    raise TypeError(f"Cannot persist session of type {type(session).__name__}")


def create_app(
    workflow: Workflow[Any],
    settings: WorkflowSettings | None = None,
    *,
    prefix: str = "/workflow",
    title: str = "stepwise",
) -> FastAPI:
    settings = settings or WorkflowSettings()
    configure_logging(settings.log_level)

    app = FastAPI(title=title, version=__version__)

    store = SessionStore(settings.session_state_file, max_sessions=settings.max_sessions)

    # Expose settings and sessions for request handlers that want to read them.
    app.state.settings = settings
    app.state.session_store = store

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    app.include_router(
        create_workflow_router(workflow, settings=settings, store=store, prefix=prefix)
    )
    return app
