"""FastAPI server adapter for stepwise.

Design intent:
- Keep traversal logic in `stepwise.workflow.*`
- Keep server-specific concerns (routing, cookies, session storage) here
"""

from __future__ import annotations

__all__ = [
    "PathStepRouter",
    "SessionStore",
    "create_app",
    "create_workflow_router",
    "form_data",
]

from stepwise.server.app import create_app, create_workflow_router, form_data
from stepwise.server.routing import PathStepRouter
from stepwise.server.session_store import SessionStore
