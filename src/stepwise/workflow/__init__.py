"""Declarative multi-step workflows driven one request at a time.

This package provides:
- step definitions and the per-request context they receive
- lazy, composable workflow definitions
- codecs for storing step values in a session
- the sequencer that replays a session to locate and run a step
"""

from __future__ import annotations

from .codec import Codec, bool_codec, int_codec, json_codec, text_codec
from .definition import FlatMap, Pure, StepNode, Workflow, pure, step, workflow
from .errors import (
    DecodeError,
    DuplicateLabelError,
    FlowExhaustedError,
    MissingStepValueError,
    UnsupportedStreamError,
    WorkflowError,
)
from .sequencer import (
    RESTART_LABEL,
    Redirect,
    StreamBinding,
    WorkflowConf,
    first_label,
    handle_get,
    handle_post,
    handle_stream,
    reachable_labels,
    validate_labels,
)
from .session import Session, StepSession
from .step import Advance, Handle, Respond, Step, StepContext, StepRouter

__all__ = [
    "RESTART_LABEL",
    "Advance",
    "Codec",
    "DecodeError",
    "DuplicateLabelError",
    "FlatMap",
    "FlowExhaustedError",
    "Handle",
    "MissingStepValueError",
    "Pure",
    "Redirect",
    "Respond",
    "Session",
    "Step",
    "StepContext",
    "StepNode",
    "StepRouter",
    "StepSession",
    "StreamBinding",
    "UnsupportedStreamError",
    "Workflow",
    "WorkflowConf",
    "WorkflowError",
    "bool_codec",
    "first_label",
    "handle_get",
    "handle_post",
    "handle_stream",
    "int_codec",
    "json_codec",
    "pure",
    "reachable_labels",
    "step",
    "text_codec",
    "validate_labels",
    "workflow",
]
