"""Error taxonomy for workflow traversal.

Every failure is local to the request that triggered it. The engine raises,
the host transport decides how to present it.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for workflow traversal failures."""

    def __init__(self, message: str, *, label: str | None = None) -> None:
        super().__init__(message)
        self.label = label


class FlowExhaustedError(WorkflowError):
    """The workflow finished while a step was still expected."""


class MissingStepValueError(WorkflowError):
    """A prior step's value is not in the session."""


class DecodeError(WorkflowError):
    """A stored session value could not be decoded by the step's codec."""


class UnsupportedStreamError(WorkflowError):
    """A stream was requested on a step without a stream handler."""


class DuplicateLabelError(WorkflowError):
    """Two nodes on the same traversal path share a label."""
