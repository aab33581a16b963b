"""stepwise.

Declarative multi-step workflows for request/response applications:
- workflows built from labeled steps, branching on earlier steps' values
- per-step values kept in the client's session
- deterministic replay to any step on later requests
"""

__version__ = "0.1.0"

from stepwise.config import WorkflowSettings
from stepwise.workflow import (
    Advance,
    Respond,
    Step,
    StepContext,
    Workflow,
    WorkflowConf,
    pure,
    step,
    workflow,
)

__all__ = [
    "__version__",
    "Advance",
    "Respond",
    "Step",
    "StepContext",
    "Workflow",
    "WorkflowConf",
    "WorkflowSettings",
    "pure",
    "step",
    "workflow",
]
