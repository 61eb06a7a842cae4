"""Off-chain arbiter: evidence, model panel, consensus and signed verdict output."""

from .bootstrap import build_workflow
from .config import WorkflowConfig
from .errors import ArbitrationError
from .workflow import ArbitrationWorkflow, PendingRunReport, WorkflowResult, WorkflowStage

__all__ = [
    "ArbitrationError",
    "ArbitrationWorkflow",
    "PendingRunReport",
    "WorkflowConfig",
    "WorkflowResult",
    "WorkflowStage",
    "build_workflow",
]
