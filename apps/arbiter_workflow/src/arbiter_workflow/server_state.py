from __future__ import annotations

from dataclasses import dataclass

from .bootstrap import build_workflow
from .config import WorkflowConfig
from .storage import VerdictStorage
from .workflow import ArbitrationWorkflow


@dataclass(slots=True)
class ArbiterState:
    config: WorkflowConfig
    workflow: ArbitrationWorkflow | None = None
    storage: VerdictStorage | None = None

    def get_storage(self) -> VerdictStorage | None:
        if self.storage is None and self.workflow is not None:
            self.storage = self.workflow.storage
        if self.storage is None and self.config.sqlite_path:
            self.storage = VerdictStorage(self.config.sqlite_path)
        return self.storage

    def get_workflow(self) -> ArbitrationWorkflow:
        """Built on first use so the read-only routes work without secrets."""
        if self.workflow is None:
            self.workflow = build_workflow(self.config, storage=self.get_storage())
        return self.workflow
