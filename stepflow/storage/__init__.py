"""
Storage package - In-memory storage for workflows and runs.
"""

from stepflow.storage.memory import (
    WorkflowStorage,
    RunStorage,
    workflow_storage,
    run_storage,
)

__all__ = [
    "WorkflowStorage",
    "RunStorage",
    "workflow_storage",
    "run_storage",
]
