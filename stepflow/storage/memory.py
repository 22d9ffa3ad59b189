"""
In-Memory Storage for StepFlow.

Holds registered workflow definitions and the records of finished runs.
Nothing survives a restart; a database implementation can replace it.
"""

from typing import Any, Dict, List, Optional
from datetime import datetime
import asyncio
from dataclasses import dataclass, field

from stepflow.config import settings


@dataclass
class StoredWorkflow:
    """A stored workflow definition (``Graph.to_dict`` output)."""
    workflow_id: str
    name: str
    definition: Dict[str, Any]
    description: str = ""
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workflow_id": self.workflow_id,
            "name": self.name,
            "description": self.description,
            "definition": self.definition,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class StoredRun:
    """A stored workflow run."""
    run_id: str
    workflow_id: str
    status: str
    arguments: List[Any]
    result: Optional[Dict[str, Any]] = None
    call_stack: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status,
            "arguments": self.arguments,
            "result": self.result,
            "call_stack": self.call_stack,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }


class WorkflowStorage:
    """
    Lock-protected in-memory storage for workflow definitions.
    """

    def __init__(self):
        self._workflows: Dict[str, StoredWorkflow] = {}
        self._lock = asyncio.Lock()

    async def save(
        self,
        workflow_id: str,
        name: str,
        definition: Dict[str, Any],
        description: str = "",
    ) -> StoredWorkflow:
        """
        Save a workflow definition, replacing any with the same ID.

        Args:
            workflow_id: Unique workflow identifier
            name: Workflow name
            definition: Serialized graph
            description: Human-readable description

        Returns:
            The stored workflow
        """
        async with self._lock:
            stored = StoredWorkflow(
                workflow_id=workflow_id,
                name=name,
                definition=definition,
                description=description,
            )
            self._workflows[workflow_id] = stored
            return stored

    async def get(self, workflow_id: str) -> Optional[StoredWorkflow]:
        """Get a workflow by ID."""
        async with self._lock:
            return self._workflows.get(workflow_id)

    async def delete(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        async with self._lock:
            if workflow_id in self._workflows:
                del self._workflows[workflow_id]
                return True
            return False

    async def list_all(self) -> List[StoredWorkflow]:
        """List all stored workflows."""
        async with self._lock:
            return list(self._workflows.values())

    def __len__(self) -> int:
        return len(self._workflows)


class RunStorage:
    """
    Lock-protected in-memory storage for workflow runs.

    At most ``max_runs`` records are kept; once the limit is passed the
    oldest finished runs are dropped. Running runs are never dropped.
    ``None`` keeps everything.
    """

    def __init__(self, max_runs: Optional[int] = None):
        self.max_runs = max_runs
        self._runs: Dict[str, StoredRun] = {}
        self._lock = asyncio.Lock()

    async def create(
        self,
        run_id: str,
        workflow_id: str,
        arguments: List[Any],
    ) -> StoredRun:
        """Record a run that is about to start."""
        async with self._lock:
            stored = StoredRun(
                run_id=run_id,
                workflow_id=workflow_id,
                status="running",
                arguments=list(arguments),
            )
            self._runs[run_id] = stored
            self._evict()
            return stored

    async def get(self, run_id: str) -> Optional[StoredRun]:
        """Get a run by ID."""
        async with self._lock:
            return self._runs.get(run_id)

    async def complete(
        self,
        run_id: str,
        result: Dict[str, Any],
        call_stack: Dict[str, Any],
    ) -> Optional[StoredRun]:
        """Mark a run as completed."""
        async with self._lock:
            if run_id not in self._runs:
                return None
            stored = self._runs[run_id]
            stored.status = "completed"
            stored.result = result
            stored.call_stack = call_stack
            stored.completed_at = datetime.now()
            return stored

    async def fail(self, run_id: str, error: str) -> Optional[StoredRun]:
        """Mark a run as failed. Failed runs keep no partial result."""
        async with self._lock:
            if run_id not in self._runs:
                return None
            stored = self._runs[run_id]
            stored.status = "failed"
            stored.error = error
            stored.completed_at = datetime.now()
            return stored

    async def list_all(self) -> List[StoredRun]:
        """List all runs."""
        async with self._lock:
            return list(self._runs.values())

    async def list_by_workflow(self, workflow_id: str) -> List[StoredRun]:
        """List all runs of a specific workflow."""
        async with self._lock:
            return [r for r in self._runs.values() if r.workflow_id == workflow_id]

    def _evict(self) -> None:
        """Drop the oldest finished runs while over ``max_runs``. Caller holds the lock."""
        if self.max_runs is None:
            return
        for run_id in list(self._runs):
            if len(self._runs) <= self.max_runs:
                break
            if self._runs[run_id].status != "running":
                del self._runs[run_id]

    def __len__(self) -> int:
        return len(self._runs)


# Global storage instances
workflow_storage = WorkflowStorage()
run_storage = RunStorage(max_runs=settings.MAX_STORED_RUNS)
