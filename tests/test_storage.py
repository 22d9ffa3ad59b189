"""
Tests for the in-memory storage.
"""

import pytest

from stepflow.storage.memory import RunStorage, WorkflowStorage


class TestWorkflowStorage:
    """Tests for WorkflowStorage."""

    @pytest.mark.asyncio
    async def test_save_and_get(self):
        """Test saving and fetching a workflow."""
        storage = WorkflowStorage()
        await storage.save("wf-1", "checkout", {"nodes": []}, description="demo")

        stored = await storage.get("wf-1")
        assert stored.name == "checkout"
        assert stored.description == "demo"
        assert stored.to_dict()["definition"] == {"nodes": []}
        assert len(storage) == 1

    @pytest.mark.asyncio
    async def test_get_missing(self):
        """Test that unknown IDs return None."""
        assert await WorkflowStorage().get("missing") is None

    @pytest.mark.asyncio
    async def test_delete_and_list(self):
        """Test deleting and listing workflows."""
        storage = WorkflowStorage()
        await storage.save("a", "A", {})
        await storage.save("b", "B", {})

        assert await storage.delete("a") is True
        assert await storage.delete("a") is False
        assert [w.workflow_id for w in await storage.list_all()] == ["b"]


class TestRunStorage:
    """Tests for RunStorage."""

    @pytest.mark.asyncio
    async def test_complete(self):
        """Test the lifecycle of a successful run."""
        storage = RunStorage()
        run = await storage.create("run-1", "wf-1", [{"id": 1}])
        assert run.status == "running"

        await storage.complete("run-1", {"x": 1}, {"Step": {"status": "success"}})

        stored = await storage.get("run-1")
        assert stored.status == "completed"
        assert stored.result == {"x": 1}
        assert stored.completed_at is not None

    @pytest.mark.asyncio
    async def test_fail(self):
        """Test that failed runs keep the error and no result."""
        storage = RunStorage()
        await storage.create("run-1", "wf-1", [])

        stored = await storage.fail("run-1", "boom")

        assert stored.status == "failed"
        assert stored.error == "boom"
        assert stored.result is None
        assert stored.to_dict()["error"] == "boom"

    @pytest.mark.asyncio
    async def test_unknown_run(self):
        """Test updates on unknown runs."""
        storage = RunStorage()
        assert await storage.complete("nope", {}, {}) is None
        assert await storage.fail("nope", "x") is None

    @pytest.mark.asyncio
    async def test_list_by_workflow(self):
        """Test filtering runs by workflow."""
        storage = RunStorage()
        await storage.create("r1", "wf-1", [])
        await storage.create("r2", "wf-2", [])
        await storage.create("r3", "wf-1", [])

        runs = await storage.list_by_workflow("wf-1")
        assert [r.run_id for r in runs] == ["r1", "r3"]
        assert len(storage) == 3

    @pytest.mark.asyncio
    async def test_max_runs_drops_oldest_finished(self):
        """Test that the run cap evicts the oldest finished runs first."""
        storage = RunStorage(max_runs=2)
        await storage.create("r1", "wf-1", [])
        await storage.create("r2", "wf-1", [])
        await storage.complete("r2", {}, {})
        await storage.fail("r1", "boom")

        await storage.create("r3", "wf-1", [])

        assert [r.run_id for r in await storage.list_all()] == ["r2", "r3"]

    @pytest.mark.asyncio
    async def test_max_runs_keeps_running_runs(self):
        """Test that runs still in progress are never evicted."""
        storage = RunStorage(max_runs=1)
        await storage.create("r1", "wf-1", [])
        await storage.create("r2", "wf-1", [])

        assert len(storage) == 2

        await storage.complete("r1", {}, {})
        await storage.create("r3", "wf-1", [])

        assert [r.run_id for r in await storage.list_all()] == ["r2", "r3"]
