"""
Tests for the FastAPI endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from stepflow.config import settings
from stepflow.engine.outcome import Outcome, Status
from stepflow.engine.resolver import handler_name_of
from stepflow.main import app
from stepflow.workflows.order_fulfillment import DEMO_WORKFLOW_ID


# ============================================================
# Handlers referenced by dotted name in requests
# ============================================================

class EchoHandler:
    def __call__(self, *args):
        return Outcome.success({"received": list(args[:-1])})


class TagHandler:
    def __call__(self, *args):
        return Outcome.success({"tagged": True})


class BrokenHandler:
    def __call__(self, *args):
        return "not an outcome"


class LoopForeverHandler:
    def __call__(self, *args):
        return Outcome.to(Status.ON_RETRY)


class RaisingHandler:
    def __call__(self, *args):
        raise RuntimeError("connection string: secret")


ECHO = handler_name_of(EchoHandler)
TAG = handler_name_of(TagHandler)
BROKEN = handler_name_of(BrokenHandler)
LOOP = handler_name_of(LoopForeverHandler)
RAISING = handler_name_of(RaisingHandler)


@pytest.fixture(autouse=True)
def allow_test_handlers(monkeypatch):
    monkeypatch.setattr(settings, "HANDLER_MODULES", [*settings.HANDLER_MODULES, __name__])


@pytest.fixture(scope="module")
def client():
    # Entering the context runs the lifespan, which registers the demo workflow
    with TestClient(app) as test_client:
        yield test_client


def create_workflow(client, nodes, name="test_workflow"):
    response = client.post("/workflows/", json={"name": name, "nodes": nodes})
    assert response.status_code == 201, response.text
    return response.json()["workflow_id"]


class TestRootEndpoints:
    """Tests for root endpoints."""

    def test_root(self, client):
        """Test root endpoint."""
        response = client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["name"] == settings.APP_NAME
        assert data["demo_workflow"] == DEMO_WORKFLOW_ID
        assert "endpoints" in data

    def test_health(self, client):
        """Test health endpoint."""
        response = client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["workflows_count"] >= 1


class TestWorkflowEndpoints:
    """Tests for workflow registration and inspection."""

    def test_create_workflow(self, client):
        """Test registering a workflow."""
        response = client.post("/workflows/", json={
            "name": "echo",
            "description": "Echo and tag",
            "nodes": [
                {"handler": ECHO, "transitions": {"onSuccess": TAG}},
                {"handler": TAG},
            ],
        })

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "echo"
        assert data["node_count"] == 2

    def test_create_with_unknown_handler(self, client):
        """Test that unresolvable handlers are rejected."""
        response = client.post("/workflows/", json={
            "name": "bad",
            "nodes": [{"handler": f"{__name__}.MissingHandler"}],
        })

        assert response.status_code == 400
        assert "does not exist" in response.json()["detail"]

    def test_create_with_handler_outside_allowed_modules(self, client):
        """Test that only handlers from HANDLER_MODULES can be registered."""
        response = client.post("/workflows/", json={
            "name": "popen",
            "nodes": [{"handler": "subprocess.Popen"}],
        })

        assert response.status_code == 400
        assert "outside the allowed handler modules" in response.json()["detail"]

    def test_create_with_target_outside_allowed_modules(self, client):
        """Test that transition targets are checked against HANDLER_MODULES too."""
        response = client.post("/workflows/", json={
            "name": "popen_target",
            "nodes": [{"handler": TAG, "transitions": {"onSuccess": "subprocess.Popen"}}],
        })

        assert response.status_code == 400
        assert "subprocess.Popen" in response.json()["detail"]

    def test_allowed_modules_match_whole_segments(self, client, monkeypatch):
        """Test that a prefix does not cover modules that merely share its start."""
        monkeypatch.setattr(settings, "HANDLER_MODULES", ["stepflow.work"])

        response = client.post("/workflows/", json={
            "name": "partial",
            "nodes": [{"handler": "stepflow.workflows.order_fulfillment.ShipOrder"}],
        })

        assert response.status_code == 400

    def test_create_with_malformed_handler(self, client):
        """Test that malformed names answer 400, not 500."""
        response = client.post("/workflows/", json={
            "name": "malformed",
            "nodes": [{"handler": f"{__name__}..Foo"}],
        })

        assert response.status_code == 400
        assert "not a valid dotted name" in response.json()["detail"]

    def test_create_with_unknown_transition_target(self, client):
        """Test that unknown targets are rejected when the workflow is created."""
        response = client.post("/workflows/", json={
            "name": "bad_target",
            "nodes": [{"handler": TAG, "transitions": {"onSuccess": f"{__name__}.MissingHandler"}}],
        })

        assert response.status_code == 400
        assert "does not exist" in response.json()["detail"]

    def test_create_without_nodes(self, client):
        """Test that a workflow needs at least one node."""
        response = client.post("/workflows/", json={"name": "empty", "nodes": []})
        assert response.status_code == 422

    def test_get_workflow(self, client):
        """Test fetching workflow details."""
        workflow_id = create_workflow(client, [
            {"handler": ECHO, "transitions": {"onSuccess": TAG}},
        ])

        response = client.get(f"/workflows/{workflow_id}")
        assert response.status_code == 200

        data = response.json()
        assert data["entry_point"] == ECHO
        assert data["nodes"][0] == {"handler": ECHO, "transitions": {"onSuccess": TAG}}
        assert "EchoHandler -->|onSuccess| TagHandler" in data["mermaid_diagram"]

    def test_get_unknown_workflow(self, client):
        """Test 404 for unknown workflows."""
        response = client.get("/workflows/does-not-exist")
        assert response.status_code == 404

    def test_list_workflows(self, client):
        """Test listing workflows."""
        workflow_id = create_workflow(client, [{"handler": TAG}])

        response = client.get("/workflows/")
        assert response.status_code == 200

        data = response.json()
        ids = [w["workflow_id"] for w in data["workflows"]]
        assert workflow_id in ids
        assert DEMO_WORKFLOW_ID in ids
        assert data["total"] == len(ids)

    def test_delete_workflow(self, client):
        """Test deleting a workflow."""
        workflow_id = create_workflow(client, [{"handler": TAG}])

        assert client.delete(f"/workflows/{workflow_id}").status_code == 204
        assert client.get(f"/workflows/{workflow_id}").status_code == 404
        assert client.delete(f"/workflows/{workflow_id}").status_code == 404


class TestRunEndpoints:
    """Tests for running workflows."""

    def test_run_workflow(self, client):
        """Test running a workflow with arguments."""
        workflow_id = create_workflow(client, [
            {"handler": ECHO, "transitions": {"onSuccess": TAG}},
            {"handler": TAG},
        ])

        response = client.post(
            f"/workflows/{workflow_id}/run",
            json={"arguments": [{"order": 1}, "x"]},
        )
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "completed"
        assert data["result"] == {"received": [{"order": 1}, "x"], "tagged": True}
        assert list(data["call_stack"]) == ["EchoHandler", "TagHandler"]
        assert data["call_stack"]["TagHandler"] == {
            "status": "success",
            "transition": None,
            "data": {"tagged": True},
        }

        run = client.get(f"/workflows/runs/{data['run_id']}").json()
        assert run["status"] == "completed"
        assert run["arguments"] == [{"order": 1}, "x"]
        assert run["result"] == data["result"]

    def test_run_demo_workflow(self, client):
        """Test the pre-registered order fulfillment workflow."""
        order = {"order_id": "B7", "amount": 20.0, "items": ["lamp"], "declines": 1}

        response = client.post(f"/workflows/{DEMO_WORKFLOW_ID}/run", json={"arguments": [order]})
        assert response.status_code == 200

        data = response.json()
        assert list(data["call_stack"]) == [
            "ValidateOrder", "ChargePayment", "ShipOrder", "SendConfirmation",
        ]
        assert data["result"]["payment_attempts"] == 2
        assert data["result"]["shipment"] == "SHP-B7"

    def test_run_unknown_workflow(self, client):
        """Test 404 when running an unknown workflow."""
        response = client.post("/workflows/nope/run", json={"arguments": []})
        assert response.status_code == 404

    def test_contract_violation(self, client):
        """Test that a broken handler fails the run."""
        workflow_id = create_workflow(client, [
            {"handler": TAG, "transitions": {"onSuccess": BROKEN}},
        ])

        response = client.post(f"/workflows/{workflow_id}/run", json={})
        assert response.status_code == 500
        assert "BrokenHandler" in response.json()["detail"]

        runs = client.get("/workflows/runs", params={"workflow_id": workflow_id}).json()
        assert runs["total"] == 1
        assert runs["runs"][0]["status"] == "failed"
        assert runs["runs"][0]["result"] is None
        assert "str" in runs["runs"][0]["error"]

    def test_step_limit(self, client, monkeypatch):
        """Test that endless loops are cut off by MAX_STEPS."""
        monkeypatch.setattr(settings, "MAX_STEPS", 10)
        workflow_id = create_workflow(client, [
            {"handler": LOOP, "transitions": {"onRetry": LOOP}},
        ])

        response = client.post(f"/workflows/{workflow_id}/run", json={"arguments": []})
        assert response.status_code == 422
        assert "Step limit (10)" in response.json()["detail"]

    def test_handler_error_detail(self, client, monkeypatch):
        """Test that handler errors are only exposed in debug mode."""
        workflow_id = create_workflow(client, [{"handler": RAISING}])

        response = client.post(f"/workflows/{workflow_id}/run", json={})
        assert response.status_code == 500
        assert "secret" in response.json()["detail"]

        monkeypatch.setattr(settings, "DEBUG", False)
        response = client.post(f"/workflows/{workflow_id}/run", json={})
        assert response.status_code == 500
        assert response.json()["detail"] == "An unexpected error occurred"

        runs = client.get("/workflows/runs", params={"workflow_id": workflow_id}).json()
        assert [r["status"] for r in runs["runs"]] == ["failed", "failed"]
        assert all("secret" in r["error"] for r in runs["runs"])

    def test_get_unknown_run(self, client):
        """Test 404 for unknown runs."""
        response = client.get("/workflows/runs/unknown-run")
        assert response.status_code == 404
