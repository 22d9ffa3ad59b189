"""
Workflow API Routes.

Endpoints for registering, inspecting and running workflows.
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, status
from uuid import uuid4
import asyncio
import functools
import logging

from stepflow.api.schemas import (
    ErrorResponse,
    NodeDefinition,
    OutcomeInfo,
    RunListResponse,
    RunStateResponse,
    RunStatus,
    WorkflowCreateRequest,
    WorkflowCreateResponse,
    WorkflowInfoResponse,
    WorkflowListResponse,
    WorkflowRunRequest,
    WorkflowRunResponse,
)
from stepflow.config import settings
from stepflow.engine.errors import (
    ConfigurationError,
    ContractViolationError,
    StepLimitExceededError,
)
from stepflow.engine.executor import Executor
from stepflow.engine.graph import Graph
from stepflow.storage.memory import StoredRun, StoredWorkflow, run_storage, workflow_storage


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflows", tags=["Workflows"])


def check_handler_allowed(handler_name: str) -> None:
    """
    Reject handlers outside the modules listed in ``settings.HANDLER_MODULES``.

    Checked before anything is imported.

    Raises:
        ConfigurationError: If no allowed prefix covers the handler
    """
    for prefix in settings.HANDLER_MODULES:
        if handler_name.startswith(prefix + "."):
            return
    raise ConfigurationError(
        f'Handler class "{handler_name}" is outside the allowed handler modules'
    )


# ============================================================
# Workflow CRUD Endpoints
# ============================================================

@router.post(
    "/",
    response_model=WorkflowCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse, "description": "Unknown handler class"}},
)
async def create_workflow(request: WorkflowCreateRequest) -> WorkflowCreateResponse:
    """
    Register a new workflow.

    Handlers are given as dotted class paths that must be importable by
    the server. The first node is where every run starts.
    """
    workflow_id = str(uuid4())
    graph = Graph(name=request.name, graph_id=workflow_id)

    try:
        for node_def in request.nodes:
            check_handler_allowed(node_def.handler)
            for target in node_def.transitions.values():
                if target is not None:
                    check_handler_allowed(target)
            graph.add_node(node_def.handler, node_def.transitions)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    await workflow_storage.save(
        workflow_id=workflow_id,
        name=request.name,
        definition=graph.to_dict(),
        description=request.description or "",
    )

    logger.info(f"Created workflow: {workflow_id} ({request.name})")

    return WorkflowCreateResponse(
        workflow_id=workflow_id,
        name=request.name,
        node_count=len(graph),
    )


@router.get("/", response_model=WorkflowListResponse)
async def list_workflows() -> WorkflowListResponse:
    """List all registered workflows."""
    workflows = await workflow_storage.list_all()
    infos = [_workflow_info(stored, with_diagram=False) for stored in workflows]
    return WorkflowListResponse(workflows=infos, total=len(infos))


# ============================================================
# Run State Endpoints
# ============================================================

@router.get("/runs", response_model=RunListResponse)
async def list_runs(workflow_id: Optional[str] = None) -> RunListResponse:
    """List all runs, optionally filtered by workflow_id."""
    if workflow_id:
        runs = await run_storage.list_by_workflow(workflow_id)
    else:
        runs = await run_storage.list_all()

    states = [_run_state(stored) for stored in runs]
    return RunListResponse(runs=states, total=len(states))


@router.get(
    "/runs/{run_id}",
    response_model=RunStateResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_run(run_id: str) -> RunStateResponse:
    """Get the record of a workflow run."""
    stored = await run_storage.get(run_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Run '{run_id}' not found")
    return _run_state(stored)


@router.get(
    "/{workflow_id}",
    response_model=WorkflowInfoResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_workflow(workflow_id: str) -> WorkflowInfoResponse:
    """Get information about a specific workflow."""
    stored = await workflow_storage.get(workflow_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    return _workflow_info(stored, with_diagram=True)


@router.delete(
    "/{workflow_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
)
async def delete_workflow(workflow_id: str):
    """Delete a workflow."""
    deleted = await workflow_storage.delete(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")
    logger.info(f"Deleted workflow: {workflow_id}")


def _workflow_info(stored: StoredWorkflow, with_diagram: bool) -> WorkflowInfoResponse:
    definition = stored.definition
    nodes = definition.get("nodes", [])
    return WorkflowInfoResponse(
        workflow_id=stored.workflow_id,
        name=stored.name,
        description=stored.description or None,
        node_count=len(nodes),
        nodes=[NodeDefinition(**node) for node in nodes],
        entry_point=definition.get("entry_point"),
        created_at=stored.created_at.isoformat(),
        mermaid_diagram=Graph.from_dict(definition).to_mermaid() if with_diagram else None,
    )


# ============================================================
# Execution Endpoints
# ============================================================

@router.post(
    "/{workflow_id}/run",
    response_model=WorkflowRunResponse,
    responses={
        404: {"model": ErrorResponse},
        422: {"model": ErrorResponse, "description": "Step limit exceeded"},
        500: {"model": ErrorResponse, "description": "Execution failed"},
    },
)
async def run_workflow(workflow_id: str, request: WorkflowRunRequest) -> WorkflowRunResponse:
    """
    Run a workflow to completion.

    Every handler receives the request's ``arguments`` followed by the
    data accumulated so far. The traversal runs in a worker thread.
    """
    stored = await workflow_storage.get(workflow_id)
    if not stored:
        raise HTTPException(status_code=404, detail=f"Workflow '{workflow_id}' not found")

    graph = Graph.from_dict(stored.definition)
    executor = Executor(max_steps=settings.MAX_STEPS)

    run_id = str(uuid4())
    await run_storage.create(run_id, workflow_id, request.arguments)

    loop = asyncio.get_running_loop()
    try:
        result = await loop.run_in_executor(
            None,
            functools.partial(executor.execute, graph, *request.arguments),
        )
    except StepLimitExceededError as e:
        await run_storage.fail(run_id, str(e))
        raise HTTPException(status_code=422, detail=str(e))
    except ContractViolationError as e:
        await run_storage.fail(run_id, str(e))
        raise HTTPException(status_code=500, detail=str(e))
    except Exception as e:
        logger.exception(f"Run {run_id} of workflow {workflow_id} failed: {e}")
        await run_storage.fail(run_id, str(e))
        raise HTTPException(
            status_code=500,
            detail=str(e) if settings.DEBUG else "An unexpected error occurred",
        )

    payload = result.to_dict()
    await run_storage.complete(run_id, payload["result"], payload["call_stack"])

    return WorkflowRunResponse(
        run_id=run_id,
        workflow_id=workflow_id,
        status=RunStatus.COMPLETED,
        result=payload["result"],
        call_stack={
            label: OutcomeInfo(**outcome)
            for label, outcome in payload["call_stack"].items()
        },
    )


def _run_state(stored: StoredRun) -> RunStateResponse:
    return RunStateResponse(
        run_id=stored.run_id,
        workflow_id=stored.workflow_id,
        status=RunStatus(stored.status),
        arguments=stored.arguments,
        result=stored.result,
        call_stack={
            label: OutcomeInfo(**outcome)
            for label, outcome in stored.call_stack.items()
        },
        started_at=stored.started_at.isoformat(),
        completed_at=stored.completed_at.isoformat() if stored.completed_at else None,
        error=stored.error,
    )
