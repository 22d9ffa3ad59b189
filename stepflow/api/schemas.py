"""
Pydantic Schemas for API Request/Response Models.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum


# ============================================================
# Enums
# ============================================================

class RunStatus(str, Enum):
    """Status of a workflow run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


# ============================================================
# Workflow Schemas
# ============================================================

class NodeDefinition(BaseModel):
    """Definition of a node in the workflow."""
    handler: str = Field(..., description="Dotted path of the handler class")
    transitions: Dict[str, Optional[str]] = Field(
        default_factory=dict,
        description="Transition key (onSuccess, onFail, onRetry, ...) -> handler path",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "handler": "stepflow.workflows.order_fulfillment.ChargePayment",
                "transitions": {
                    "onSuccess": "stepflow.workflows.order_fulfillment.ShipOrder",
                    "onFail": "stepflow.workflows.order_fulfillment.NotifyFailure",
                    "onRetry": "stepflow.workflows.order_fulfillment.ChargePayment",
                },
            }
        }


class WorkflowCreateRequest(BaseModel):
    """Request to register a new workflow."""
    name: str = Field(..., description="Name of the workflow")
    description: Optional[str] = Field(None, description="What this workflow does")
    nodes: List[NodeDefinition] = Field(
        ...,
        min_length=1,
        description="Nodes in order; the first one is the entry point",
    )


class WorkflowCreateResponse(BaseModel):
    """Response after registering a workflow."""
    workflow_id: str
    name: str
    message: str = Field(default="Workflow created successfully")
    node_count: int


class WorkflowInfoResponse(BaseModel):
    """Response with workflow information."""
    workflow_id: str
    name: str
    description: Optional[str]
    node_count: int
    nodes: List[NodeDefinition]
    entry_point: Optional[str]
    created_at: str
    mermaid_diagram: Optional[str] = Field(None, description="Mermaid diagram of the workflow")


class WorkflowListResponse(BaseModel):
    """Response listing all workflows."""
    workflows: List[WorkflowInfoResponse]
    total: int


# ============================================================
# Run Schemas
# ============================================================

class WorkflowRunRequest(BaseModel):
    """Request to run a workflow."""
    arguments: List[Any] = Field(
        default_factory=list,
        description="Positional arguments passed to every handler",
    )

    class Config:
        json_schema_extra = {
            "example": {
                "arguments": [{"order_id": "A-1001", "amount": 49.9, "items": ["book"]}]
            }
        }


class OutcomeInfo(BaseModel):
    """A handler's Outcome as recorded in the call stack."""
    status: str
    transition: Optional[str]
    data: Any = None


class WorkflowRunResponse(BaseModel):
    """Response after running a workflow."""
    run_id: str
    workflow_id: str
    status: RunStatus
    result: Dict[str, Any]
    call_stack: Dict[str, OutcomeInfo]


class RunStateResponse(BaseModel):
    """Stored record of a run."""
    run_id: str
    workflow_id: str
    status: RunStatus
    arguments: List[Any]
    result: Optional[Dict[str, Any]]
    call_stack: Dict[str, OutcomeInfo]
    started_at: str
    completed_at: Optional[str]
    error: Optional[str]


class RunListResponse(BaseModel):
    """Response listing runs."""
    runs: List[RunStateResponse]
    total: int


# ============================================================
# Error Schemas
# ============================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
