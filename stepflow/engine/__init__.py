"""
Engine package - Core workflow orchestration components.
"""

from stepflow.engine.errors import (
    WorkflowError,
    ConfigurationError,
    ContractViolationError,
    StepLimitExceededError,
)
from stepflow.engine.outcome import Outcome, Status
from stepflow.engine.graph import Graph, Node
from stepflow.engine.builder import WorkflowBuilder, NodeBuilder
from stepflow.engine.executor import Executor, ExecutionResult, execute_graph

__all__ = [
    "WorkflowError",
    "ConfigurationError",
    "ContractViolationError",
    "StepLimitExceededError",
    "Outcome",
    "Status",
    "Graph",
    "Node",
    "WorkflowBuilder",
    "NodeBuilder",
    "Executor",
    "ExecutionResult",
    "execute_graph",
]
