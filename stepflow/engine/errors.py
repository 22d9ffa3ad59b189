"""
Exceptions raised by the workflow engine.
"""


class WorkflowError(Exception):
    """Base class for all workflow engine errors."""


class ConfigurationError(WorkflowError, ValueError):
    """Raised when a graph is built with a handler that cannot be resolved."""


class ContractViolationError(WorkflowError, TypeError):
    """Raised when a handler returns something other than an Outcome."""

    def __init__(self, handler_name: str, returned: object):
        self.handler_name = handler_name
        self.returned_type = type(returned).__name__
        super().__init__(
            f"Workflow handler {handler_name} must return an Outcome instance, "
            f"got {self.returned_type}"
        )


class StepLimitExceededError(WorkflowError, RuntimeError):
    """Raised when a traversal runs more handlers than the executor allows."""

    def __init__(self, max_steps: int, handler_name: str):
        self.max_steps = max_steps
        self.handler_name = handler_name
        super().__init__(
            f"Step limit ({max_steps}) exceeded before running '{handler_name}'"
        )
