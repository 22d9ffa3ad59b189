"""
Synchronous Workflow Executor.

The executor walks a graph from its entry point: it builds each handler,
calls it, folds the returned data into the accumulated result and follows
the transition the handler's Outcome selects, until no route is left.
"""

from typing import Any, Dict, List, Mapping, Optional
from dataclasses import dataclass, field
import logging

from stepflow.engine.errors import ContractViolationError, StepLimitExceededError
from stepflow.engine.graph import Graph
from stepflow.engine.outcome import Outcome, Status
from stepflow.engine.resolver import HandlerFactory, default_factory, short_label


logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """
    Result of a workflow traversal.

    Attributes:
        result: Merged data of every handler, in execution order
        call_stack: Short handler label -> Outcome, in execution order
    """
    result: Dict[str, Any] = field(default_factory=dict)
    call_stack: Dict[str, Outcome] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result,
            "call_stack": {
                label: outcome.to_dict()
                for label, outcome in self.call_stack.items()
            },
        }


def route_key(outcome: Outcome) -> str:
    """
    Transition key an Outcome routes through.

    An explicit transition always wins. Otherwise plain success goes through
    onSuccess and everything else through onFail.
    """
    if outcome.has_explicit_transition():
        return outcome.transition.value
    if outcome.is_success():
        return Status.ON_SUCCESS.value
    return Status.ON_FAIL.value


class Executor:
    """
    Workflow executor.

    The executor holds no per-run state, so one instance can run any number
    of graphs. Handlers are built by ``handler_factory``, which receives the
    dotted handler name; by default the class is imported and instantiated
    without arguments.

    ``max_steps`` bounds the number of handlers a single traversal may run.
    It is off by default: a graph whose transitions loop forever runs forever.

    Usage:
        executor = Executor()
        result = executor.execute(graph, order)
        result.result        # merged data
        result.call_stack    # {"PaymentHandler": Outcome(...), ...}
    """

    def __init__(
        self,
        handler_factory: Optional[HandlerFactory] = None,
        max_steps: Optional[int] = None,
    ):
        self.handler_factory = handler_factory or default_factory
        self.max_steps = max_steps

    def execute(self, graph: Graph, *arguments: Any) -> ExecutionResult:
        """
        Run the graph.

        Each handler is called with ``arguments`` followed by the data
        accumulated so far.

        Args:
            graph: The workflow graph
            *arguments: Positional arguments passed to every handler

        Returns:
            ExecutionResult with the accumulated data and the call stack

        Raises:
            ContractViolationError: If a handler does not return an Outcome
            StepLimitExceededError: If ``max_steps`` is set and exceeded
        """
        accumulated: Dict[str, Any] = {}
        call_stack: Dict[str, Outcome] = {}
        parameters: List[Any] = [*arguments, accumulated]

        handler_name = graph.entry_point
        steps = 0

        logger.info(f"Executing workflow '{graph.name}' from {handler_name}")

        while handler_name is not None:
            if self.max_steps is not None and steps >= self.max_steps:
                raise StepLimitExceededError(self.max_steps, handler_name)

            handler = self.handler_factory(handler_name)
            if not callable(handler):
                logger.debug(f"Handler {handler_name} is not callable, stopping")
                break

            outcome = handler(*parameters)
            steps += 1

            if not isinstance(outcome, Outcome):
                logger.error(
                    f"Handler {handler_name} returned {type(outcome).__name__}, "
                    f"aborting workflow '{graph.name}'"
                )
                raise ContractViolationError(handler_name, outcome)

            call_stack[short_label(handler_name)] = outcome

            if isinstance(outcome.data, Mapping) and outcome.data:
                accumulated = {**accumulated, **outcome.data}
                parameters[-1] = accumulated

            handler_name = self._next_handler(graph, handler_name, outcome)

        logger.info(
            f"Workflow '{graph.name}' finished after {steps} step(s): "
            f"{list(call_stack)}"
        )
        return ExecutionResult(result=accumulated, call_stack=call_stack)

    def _next_handler(
        self,
        graph: Graph,
        handler_name: str,
        outcome: Outcome,
    ) -> Optional[str]:
        """Successor of ``handler_name`` for the given outcome, if any."""
        transitions = graph.get_transitions(handler_name)
        if transitions is None:
            logger.debug(f"{handler_name} is not part of the graph, stopping")
            return None

        key = route_key(outcome)
        next_handler = transitions.get(key)
        logger.debug(f"Route {short_label(handler_name)} --{key}--> {next_handler}")
        return next_handler


def execute_graph(
    graph: Graph,
    *arguments: Any,
    handler_factory: Optional[HandlerFactory] = None,
    max_steps: Optional[int] = None,
) -> ExecutionResult:
    """
    Convenience function to execute a graph.

    Args:
        graph: The workflow graph
        *arguments: Positional arguments passed to every handler
        handler_factory: Optional construction strategy
        max_steps: Optional step limit

    Returns:
        ExecutionResult
    """
    executor = Executor(handler_factory, max_steps)
    return executor.execute(graph, *arguments)
