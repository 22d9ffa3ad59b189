"""
Fluent builder for workflow graphs.

Usage:
    graph = (
        WorkflowBuilder("checkout")
        .node(PaymentHandler)
            .on_success(ShippingHandler)
            .on_fail(NotifyHandler)
            .on_retry(PaymentHandler)
        .node(ShippingHandler)
            .on_success(ConfirmHandler)
        .build()
    )
"""

from typing import Dict, Optional, Union

from stepflow.engine.errors import ConfigurationError
from stepflow.engine.graph import Graph, HandlerRef
from stepflow.engine.outcome import Status
from stepflow.engine.resolver import handler_name_of, resolve_handler


class WorkflowBuilder:
    """Collects nodes and their transitions, then produces a Graph."""

    def __init__(self, name: str = "Unnamed Workflow"):
        self._graph = Graph(name=name)
        self._current: Optional[str] = None
        self._transitions: Dict[str, str] = {}

    def node(self, handler: HandlerRef) -> "NodeBuilder":
        """Start a new node; the previous one is added to the graph."""
        self._flush()
        handler_name = handler_name_of(handler)
        resolve_handler(handler_name)

        self._current = handler_name
        self._transitions = {}
        return NodeBuilder(self)

    def add_transition(self, key: Union[Status, str], target: HandlerRef) -> None:
        if self._current is None:
            raise ConfigurationError("Call node() before adding transitions")
        key = key.value if isinstance(key, Status) else key
        target_name = handler_name_of(target)
        resolve_handler(target_name)
        self._transitions[key] = target_name

    def build(self) -> Graph:
        self._flush()
        if not len(self._graph):
            raise ConfigurationError("WorkflowBuilder requires at least one node")
        return self._graph

    def _flush(self) -> None:
        if self._current is not None:
            self._graph.add_node(self._current, self._transitions)
            self._current = None
            self._transitions = {}


class NodeBuilder:
    """Configures the transitions of the node most recently started."""

    def __init__(self, builder: WorkflowBuilder):
        self._builder = builder

    def on(self, key: Union[Status, str], target: HandlerRef) -> "NodeBuilder":
        self._builder.add_transition(key, target)
        return self

    def on_success(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_SUCCESS, target)

    def on_fail(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_FAIL, target)

    def on_error(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_ERROR, target)

    def on_timeout(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_TIMEOUT, target)

    def on_retry(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_RETRY, target)

    def on_skip(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_SKIP, target)

    def on_pending(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_PENDING, target)

    def on_cancel(self, target: HandlerRef) -> "NodeBuilder":
        return self.on(Status.ON_CANCEL, target)

    def node(self, handler: HandlerRef) -> "NodeBuilder":
        return self._builder.node(handler)

    def build(self) -> Graph:
        return self._builder.build()
