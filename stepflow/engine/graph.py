"""
Graph Definition for Workflow Engine.

A Graph is an ordered collection of nodes. Each node names a handler class
and maps transition keys (onSuccess, onFail, onRetry, ...) to the handler
that runs next. The first node added is the entry point.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass, field
from types import MappingProxyType
import uuid

from stepflow.engine.outcome import Status
from stepflow.engine.resolver import handler_name_of, resolve_handler, short_label


HandlerRef = Union[str, type]


@dataclass(frozen=True)
class Node:
    """
    A node in the workflow graph.

    Attributes:
        handler_name: Dotted path of the handler class
        transitions: Transition key -> successor handler name
    """

    handler_name: str
    transitions: Mapping[str, Optional[str]] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return short_label(self.handler_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "handler": self.handler_name,
            "transitions": dict(self.transitions),
        }


def _normalise_transitions(
    transitions: Optional[Mapping[Union[Status, str], Optional[HandlerRef]]]
) -> Dict[str, Optional[str]]:
    normalised = {}
    for key, target in (transitions or {}).items():
        key = key.value if isinstance(key, Status) else key
        # A None target is an explicit dead end
        if target is None:
            normalised[key] = None
            continue
        # Targets must resolve, but need not be nodes of the graph
        target_name = handler_name_of(target)
        resolve_handler(target_name)
        normalised[key] = target_name
    return normalised


class Graph:
    """
    A workflow graph: ordered nodes plus an index by handler name.

    Handler names are unique within a graph. Adding a node for a handler
    that is already present is a no-op, the first registration wins.
    Transition targets do not need to be nodes of the graph; reaching one
    that is not simply ends the traversal.

    Usage:
        graph = Graph()
        graph.add_node(PaymentHandler, {
            Status.ON_SUCCESS: ShippingHandler,
            Status.ON_FAIL: NotifyHandler,
            Status.ON_RETRY: PaymentHandler,
        }).add_node(ShippingHandler)
    """

    def __init__(self, name: str = "Unnamed Workflow", graph_id: Optional[str] = None):
        self.graph_id = graph_id or str(uuid.uuid4())
        self.name = name
        self._nodes: List[Node] = []
        self._index: Dict[str, int] = {}

    def add_node(
        self,
        handler: HandlerRef,
        transitions: Optional[Mapping[Union[Status, str], Optional[HandlerRef]]] = None,
    ) -> "Graph":
        """
        Add a node to the graph.

        Args:
            handler: Handler class or its dotted name
            transitions: Transition key -> successor handler (class or name)

        Returns:
            Self for chaining

        Raises:
            ConfigurationError: If the handler or a transition target
                cannot be resolved
        """
        handler_name = handler_name_of(handler)
        resolve_handler(handler_name)

        if handler_name in self._index:
            return self

        node = Node(
            handler_name=handler_name,
            transitions=MappingProxyType(_normalise_transitions(transitions)),
        )
        self._index[handler_name] = len(self._nodes)
        self._nodes.append(node)
        return self

    def get_nodes(self) -> Tuple[Node, ...]:
        """All nodes in insertion order."""
        return tuple(self._nodes)

    def get_transitions(self, handler: HandlerRef) -> Optional[Mapping[str, Optional[str]]]:
        """
        Get the transition map of a node.

        Returns:
            The node's transitions (possibly empty), or None if the handler
            has no node in this graph
        """
        index = self._index.get(handler_name_of(handler))
        if index is None:
            return None
        return self._nodes[index].transitions

    @property
    def entry_point(self) -> Optional[str]:
        return self._nodes[0].handler_name if self._nodes else None

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handler: object) -> bool:
        if not isinstance(handler, (str, type)):
            return False
        return handler_name_of(handler) in self._index

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the graph to a dictionary."""
        return {
            "graph_id": self.graph_id,
            "name": self.name,
            "entry_point": self.entry_point,
            "nodes": [node.to_dict() for node in self._nodes],
        }

    @classmethod
    def from_dict(cls, definition: Dict[str, Any]) -> "Graph":
        """Rebuild a graph from ``to_dict`` output."""
        graph = cls(
            name=definition.get("name", "Unnamed Workflow"),
            graph_id=definition.get("graph_id"),
        )
        for node in definition.get("nodes", []):
            graph.add_node(node["handler"], node.get("transitions") or {})
        return graph

    def to_mermaid(self) -> str:
        """Generate a Mermaid diagram of the graph."""
        lines = ["graph TD"]

        for node in self._nodes:
            lines.append(f'    {node.label}["{node.label}"]')

        for node in self._nodes:
            for key, target in node.transitions.items():
                if target is None:
                    continue
                lines.append(f"    {node.label} -->|{key}| {short_label(target)}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"Graph(name='{self.name}', nodes={[n.label for n in self._nodes]}, "
            f"entry='{self.entry_point}')"
        )
