from types import MappingProxyType
from typing import Tuple, NamedTuple, Dict, List, Optional, Any, Iterable, Mapping

import logging

from .Node import Node
from .Types import NodeType, NEXT_LINK, PREVIOUS_LINK


# Get a logger for this module
logger = logging.getLogger(__name__)


# Every connection is an Edge (Arena Pattern). Port bindings run from the
# parent's port to the child's "previous" (statement) or "output" (value)
# link; chain links run from a node's "next" to its successor's "previous".
# A node's previous link is the incoming edge itself, so it can never be set
# without the matching next/port on the other side.
class Edge(NamedTuple):
    from_node_id: str
    from_port_name: str
    to_node_id: str
    to_port_name: str

    def isChainLink(self) -> bool:
        return self.from_port_name == NEXT_LINK

    def __repr__(self):
        return f"Edge({self.from_node_id}.{self.from_port_name} -> {self.to_node_id}.{self.to_port_name})"


def _index_edges(nodes: Mapping[str, Node], edges: Iterable[Edge]) -> Tuple[Dict[Tuple[str, str], Edge], Dict[str, Edge]]:
    outgoing: Dict[Tuple[str, str], Edge] = {}
    incoming: Dict[str, Edge] = {}
    for edge in edges:
        if edge.from_node_id not in nodes:
            raise ValueError(f"{edge!r}: node '{edge.from_node_id}' not found")
        if edge.to_node_id not in nodes:
            raise ValueError(f"{edge!r}: node '{edge.to_node_id}' not found")

        key = (edge.from_node_id, edge.from_port_name)
        if key in outgoing:
            raise ValueError(f"{edge!r}: '{edge.from_node_id}.{edge.from_port_name}' is already connected")
        if edge.to_node_id in incoming:
            raise ValueError(f"{edge!r}: node '{edge.to_node_id}' is already attached to {incoming[edge.to_node_id]!r}")

        outgoing[key] = edge
        incoming[edge.to_node_id] = edge
    return outgoing, incoming


class GraphSnapshot:
    """
    Read-only view of a graph at one point in time.

    Nodes are addressed by id; ports and chain links are edges between ids.
    The compiler only ever sees one of these.
    """

    def __init__(self, nodes: Mapping[str, Node], edges: Iterable[Edge], name: str = "workspace"):
        self.name = name
        self._nodes: Mapping[str, Node] = MappingProxyType(dict(nodes))
        self._edges: Tuple[Edge, ...] = tuple(edges)
        self._outgoing, self._incoming = _index_edges(self._nodes, self._edges)

    @property
    def nodes(self) -> Mapping[str, Node]:
        return self._nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._edges

    def __len__(self) -> int:
        return len(self._nodes)

    def get_node(self, node_id: str) -> Node:
        node = self._nodes.get(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found in graph '{self.name}'")
        return node

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [node for node in self._nodes.values() if node.type == node_type]

    def target(self, node_id: str, port_name: str) -> Optional[Node]:
        """The node bound to a port (or to the "next" link), if any."""
        edge = self._outgoing.get((node_id, port_name))
        if edge is None:
            return None
        return self._nodes[edge.to_node_id]

    def next_node(self, node_id: str) -> Optional[Node]:
        return self.target(node_id, NEXT_LINK)

    def parent_edge(self, node_id: str) -> Optional[Edge]:
        return self._incoming.get(node_id)

    def previous_node(self, node_id: str) -> Optional[Node]:
        edge = self._incoming.get(node_id)
        if edge is None or not edge.isChainLink():
            return None
        return self._nodes[edge.from_node_id]


class Graph:
    """
    The editable graph owned by the editor.

    Mutations enforce the same capability rules the visual editor does, so a
    graph built through this class is always acyclic and every port holds a
    node it can accept. Call snapshot() to hand the current state to the
    compiler.
    """

    def __init__(self, name: str = "workspace"):
        self.name = name
        self.nodes: Dict[str, Node] = {}
        self.edges: List[Edge] = []

        self.outgoing_edges: Dict[Tuple[str, str], Edge] = {}
        self.incoming_edges: Dict[str, Edge] = {}

    def __len__(self) -> int:
        return len(self.nodes)

    # ── Nodes ───────────────────────────────────────────────────────────────

    def add_node(
        self,
        node_type: Any,
        node_id: Optional[str] = None,
        fields: Optional[Mapping[str, Any]] = None,
        **field_values,
    ) -> Node:
        """
        Create a node with schema defaults. Field values come from ``fields``
        and from keyword arguments; names read from external input must use
        ``fields`` so they cannot collide with this method's parameters.
        """
        if node_id is not None and node_id in self.nodes:
            raise ValueError(f"Node with id '{node_id}' already exists in graph '{self.name}'")

        values = dict(fields or {})
        values.update(field_values)
        node = Node.create_node(node_id, node_type, values)
        self.nodes[node.id] = node
        logger.debug(f"Graph '{self.name}': added {node.type.value} node '{node.id}'")
        return node

    def get_node(self, node_id: str) -> Node:
        node = self.nodes.get(node_id)
        if node is None:
            raise KeyError(f"Node '{node_id}' not found in graph '{self.name}'")
        return node

    def find_node(self, node_id: str) -> Optional[Node]:
        return self.nodes.get(node_id)

    def nodes_of_type(self, node_type: NodeType) -> List[Node]:
        return [node for node in self.nodes.values() if node.type == node_type]

    def set_field(self, node_id: str, name: str, value: Any) -> Node:
        node = self.get_node(node_id).with_field(name, value)
        self.nodes[node_id] = node
        return node

    def remove_node(self, node_id: str):
        node = self.get_node(node_id)
        if node.type == NodeType.ROOT and len(self.nodes_of_type(NodeType.ROOT)) == 1:
            raise ValueError("The configuration node cannot be deleted")

        # Children and successors stay in the graph as detached nodes
        for edge in [e for e in self.edges if node_id in (e.from_node_id, e.to_node_id)]:
            self._remove_edge(edge)
        del self.nodes[node_id]
        logger.debug(f"Graph '{self.name}': removed node '{node_id}'")

    # ── Connections ─────────────────────────────────────────────────────────

    def connect(self, parent_id: str, port_name: str, child_id: str) -> Edge:
        """Bind child_id into a port of parent_id."""
        parent = self.get_node(parent_id)
        child = self.get_node(child_id)

        port = parent.port_specs().get(port_name)
        if port is None:
            raise ValueError(f"Node '{parent_id}' ({parent.type.value}) has no port '{port_name}'")
        port.check_accepts(child)

        self._check_free(parent_id, port_name, child_id)
        return self._add_edge(Edge(parent_id, port_name, child_id, port.link_name))

    def chain(self, node_id: str, next_id: str) -> Edge:
        """Link next_id after node_id in a statement chain."""
        node = self.get_node(node_id)
        successor = self.get_node(next_id)

        if not node.isStatementNode():
            raise ValueError(f"Node '{node_id}' ({node.type.value}) has no next link")
        if successor.CHAIN != node.CHAIN:
            raise ValueError(
                f"Cannot chain '{successor.type.value}' node '{next_id}' after '{node.type.value}' node '{node_id}'"
            )

        self._check_free(node_id, NEXT_LINK, next_id)
        return self._add_edge(Edge(node_id, NEXT_LINK, next_id, PREVIOUS_LINK))

    def disconnect(self, node_id: str) -> Optional[Edge]:
        """Detach a node from its port or predecessor. Its subtree and successors move with it."""
        self.get_node(node_id)
        edge = self.incoming_edges.get(node_id)
        if edge is not None:
            self._remove_edge(edge)
        return edge

    def _check_free(self, parent_id: str, port_name: str, child_id: str):
        if (parent_id, port_name) in self.outgoing_edges:
            raise ValueError(f"'{parent_id}.{port_name}' is already connected")
        if child_id in self.incoming_edges:
            raise ValueError(f"Node '{child_id}' is already attached; disconnect it first")
        if self._is_ancestor(child_id, parent_id):
            raise ValueError(f"Connecting '{child_id}' under '{parent_id}' would create a cycle")

    def _is_ancestor(self, candidate_id: str, node_id: str) -> bool:
        current = node_id
        while current is not None:
            if current == candidate_id:
                return True
            edge = self.incoming_edges.get(current)
            current = edge.from_node_id if edge else None
        return False

    def _add_edge(self, edge: Edge) -> Edge:
        self.edges.append(edge)
        self.outgoing_edges[(edge.from_node_id, edge.from_port_name)] = edge
        self.incoming_edges[edge.to_node_id] = edge
        logger.debug(f"Graph '{self.name}': connected {edge!r}")
        return edge

    def _remove_edge(self, edge: Edge):
        self.edges.remove(edge)
        del self.outgoing_edges[(edge.from_node_id, edge.from_port_name)]
        del self.incoming_edges[edge.to_node_id]

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def snapshot(self) -> GraphSnapshot:
        return GraphSnapshot(self.nodes, self.edges, name=self.name)

    def reset(self):
        self.nodes.clear()
        self.edges.clear()
        self.outgoing_edges.clear()
        self.incoming_edges.clear()
