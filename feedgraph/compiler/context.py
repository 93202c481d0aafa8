"""
feedgraph compiler: emission context
=====================================
EmitContext is what every emitter receives alongside its node. It offers the
two services an emitter may use:

  resolve_value(node, port)
      Emit whatever is bound to a value port, or the ``none`` sentinel when
      the port is empty. This is the recursion point that lets a formula
      operand be an arbitrarily deep sub-expression.

  resolve_statement_chain(node, port, separator)
      Emit every node in the chain bound to a statement port, following the
      "next" links in order, and join the texts with ``separator``. An empty
      port yields an empty string.

The context also guards the recursion: a node reached again while it is
still being emitted, or nesting deeper than ``max_depth``, aborts the
compilation with a MalformedGraphError.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Mapping, TYPE_CHECKING

from feedgraph.core.Types import NodeType, NONE_SENTINEL
from .errors import CycleError, MalformedGraphError, UnknownNodeTypeError

if TYPE_CHECKING:
    from feedgraph.core.GraphPrimitives import GraphSnapshot
    from feedgraph.core.Node import Node


logger = logging.getLogger(__name__)

# Each nesting level costs a few interpreter frames; keep well inside the
# default recursion limit.
DEFAULT_MAX_DEPTH = 128

EmitFunction = Callable[["Node", "EmitContext"], str]


class EmitContext:
    def __init__(
        self,
        graph: "GraphSnapshot",
        dispatch: Mapping[NodeType, EmitFunction],
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.graph = graph
        self.max_depth = max_depth
        self._dispatch = dispatch

        # Ids on the current emission path, outermost first
        self._path: List[str] = []
        self._on_path: Dict[str, int] = {}

        # Every node emitted so far, in emission order
        self.emitted: List["Node"] = []

    # ── Dispatch ────────────────────────────────────────────────────────────

    def emit(self, node: "Node") -> str:
        emitter = self._dispatch.get(node.type)
        if emitter is None:
            raise UnknownNodeTypeError(
                f"No emitter registered for node type '{node.type.value}' (node '{node.id}')"
            )

        if node.id in self._on_path:
            loop = " -> ".join(self._path[self._on_path[node.id]:] + [node.id])
            raise CycleError(f"Cycle detected while emitting: {loop}")
        if len(self._path) >= self.max_depth:
            raise MalformedGraphError(
                f"Expression nesting exceeds {self.max_depth} levels at node '{node.id}'"
            )

        self._on_path[node.id] = len(self._path)
        self._path.append(node.id)
        try:
            text = emitter(node, self)
        finally:
            self._path.pop()
            del self._on_path[node.id]

        self.emitted.append(node)
        logger.debug(f"emit {node.type.value} '{node.id}' -> {text!r}")
        return text

    # ── Services for emitters ───────────────────────────────────────────────

    def resolve_value(self, node: "Node", port_name: str) -> str:
        child = self.graph.target(node.id, port_name)
        if child is None:
            return NONE_SENTINEL
        return self.emit(child)

    def collect_statement_chain(self, node: "Node", port_name: str) -> List[str]:
        texts: List[str] = []
        seen = set()
        current = self.graph.target(node.id, port_name)
        while current is not None:
            if current.id in seen:
                raise CycleError(f"Chain under '{node.id}.{port_name}' loops back to '{current.id}'")
            seen.add(current.id)
            texts.append(self.emit(current))
            current = self.graph.next_node(current.id)
        return texts

    def resolve_statement_chain(self, node: "Node", port_name: str, separator: str) -> str:
        return separator.join(self.collect_statement_chain(node, port_name))


__all__ = ["EmitContext", "EmitFunction", "DEFAULT_MAX_DEPTH"]
