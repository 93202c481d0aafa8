"""
feedgraph compiler: document assembler & validator
===================================================
Finds the configuration node, emits it through the dispatch table and
parses the emitted text back as JSON.

Outcomes
--------
  MalformedGraphError     raised: no root, several roots, an unknown node
                          type or a cycle. No document text is produced.
  CompileResult(ok=False) the text was emitted but does not parse. The raw
                          text and the parser's message are kept so the
                          editor can show them.
  CompileResult(ok=True)  the parsed document, ready for pretty-printing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from feedgraph.core.GraphPrimitives import Graph, GraphSnapshot
from feedgraph.core.Node import Node
from feedgraph.core.Types import NodeType
from .context import DEFAULT_MAX_DEPTH, EmitContext, EmitFunction
from .emitters import DISPATCH_TABLE
from .errors import MultipleRootsError, RootNotFoundError, UnresolvedReferenceError


logger = logging.getLogger(__name__)

INVALID_DOCUMENT_TEXT = "Error: Invalid JSON generated"


@dataclass(frozen=True)
class CompileResult:
    raw_text: str
    document: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    unresolved_references: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.error is None

    def pretty(self) -> str:
        if not self.ok:
            raise ValueError(f"No document to format: {self.error}")
        return json.dumps(self.document, indent=2, ensure_ascii=False)

    def display_text(self) -> str:
        """What the preview pane shows for this result."""
        return self.pretty() if self.ok else INVALID_DOCUMENT_TEXT

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "document": self.document,
            "text": self.display_text(),
            "rawText": self.raw_text,
            "error": self.error,
            "unresolvedReferences": list(self.unresolved_references),
        }


def find_root(graph: GraphSnapshot) -> Node:
    roots = graph.nodes_of_type(NodeType.ROOT)
    if not roots:
        raise RootNotFoundError(f"Graph '{graph.name}' has no configuration node")
    if len(roots) > 1:
        ids = ", ".join(root.id for root in roots)
        raise MultipleRootsError(f"Graph '{graph.name}' has {len(roots)} configuration nodes: {ids}")
    return roots[0]


def _unresolved_references(context: EmitContext) -> Tuple[str, ...]:
    declared = {
        str(node.field("ID"))
        for node in context.emitted
        if node.type in (NodeType.SOURCE, NodeType.TRANSFORMATION)
    }
    missing = []
    for node in context.emitted:
        if node.type != NodeType.VARIABLE:
            continue
        name = str(node.field("NAME"))
        if name not in declared and name not in missing:
            missing.append(name)
    return tuple(missing)


def _emit(
    graph: GraphSnapshot,
    dispatch: Optional[Mapping[NodeType, EmitFunction]],
    max_depth: int,
) -> Tuple[str, EmitContext]:
    root = find_root(graph)
    context = EmitContext(graph, DISPATCH_TABLE if dispatch is None else dispatch, max_depth=max_depth)
    return context.emit(root), context


def generate_document(
    graph: Union[Graph, GraphSnapshot],
    *,
    dispatch: Optional[Mapping[NodeType, EmitFunction]] = None,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> str:
    """Emit the raw document text without parsing it."""
    if isinstance(graph, Graph):
        graph = graph.snapshot()
    text, _ = _emit(graph, dispatch, max_depth)
    return text


def compile_graph(
    graph: Union[Graph, GraphSnapshot],
    *,
    dispatch: Optional[Mapping[NodeType, EmitFunction]] = None,
    strict_references: bool = False,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> CompileResult:
    """
    Compile a graph into its configuration document.

    Args:
        graph:             An editor Graph (snapshotted first) or a GraphSnapshot.
        dispatch:          Emitters keyed by node type. Defaults to DISPATCH_TABLE.
        strict_references: Raise UnresolvedReferenceError when a variable names
                           no source or transformation, instead of only
                           reporting it.
        max_depth:         Deepest expression nesting accepted.

    Raises:
        MalformedGraphError: The graph cannot be compiled.
    """
    if isinstance(graph, Graph):
        graph = graph.snapshot()

    text, context = _emit(graph, dispatch, max_depth)

    unresolved = _unresolved_references(context)
    if unresolved:
        if strict_references:
            raise UnresolvedReferenceError(f"Variables reference unknown ids: {', '.join(unresolved)}")
        logger.warning(f"Graph '{graph.name}': variables reference unknown ids: {', '.join(unresolved)}")

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning(f"Graph '{graph.name}': invalid JSON generated: {exc}")
        return CompileResult(raw_text=text, error=str(exc), unresolved_references=unresolved)

    if not isinstance(document, dict):
        message = f"expected a JSON object, got {type(document).__name__}"
        logger.warning(f"Graph '{graph.name}': invalid JSON generated: {message}")
        return CompileResult(raw_text=text, error=message, unresolved_references=unresolved)

    logger.info(
        f"Graph '{graph.name}': compiled {len(document.get('sources', []))} sources, "
        f"{len(document.get('transformations', []))} transformations"
    )
    return CompileResult(raw_text=text, document=document, unresolved_references=unresolved)


__all__ = ["CompileResult", "INVALID_DOCUMENT_TEXT", "compile_graph", "find_root", "generate_document"]
