"""
feedgraph compiler: live preview
=================================
PreviewSession is the editor-side consumer of the compiler. The editor calls
refresh() after every graph change; the session recompiles from scratch and
exposes the two outcomes the rest of the application sees:

  success  the displayed text becomes the pretty-printed document, any
           previous error is cleared, and on_success listeners get the
           parsed document.
  failure  the displayed text becomes INVALID_DOCUMENT_TEXT, the parser's
           message is kept in ``error``, and on_error listeners get it.

Until the graph has a configuration node there is nothing to preview and
refresh() leaves the session untouched. Malformed graphs (several
configuration nodes, cycles) are raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from feedgraph.core.GraphPrimitives import Graph, GraphSnapshot
from feedgraph.core.Types import NodeType
from .assembler import INVALID_DOCUMENT_TEXT, CompileResult, compile_graph
from .context import DEFAULT_MAX_DEPTH


logger = logging.getLogger(__name__)

SuccessListener = Callable[[Dict[str, Any]], None]
ErrorListener = Callable[[str], None]


class PreviewSession:
    def __init__(self, *, strict_references: bool = False, max_depth: int = DEFAULT_MAX_DEPTH):
        self.strict_references = strict_references
        self.max_depth = max_depth

        self.result: Optional[CompileResult] = None
        self.text: str = ""
        self.error: Optional[str] = None

        self._success_listeners: List[SuccessListener] = []
        self._error_listeners: List[ErrorListener] = []

    def on_success(self, listener: SuccessListener) -> SuccessListener:
        self._success_listeners.append(listener)
        return listener

    def on_error(self, listener: ErrorListener) -> ErrorListener:
        self._error_listeners.append(listener)
        return listener

    def refresh(self, graph: Union[Graph, GraphSnapshot]) -> Optional[CompileResult]:
        snapshot = graph.snapshot() if isinstance(graph, Graph) else graph
        if not snapshot.nodes_of_type(NodeType.ROOT):
            logger.debug(f"Graph '{snapshot.name}' has no configuration node; preview unchanged")
            return None

        result = compile_graph(
            snapshot,
            strict_references=self.strict_references,
            max_depth=self.max_depth,
        )
        self.result = result

        if result.ok:
            self.text = result.pretty()
            self.error = None
            for listener in self._success_listeners:
                listener(result.document)
        else:
            self.text = INVALID_DOCUMENT_TEXT
            self.error = result.error
            for listener in self._error_listeners:
                listener(result.error)
        return result


__all__ = ["PreviewSession"]
