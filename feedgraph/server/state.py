"""
WorkspaceState: the single editable workspace behind the HTTP service.

Starts from the default scaffold so the UI has a document to display on
first load. Every mutation runs against a copy of the graph and is only
committed once the copy still compiles; a change that leaves the graph
malformed or without its configuration node is rolled back.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Dict, Optional, TypeVar

from feedgraph.compiler import PreviewSession, find_root, graph_to_json, json_to_graph
from feedgraph.config import Settings, load_settings
from feedgraph.core.GraphPrimitives import Graph
from feedgraph.scaffold import build_default_graph


logger = logging.getLogger(__name__)

T = TypeVar("T")


class WorkspaceState:
    """Holds the workspace graph and its live preview."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or load_settings()
        self._lock = threading.Lock()
        self.preview = PreviewSession(
            strict_references=self.settings.strict_references,
            max_depth=self.settings.max_depth,
        )
        self.graph: Graph = build_default_graph()
        self.preview.refresh(self.graph)

    def mutate(self, change: Callable[[Graph], T]) -> T:
        """
        Apply ``change`` to a copy of the workspace and commit it.

        Editor rejections (ValueError, KeyError) and MalformedGraphError from
        the recompile propagate; the committed graph is left as it was.
        """
        with self._lock:
            candidate = json_to_graph(graph_to_json(self.graph))
            value = change(candidate)
            self._refresh(candidate)
            self.graph = candidate
            logger.debug(f"Workspace '{candidate.name}' now has {len(candidate.nodes)} nodes")
            return value

    def _refresh(self, graph: Graph) -> None:
        # A workspace without its configuration node has no preview to show
        find_root(graph.snapshot())
        self.preview.refresh(graph)

    def replace(self, graph: Graph) -> None:
        with self._lock:
            self._refresh(graph)
            self.graph = graph
            logger.info(f"Workspace replaced by graph '{graph.name}'")

    def reset(self) -> None:
        self.replace(build_default_graph())

    def to_json(self) -> Dict[str, Any]:
        with self._lock:
            return graph_to_json(self.graph)

    def preview_payload(self) -> Dict[str, Any]:
        with self._lock:
            result = self.preview.result
            payload = result.to_dict() if result is not None else {
                "ok": False,
                "document": None,
                "rawText": None,
                "error": None,
                "unresolvedReferences": [],
            }
            payload["text"] = self.preview.text
            return payload


workspace = WorkspaceState()
