"""
feedgraph compiler: JSON Deserialiser
======================================
Converts a serialised graph JSON file (or dict) into an editor Graph, and an
editor Graph back into JSON.

Loading replays every node and edge through the Graph editing API, so a
loaded graph obeys the same rules as one built interactively: field values
must come from their option sets, ports only accept nodes of the right
capability, each port and each link holds at most one node, and no node can
become its own ancestor.

Pipeline
--------
    graph.json  →  [schema.validate]             shape only
                →  [deserialiser.json_to_graph]  →  Graph
    Graph       →  [assembler.compile_graph]     →  CompileResult

JSON format
-----------
See schema.py for the full format description.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from feedgraph.core.GraphPrimitives import Graph, GraphSnapshot
from feedgraph.core.Types import NEXT_LINK, PREVIOUS_LINK
from .schema import SchemaError, validate


logger = logging.getLogger(__name__)


def _load(source: Union[str, Path, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(source, (str, Path)):
        path = Path(source)
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    return source


def json_to_graph(source: Union[str, Path, Dict[str, Any]]) -> Graph:
    """
    Parse a graph JSON description and return an editor Graph.

    Args:
        source: A file path (str or Path) to a JSON file, or a pre-parsed dict.

    Raises:
        FileNotFoundError:    If a path is given and the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError:          If the structure, a field value or a connection is invalid.
    """
    data = _load(source)
    validate(data)

    graph = Graph(data.get("graph_name", "workspace"))

    for i, spec in enumerate(data["nodes"]):
        try:
            graph.add_node(spec["type"], spec["id"], spec.get("fields"))
        except ValueError as exc:
            raise SchemaError(f"nodes[{i}]: {exc}") from exc

    for i, spec in enumerate(data["edges"]):
        from_id, from_port = spec["from_node"], spec["from_port"]
        to_id, to_port = spec["to_node"], spec["to_port"]
        try:
            if from_port == NEXT_LINK:
                if to_port != PREVIOUS_LINK:
                    raise ValueError(f"a chain link must end at '{PREVIOUS_LINK}', got '{to_port}'")
                graph.chain(from_id, to_id)
            else:
                port = graph.get_node(from_id).port_specs().get(from_port)
                if port is not None and port.link_name != to_port:
                    raise ValueError(
                        f"port '{from_port}' binds the child's '{port.link_name}' link, got '{to_port}'"
                    )
                graph.connect(from_id, from_port, to_id)
        except ValueError as exc:
            raise SchemaError(f"edges[{i}]: {exc}") from exc

    logger.debug(f"Loaded graph '{graph.name}': {len(graph.nodes)} nodes, {len(graph.edges)} edges")
    return graph


def graph_to_json(graph: Union[Graph, GraphSnapshot]) -> Dict[str, Any]:
    """Serialise a graph into the JSON format json_to_graph reads."""
    return {
        "graph_name": graph.name,
        "nodes": [
            {"id": node.id, "type": node.type.value, "fields": dict(node.fields)}
            for node in graph.nodes.values()
        ],
        "edges": [
            {
                "from_node": edge.from_node_id,
                "from_port": edge.from_port_name,
                "to_node": edge.to_node_id,
                "to_port": edge.to_port_name,
            }
            for edge in graph.edges
        ],
    }


__all__ = ["json_to_graph", "graph_to_json"]
