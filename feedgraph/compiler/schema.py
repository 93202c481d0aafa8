"""
feedgraph compiler: Graph JSON Schema + Validator
==================================================
Defines the serialisation format for feedgraph workspaces and a lightweight
structural validator that runs without any third-party JSON Schema library.

Canonical JSON format
---------------------

    {
      "graph_name": "default-workspace",          // human label (str, optional)
      "nodes": [
        {
          "id":     "src_weth",                   // unique within this graph (str, required)
          "type":   "source",                     // node type tag (str, required)
          "fields": { "ID": "WETHUSDT" }          // field values (dict, optional → defaults)
        }
      ],
      "edges": [
        {
          "from_node": "config",                  // parent / predecessor id (str, required)
          "from_port": "SOURCES",                 // port name, or "next" for a chain link
          "to_node":   "src_weth",                // child / successor id (str, required)
          "to_port":   "previous"                 // "previous" (statement) | "output" (value)
        }
      ]
    }

Node types
----------
  main_config     ports SOURCES, TRANSFORMATIONS (statement)
  source          fields ID, DATA_SOURCE, UPDATE_FREQUENCY, CONTRACT, PROVIDER_URL,
                  BASE_INDEX, BASE_DECIMALS, QUOTE_INDEX, QUOTE_DECIMALS,
                  MIN_VALUE, MAX_VALUE
  transformation  field ID; port VALUES (value)
  aggregation     field FORMULA; port VALUES (statement of value nodes)
  simple_formula  field OPERATION; ports VALUE_A, VALUE_B (value)
  value           port INPUT (value)
  variable        field NAME
  constant        field INPUT

Field values and port wiring are checked when the graph is loaded (see
deserialiser.py); this module only checks shape.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from feedgraph.core.Types import NodeType, PREVIOUS_LINK, OUTPUT_LINK


# ── Known types ───────────────────────────────────────────────────────────────

KNOWN_NODE_TYPES: frozenset = frozenset(node_type.value for node_type in NodeType)

LINK_NAMES: frozenset = frozenset({PREVIOUS_LINK, OUTPUT_LINK})


# ── Validation helpers ────────────────────────────────────────────────────────

class SchemaError(ValueError):
    """Raised when graph JSON fails structural validation."""


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise SchemaError(message)


def _require_keys(obj: Dict, keys: List[str], context: str) -> None:
    for key in keys:
        _require(key in obj, f"{context}: missing required field '{key}'")


# ── Public validator ─────────────────────────────────────────────────────────

def validate(data: Dict[str, Any]) -> None:
    """
    Validate a parsed graph JSON dict.

    Raises:
        SchemaError: On any structural violation, including unknown node types.
    """
    _require(isinstance(data, dict), "graph JSON must be a JSON object at the top level")
    _require_keys(data, ["nodes", "edges"], "graph root")

    if "graph_name" in data:
        _require(isinstance(data["graph_name"], str), "graph_name must be a string")
    _require(isinstance(data["nodes"], list), "nodes must be a list")
    _require(isinstance(data["edges"], list), "edges must be a list")

    # ── Validate nodes ──────────────────────────────────────────────────────

    node_ids: set = set()

    for i, node in enumerate(data["nodes"]):
        ctx = f"nodes[{i}]"
        _require(isinstance(node, dict), f"{ctx}: each node must be a JSON object")
        _require_keys(node, ["id", "type"], ctx)
        _require(isinstance(node["id"], str), f"{ctx}.id must be a string")
        _require(isinstance(node["type"], str), f"{ctx}.type must be a string")
        _require(
            node["id"] not in node_ids,
            f"{ctx}: duplicate node id '{node['id']}'",
        )
        node_ids.add(node["id"])

        _require(
            node["type"] in KNOWN_NODE_TYPES,
            f"{ctx}: unknown node type '{node['type']}'",
        )
        if "fields" in node:
            _require(isinstance(node["fields"], dict), f"{ctx}.fields must be an object")

    # ── Validate edges ──────────────────────────────────────────────────────

    for i, edge in enumerate(data["edges"]):
        ctx = f"edges[{i}]"
        _require(isinstance(edge, dict), f"{ctx}: each edge must be a JSON object")
        _require_keys(edge, ["from_node", "from_port", "to_node", "to_port"], ctx)

        for key in ("from_node", "from_port", "to_node", "to_port"):
            _require(isinstance(edge[key], str), f"{ctx}.{key} must be a string")

        _require(
            edge["from_node"] in node_ids,
            f"{ctx}: from_node '{edge['from_node']}' not found in nodes",
        )
        _require(
            edge["to_node"] in node_ids,
            f"{ctx}: to_node '{edge['to_node']}' not found in nodes",
        )
        _require(
            edge["to_port"] in LINK_NAMES,
            f"{ctx}: to_port must be one of {sorted(LINK_NAMES)}, got '{edge['to_port']}'",
        )


def validate_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load and validate a graph JSON file.

    Returns:
        The parsed dict on success.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        SchemaError: If the graph structure is invalid.
    """
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    validate(data)
    return data


__all__ = ["KNOWN_NODE_TYPES", "SchemaError", "validate", "validate_file"]
