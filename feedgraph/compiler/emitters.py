"""
feedgraph compiler: node emitters
==================================
One pure function per node type, ``emit(node, context) -> str``, registered
in DISPATCH_TABLE under the node's type. Emitters read only their node's
fields and whatever the context resolves for their ports.

  main_config     {"sources": [...], "transformations": [...]}
  source          {"id": ..., "config": {...}}      one sources[] element
  transformation  {"id": ..., "formula": "..."}     one transformations[] element
  aggregation     median(a, b, ...)
  simple_formula  (a op b)                          always parenthesised
  value           the wrapped expression
  variable        the selected name, verbatim
  constant        the typed numeral, verbatim

Text fields that land inside JSON strings are JSON-encoded. Numeric config
fields are emitted as the author typed them, and a blank entry takes the
field's default. A malformed numeral shows up as an invalid generated
document rather than being silently repaired.
"""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Tuple, TYPE_CHECKING

from feedgraph.core.Types import (
    NodeType,
    DataSourceKind,
    AggregationFunction,
    Operator,
)
from .context import EmitFunction

if TYPE_CHECKING:
    from feedgraph.core.Node import Node
    from .context import EmitContext


DISPATCH_TABLE: Dict[NodeType, EmitFunction] = {}


def emitter(node_type: NodeType) -> Callable[[EmitFunction], EmitFunction]:
    def decorator(fn: EmitFunction) -> EmitFunction:
        if node_type in DISPATCH_TABLE:
            raise ValueError(f"Emitter for '{node_type.value}' is already registered.")
        DISPATCH_TABLE[node_type] = fn
        return fn
    return decorator


# ── Text helpers ──────────────────────────────────────────────────────────────

def _string(value: Any) -> str:
    return json.dumps(str(value), ensure_ascii=False)


def _numeral(value: Any) -> str:
    return value if isinstance(value, str) else str(value)


def _config_number(node: "Node", name: str) -> str:
    """A numeric config field; a blank entry falls back to the field's default."""
    value = node.field(name)
    if isinstance(value, str) and not value.strip():
        value = node.field_specs()[name].default
    return _numeral(value)


def _object(members: List[Tuple[str, str]]) -> str:
    """Render pre-encoded member texts as a compact JSON object."""
    return "{" + ",".join(f"{_string(key)}:{text}" for key, text in members) + "}"


# ── Document ──────────────────────────────────────────────────────────────────

_ITEM_SEPARATOR = ",\n    "

_DOCUMENT_TEMPLATE = """{{
  "sources": [
    {sources}
  ],
  "transformations": [
    {transformations}
  ]
}}"""


@emitter(NodeType.ROOT)
def emit_config(node: "Node", context: "EmitContext") -> str:
    sources = context.resolve_statement_chain(node, "SOURCES", _ITEM_SEPARATOR)
    transformations = context.resolve_statement_chain(node, "TRANSFORMATIONS", _ITEM_SEPARATOR)
    return _DOCUMENT_TEMPLATE.format(sources=sources, transformations=transformations)


# ── Statements ────────────────────────────────────────────────────────────────

def _source_config(node: "Node") -> List[Tuple[str, str]]:
    kind = DataSourceKind(node.field("DATA_SOURCE"))
    members = [
        ("dataSource", _string(kind.value)),
        ("updateFrequency", _string(node.field("UPDATE_FREQUENCY"))),
    ]

    if kind.is_pool():
        members += [
            ("contractAddress", _string(node.field("CONTRACT"))),
            ("httpProviderUrl", _string(node.field("PROVIDER_URL"))),
        ]
    if kind == DataSourceKind.UNISWAP_V2:
        members += [
            ("baseTokenIndex", _config_number(node, "BASE_INDEX")),
            ("baseTokenDecimals", _config_number(node, "BASE_DECIMALS")),
            ("quoteTokenIndex", _config_number(node, "QUOTE_INDEX")),
            ("quoteTokenDecimals", _config_number(node, "QUOTE_DECIMALS")),
        ]
    elif kind == DataSourceKind.RANDOM:
        members += [
            ("minValue", _config_number(node, "MIN_VALUE")),
            ("maxValue", _config_number(node, "MAX_VALUE")),
        ]
    # DUMMY carries no settings of its own

    return members


@emitter(NodeType.SOURCE)
def emit_source(node: "Node", context: "EmitContext") -> str:
    return _object([
        ("id", _string(node.field("ID"))),
        ("config", _object(_source_config(node))),
    ])


@emitter(NodeType.TRANSFORMATION)
def emit_transformation(node: "Node", context: "EmitContext") -> str:
    formula = context.resolve_value(node, "VALUES")
    return _object([
        ("id", _string(node.field("ID"))),
        ("formula", _string(formula)),
    ])


# ── Values ────────────────────────────────────────────────────────────────────

@emitter(NodeType.AGGREGATION)
def emit_aggregation(node: "Node", context: "EmitContext") -> str:
    function = AggregationFunction(node.field("FORMULA"))
    args = context.resolve_statement_chain(node, "VALUES", ", ")
    return f"{function.value}({args})"


@emitter(NodeType.FORMULA)
def emit_formula(node: "Node", context: "EmitContext") -> str:
    a = context.resolve_value(node, "VALUE_A")
    operator = Operator(node.field("OPERATION"))
    b = context.resolve_value(node, "VALUE_B")
    return f"({a} {operator.symbol} {b})"


@emitter(NodeType.VALUE)
def emit_value(node: "Node", context: "EmitContext") -> str:
    return context.resolve_value(node, "INPUT")


@emitter(NodeType.VARIABLE)
def emit_variable(node: "Node", context: "EmitContext") -> str:
    return str(node.field("NAME"))


@emitter(NodeType.CONSTANT)
def emit_constant(node: "Node", context: "EmitContext") -> str:
    return _numeral(node.field("INPUT"))


# Every node type must have an emitter; fail at import rather than mid-compile.
_missing = [node_type.value for node_type in NodeType if node_type not in DISPATCH_TABLE]
if _missing:
    raise RuntimeError(f"Node types without an emitter: {', '.join(_missing)}")


__all__ = ["DISPATCH_TABLE", "emitter"]
