"""
feedgraph compiler
==================
Compiles a feedgraph workspace into its configuration document: a JSON
object listing price "sources" and formula "transformations".

Pipeline:
    Graph       →  snapshot()                 →  GraphSnapshot
    GraphSnapshot → [assembler.find_root]     →  root node
    root        →  [emitters, via context]    →  document text
    text        →  json.loads                 →  CompileResult

Public API
----------
    from feedgraph.compiler import compile_graph

    result = compile_graph(graph)
    if result.ok:
        print(result.pretty())
    else:
        print(result.error)
"""

from __future__ import annotations

from .assembler import INVALID_DOCUMENT_TEXT, CompileResult, compile_graph, find_root, generate_document
from .context import DEFAULT_MAX_DEPTH, EmitContext
from .deserialiser import graph_to_json, json_to_graph
from .emitters import DISPATCH_TABLE
from .errors import (
    CompileError,
    CycleError,
    MalformedGraphError,
    MultipleRootsError,
    RootNotFoundError,
    UnknownNodeTypeError,
    UnresolvedReferenceError,
)
from .preview import PreviewSession
from .schema import SchemaError


__all__ = [
    "CompileError",
    "CompileResult",
    "CycleError",
    "DEFAULT_MAX_DEPTH",
    "DISPATCH_TABLE",
    "EmitContext",
    "INVALID_DOCUMENT_TEXT",
    "MalformedGraphError",
    "MultipleRootsError",
    "PreviewSession",
    "RootNotFoundError",
    "SchemaError",
    "UnknownNodeTypeError",
    "UnresolvedReferenceError",
    "compile_graph",
    "find_root",
    "generate_document",
    "graph_to_json",
    "json_to_graph",
]
