"""
Workspace REST routes.

Every mutating route answers with the recompiled preview. Editor rejections
map to 400, unknown node ids to 404 and graphs that cannot be compiled to
422. Handlers are plain functions so the workspace lock is held on
FastAPI's threadpool rather than the event loop.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Body, HTTPException
from pydantic import BaseModel

from feedgraph.compiler import MalformedGraphError, compile_graph, json_to_graph
from feedgraph.core.GraphPrimitives import Graph
from feedgraph.core.Node import Node
from feedgraph.server.state import workspace


logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, KeyError):
        return HTTPException(status_code=404, detail=str(exc.args[0]) if exc.args else "Not found")
    if isinstance(exc, MalformedGraphError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def _apply(change: Callable[[Graph], Any]) -> Any:
    try:
        return workspace.mutate(change)
    except (KeyError, ValueError) as exc:
        logger.info(f"Rejected workspace change: {exc}")
        raise _http_error(exc)


def _node_json(node: Node) -> Dict[str, Any]:
    return {"id": node.id, "type": node.type.value, "fields": dict(node.fields)}


# ── Graph ─────────────────────────────────────────────────────────────────────

@router.get("/graph")
def get_graph() -> Dict[str, Any]:
    return workspace.to_json()


@router.put("/graph")
def replace_graph(data: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    try:
        workspace.replace(json_to_graph(data))
    except ValueError as exc:
        raise _http_error(exc)
    return workspace.preview_payload()


@router.post("/graph/reset")
def reset_graph() -> Dict[str, Any]:
    workspace.reset()
    return workspace.preview_payload()


# ── Nodes ─────────────────────────────────────────────────────────────────────

class CreateNodeBody(BaseModel):
    type: str
    id: Optional[str] = None
    fields: Dict[str, Any] = {}


@router.post("/nodes", status_code=201)
def create_node(body: CreateNodeBody) -> Dict[str, Any]:
    node = _apply(lambda graph: graph.add_node(body.type, body.id, body.fields))
    return {"node": _node_json(node), **workspace.preview_payload()}


class SetFieldsBody(BaseModel):
    fields: Dict[str, Any]


@router.patch("/nodes/{node_id}")
def set_fields(node_id: str, body: SetFieldsBody) -> Dict[str, Any]:
    def change(graph: Graph) -> Node:
        node = graph.get_node(node_id)
        for name, value in body.fields.items():
            node = graph.set_field(node_id, name, value)
        return node

    node = _apply(change)
    return {"node": _node_json(node), **workspace.preview_payload()}


@router.delete("/nodes/{node_id}")
def delete_node(node_id: str) -> Dict[str, Any]:
    _apply(lambda graph: graph.remove_node(node_id))
    return workspace.preview_payload()


@router.post("/nodes/{node_id}/detach")
def detach_node(node_id: str) -> Dict[str, Any]:
    _apply(lambda graph: graph.disconnect(node_id))
    return workspace.preview_payload()


# ── Connections ───────────────────────────────────────────────────────────────

class ConnectionBody(BaseModel):
    parent: str
    port: str
    child: str


@router.post("/connections", status_code=201)
def connect(body: ConnectionBody) -> Dict[str, Any]:
    _apply(lambda graph: graph.connect(body.parent, body.port, body.child))
    return workspace.preview_payload()


class ChainBody(BaseModel):
    node: str
    next: str


@router.post("/chain", status_code=201)
def chain(body: ChainBody) -> Dict[str, Any]:
    _apply(lambda graph: graph.chain(body.node, body.next))
    return workspace.preview_payload()


# ── Compilation ───────────────────────────────────────────────────────────────

@router.get("/preview")
def get_preview() -> Dict[str, Any]:
    return workspace.preview_payload()


@router.post("/compile")
def compile_document(data: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Compile a posted graph without touching the workspace."""
    try:
        result = compile_graph(
            json_to_graph(data),
            strict_references=workspace.settings.strict_references,
            max_depth=workspace.settings.max_depth,
        )
    except ValueError as exc:
        raise _http_error(exc)
    return result.to_dict()
