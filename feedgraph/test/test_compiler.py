import json
import logging

import pytest

from feedgraph.compiler import (
    INVALID_DOCUMENT_TEXT,
    CompileResult,
    CycleError,
    MalformedGraphError,
    MultipleRootsError,
    RootNotFoundError,
    UnresolvedReferenceError,
    compile_graph,
    find_root,
    generate_document,
)
from feedgraph.core.GraphPrimitives import Edge, Graph, GraphSnapshot
from feedgraph.core.Node import Node
from feedgraph.core.Types import NodeType, DataSourceKind


@pytest.fixture
def graph():
    g = Graph("compile-test")
    g.add_node(NodeType.ROOT, "root")
    return g


def _add_random_source(graph, node_id="src", **fields):
    values = {"ID": "R1", "DATA_SOURCE": DataSourceKind.RANDOM}
    values.update(fields)
    graph.add_node(NodeType.SOURCE, node_id, **values)
    graph.connect("root", "SOURCES", node_id)


def _add_transformation(graph, node_id, name, value_id=None):
    graph.add_node(NodeType.TRANSFORMATION, node_id, ID=name)
    if value_id is not None:
        graph.connect(node_id, "VALUES", value_id)
    return node_id


class TestCompileGraph:

    def test_empty_root(self, graph):
        result = compile_graph(graph)
        assert result.ok
        assert result.document == {"sources": [], "transformations": []}

    def test_transformations_unconnected(self, graph):
        _add_random_source(graph)
        result = compile_graph(graph)
        assert result.ok
        assert result.document["transformations"] == []
        assert result.document["sources"] == [
            {"id": "R1", "config": {"dataSource": "random", "updateFrequency": "5s",
                                    "minValue": 0, "maxValue": 100}},
        ]

    def test_sources_keep_chain_order(self, graph):
        for node_id in ("a", "b", "c"):
            graph.add_node(NodeType.SOURCE, node_id, ID=node_id.upper())
        graph.connect("root", "SOURCES", "a")
        graph.chain("a", "b")
        graph.chain("b", "c")
        result = compile_graph(graph)
        assert [source["id"] for source in result.document["sources"]] == ["A", "B", "C"]

    def test_unconnected_operand_still_parses(self, graph):
        graph.add_node(NodeType.FORMULA, "f")
        graph.add_node(NodeType.CONSTANT, "c", INPUT="1")
        graph.connect("f", "VALUE_A", "c")
        graph.connect("root", "TRANSFORMATIONS", _add_transformation(graph, "t", "HALF", "f"))
        result = compile_graph(graph)
        assert result.ok
        assert result.document["transformations"] == [{"id": "HALF", "formula": "(1 + none)"}]

    def test_idempotent(self, graph):
        _add_random_source(graph)
        graph.add_node(NodeType.VARIABLE, "v", NAME="R1")
        graph.connect("root", "TRANSFORMATIONS", _add_transformation(graph, "t", "COPY", "v"))
        snapshot = graph.snapshot()
        first = compile_graph(snapshot)
        second = compile_graph(snapshot)
        assert first.raw_text == second.raw_text
        assert first.pretty() == second.pretty()
        assert generate_document(snapshot) == first.raw_text

    def test_malformed_numeral_reports_invalid_document(self, graph, caplog):
        _add_random_source(graph, MIN_VALUE="0..5")
        with caplog.at_level(logging.WARNING, logger="feedgraph.compiler.assembler"):
            result = compile_graph(graph)
        assert not result.ok
        assert result.document is None
        assert '"minValue":0..5' in result.raw_text
        assert result.error
        assert result.display_text() == INVALID_DOCUMENT_TEXT
        assert "invalid JSON generated" in caplog.text
        with pytest.raises(ValueError):
            result.pretty()

    def test_no_root(self):
        graph = Graph("rootless")
        graph.add_node(NodeType.SOURCE, "s")
        with pytest.raises(RootNotFoundError):
            compile_graph(graph)

    def test_two_roots(self, graph):
        graph.add_node(NodeType.ROOT, "root2")
        with pytest.raises(MultipleRootsError, match="root, root2"):
            compile_graph(graph)
        with pytest.raises(ValueError):
            find_root(graph.snapshot())

    def test_cycle_in_snapshot(self):
        nodes = {
            "root": Node.create_node("root", NodeType.ROOT),
            "t": Node.create_node("t", NodeType.TRANSFORMATION),
        }
        edges = [
            Edge("root", "TRANSFORMATIONS", "t", "previous"),
            Edge("t", "VALUES", "root", "output"),
        ]
        with pytest.raises(CycleError):
            compile_graph(GraphSnapshot(nodes, edges, name="loop"))

    def test_depth_limit(self, graph):
        graph.add_node(NodeType.FORMULA, "f0")
        for level in range(1, 4):
            graph.add_node(NodeType.FORMULA, f"f{level}")
            graph.connect(f"f{level - 1}", "VALUE_A", f"f{level}")
        graph.connect("root", "TRANSFORMATIONS", _add_transformation(graph, "t", "DEEP", "f0"))
        assert compile_graph(graph).ok
        with pytest.raises(MalformedGraphError, match="exceeds 4 levels"):
            compile_graph(graph, max_depth=4)


class TestUnresolvedReferences:

    def setup_method(self):
        self.graph = Graph("references")
        self.graph.add_node(NodeType.ROOT, "root")
        self.graph.add_node(NodeType.SOURCE, "s", ID="KNOWN")
        self.graph.connect("root", "SOURCES", "s")

        self.graph.add_node(NodeType.FORMULA, "f")
        self.graph.add_node(NodeType.VARIABLE, "known", NAME="KNOWN")
        self.graph.add_node(NodeType.VARIABLE, "missing", NAME="MISSING")
        self.graph.connect("f", "VALUE_A", "known")
        self.graph.connect("f", "VALUE_B", "missing")
        self.graph.add_node(NodeType.TRANSFORMATION, "t", ID="DERIVED")
        self.graph.connect("t", "VALUES", "f")
        self.graph.connect("root", "TRANSFORMATIONS", "t")

    def test_reported_but_compiled(self, caplog):
        with caplog.at_level(logging.WARNING):
            result = compile_graph(self.graph)
        assert result.ok
        assert result.unresolved_references == ("MISSING",)
        assert result.document["transformations"][0]["formula"] == "(KNOWN + MISSING)"
        assert "MISSING" in caplog.text

    def test_transformation_ids_resolve(self):
        self.graph.set_field("missing", "NAME", "DERIVED")
        assert compile_graph(self.graph).unresolved_references == ()

    def test_strict(self):
        with pytest.raises(UnresolvedReferenceError, match="MISSING"):
            compile_graph(self.graph, strict_references=True)


class TestCompileResult:

    def test_to_dict_success(self):
        result = CompileResult(raw_text='{"sources":[],"transformations":[]}',
                               document={"sources": [], "transformations": []})
        payload = result.to_dict()
        assert payload["ok"] is True
        assert payload["error"] is None
        assert json.loads(payload["text"]) == {"sources": [], "transformations": []}
        assert payload["unresolvedReferences"] == []

    def test_to_dict_failure(self):
        result = CompileResult(raw_text="{", error="Expecting value", unresolved_references=("X",))
        payload = result.to_dict()
        assert payload["ok"] is False
        assert payload["text"] == INVALID_DOCUMENT_TEXT
        assert payload["rawText"] == "{"
        assert payload["unresolvedReferences"] == ["X"]

    def test_pretty_uses_two_space_indent(self):
        result = CompileResult(raw_text="", document={"sources": [], "transformations": []})
        assert result.pretty() == '{\n  "sources": [],\n  "transformations": []\n}'
