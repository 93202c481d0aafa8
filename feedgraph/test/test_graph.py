import pytest

from feedgraph.core.GraphPrimitives import Edge, Graph, GraphSnapshot
from feedgraph.core.Node import Node
from feedgraph.core.Types import NodeType


class TestGraphEditor:

    def setup_method(self):
        self.graph = Graph("editor")
        self.root = self.graph.add_node(NodeType.ROOT, "root")

    def test_add_node_defaults_and_duplicates(self):
        node = self.graph.add_node("constant", "c1")
        assert node.field("INPUT") == "123.0"
        assert self.graph.get_node("c1") is node
        with pytest.raises(ValueError, match="already exists"):
            self.graph.add_node(NodeType.CONSTANT, "c1")

    def test_add_node_fields_mapping(self):
        node = self.graph.add_node(NodeType.SOURCE, "s1", {"ID": "R1"}, DATA_SOURCE="random")
        assert node.field("ID") == "R1"
        assert node.field("DATA_SOURCE") == "random"
        with pytest.raises(ValueError, match="has no field 'node_type'"):
            self.graph.add_node(NodeType.CONSTANT, "c", {"node_type": "x"})
        assert "c" not in self.graph.nodes

    def test_get_unknown_node(self):
        with pytest.raises(KeyError):
            self.graph.get_node("missing")
        assert self.graph.find_node("missing") is None

    def test_set_field_replaces_node(self):
        before = self.graph.add_node(NodeType.SOURCE, "s1")
        after = self.graph.set_field("s1", "ID", "R1")
        assert after.field("ID") == "R1"
        assert before.field("ID") == "id"
        assert self.graph.get_node("s1") is after
        with pytest.raises(ValueError):
            self.graph.set_field("s1", "DATA_SOURCE", "kraken")

    def test_connect_statement_port(self):
        self.graph.add_node(NodeType.SOURCE, "s1")
        edge = self.graph.connect("root", "SOURCES", "s1")
        assert edge == Edge("root", "SOURCES", "s1", "previous")
        assert not edge.isChainLink()

    def test_connect_value_port(self):
        self.graph.add_node(NodeType.FORMULA, "f")
        self.graph.add_node(NodeType.CONSTANT, "c")
        edge = self.graph.connect("f", "VALUE_A", "c")
        assert edge.to_port_name == "output"

    def test_transformation_cannot_enter_sources(self):
        self.graph.add_node(NodeType.TRANSFORMATION, "t")
        with pytest.raises(ValueError):
            self.graph.connect("root", "SOURCES", "t")

    def test_constant_cannot_enter_statement_port(self):
        self.graph.add_node(NodeType.AGGREGATION, "agg")
        self.graph.add_node(NodeType.CONSTANT, "c")
        with pytest.raises(ValueError):
            self.graph.connect("agg", "VALUES", "c")
        with pytest.raises(ValueError):
            self.graph.connect("root", "TRANSFORMATIONS", "c")

    def test_source_cannot_enter_value_port(self):
        self.graph.add_node(NodeType.TRANSFORMATION, "t")
        self.graph.add_node(NodeType.SOURCE, "s")
        with pytest.raises(ValueError, match="value-producing"):
            self.graph.connect("t", "VALUES", "s")

    def test_unknown_port(self):
        self.graph.add_node(NodeType.SOURCE, "s")
        with pytest.raises(ValueError, match="has no port"):
            self.graph.connect("root", "OUTPUTS", "s")

    def test_port_holds_one_node(self):
        self.graph.add_node(NodeType.FORMULA, "f")
        self.graph.add_node(NodeType.CONSTANT, "a")
        self.graph.add_node(NodeType.CONSTANT, "b")
        self.graph.connect("f", "VALUE_A", "a")
        with pytest.raises(ValueError, match="already connected"):
            self.graph.connect("f", "VALUE_A", "b")

    def test_child_attached_once(self):
        self.graph.add_node(NodeType.FORMULA, "f")
        self.graph.add_node(NodeType.CONSTANT, "a")
        self.graph.connect("f", "VALUE_A", "a")
        with pytest.raises(ValueError, match="already attached"):
            self.graph.connect("f", "VALUE_B", "a")

    def test_node_cannot_become_its_own_ancestor(self):
        self.graph.add_node(NodeType.FORMULA, "outer")
        self.graph.add_node(NodeType.FORMULA, "inner")
        self.graph.connect("outer", "VALUE_A", "inner")
        with pytest.raises(ValueError, match="cycle"):
            self.graph.connect("inner", "VALUE_A", "outer")
        with pytest.raises(ValueError, match="cycle"):
            self.graph.connect("outer", "VALUE_B", "outer")

    def test_chain_order_and_links(self):
        for node_id in ("a", "b", "c"):
            self.graph.add_node(NodeType.SOURCE, node_id)
        self.graph.connect("root", "SOURCES", "a")
        link = self.graph.chain("a", "b")
        self.graph.chain("b", "c")

        assert link == Edge("a", "next", "b", "previous")
        assert link.isChainLink()

        snapshot = self.graph.snapshot()
        assert snapshot.target("root", "SOURCES").id == "a"
        assert snapshot.next_node("a").id == "b"
        assert snapshot.next_node("c") is None
        assert snapshot.previous_node("b").id == "a"
        assert snapshot.previous_node("a") is None
        assert snapshot.parent_edge("a").from_port_name == "SOURCES"

    def test_chain_requires_matching_category(self):
        self.graph.add_node(NodeType.SOURCE, "s")
        self.graph.add_node(NodeType.TRANSFORMATION, "t")
        self.graph.add_node(NodeType.CONSTANT, "c")
        with pytest.raises(ValueError, match="Cannot chain"):
            self.graph.chain("s", "t")
        with pytest.raises(ValueError, match="no next link"):
            self.graph.chain("c", "s")

    def test_chain_rejects_loops_and_second_successor(self):
        for node_id in ("a", "b", "c"):
            self.graph.add_node(NodeType.SOURCE, node_id)
        self.graph.chain("a", "b")
        with pytest.raises(ValueError, match="cycle"):
            self.graph.chain("b", "a")
        with pytest.raises(ValueError, match="already connected"):
            self.graph.chain("a", "c")

    def test_disconnect_moves_subtree(self):
        for node_id in ("a", "b", "c"):
            self.graph.add_node(NodeType.SOURCE, node_id)
        self.graph.connect("root", "SOURCES", "a")
        self.graph.chain("a", "b")
        self.graph.chain("b", "c")

        removed = self.graph.disconnect("b")
        assert removed == Edge("a", "next", "b", "previous")
        assert self.graph.snapshot().next_node("a") is None
        assert self.graph.snapshot().next_node("b").id == "c"
        assert self.graph.disconnect("b") is None

    def test_remove_node_detaches_edges(self):
        self.graph.add_node(NodeType.FORMULA, "f")
        self.graph.add_node(NodeType.CONSTANT, "c")
        self.graph.connect("f", "VALUE_A", "c")
        self.graph.remove_node("f")
        assert "f" not in self.graph.nodes
        assert self.graph.edges == []
        assert "c" in self.graph.nodes
        # c is free to be attached again
        self.graph.add_node(NodeType.VALUE, "w")
        self.graph.connect("w", "INPUT", "c")

    def test_root_cannot_be_removed(self):
        with pytest.raises(ValueError):
            self.graph.remove_node("root")

    def test_nodes_of_type(self):
        self.graph.add_node(NodeType.VARIABLE, "x")
        self.graph.add_node(NodeType.VARIABLE, "y")
        assert [n.id for n in self.graph.nodes_of_type(NodeType.VARIABLE)] == ["x", "y"]

    def test_reset(self):
        self.graph.reset()
        assert len(self.graph) == 0
        assert self.graph.edges == []


class TestGraphSnapshot:

    def setup_method(self):
        self.graph = Graph("snap")
        self.graph.add_node(NodeType.ROOT, "root")
        self.graph.add_node(NodeType.SOURCE, "s1")
        self.graph.connect("root", "SOURCES", "s1")

    def test_snapshot_is_detached_from_editor(self):
        snapshot = self.graph.snapshot()
        self.graph.set_field("s1", "ID", "changed")
        self.graph.add_node(NodeType.SOURCE, "s2")
        self.graph.chain("s1", "s2")

        assert snapshot.get_node("s1").field("ID") == "id"
        assert len(snapshot) == 2
        assert snapshot.next_node("s1") is None

    def test_snapshot_is_read_only(self):
        snapshot = self.graph.snapshot()
        with pytest.raises(TypeError):
            snapshot.nodes["x"] = Node.create_node("x", NodeType.CONSTANT)
        assert isinstance(snapshot.edges, tuple)

    def test_snapshot_rejects_dangling_edges(self):
        nodes = {"root": Node.create_node("root", NodeType.ROOT)}
        with pytest.raises(ValueError, match="not found"):
            GraphSnapshot(nodes, [Edge("root", "SOURCES", "ghost", "previous")])

    def test_snapshot_rejects_second_parent(self):
        nodes = {
            "root": Node.create_node("root", NodeType.ROOT),
            "s": Node.create_node("s", NodeType.SOURCE),
            "t": Node.create_node("t", NodeType.SOURCE),
        }
        edges = [Edge("root", "SOURCES", "s", "previous"), Edge("t", "next", "s", "previous")]
        with pytest.raises(ValueError, match="already attached"):
            GraphSnapshot(nodes, edges)
