"""
Default workspace.

A fresh workspace is never empty: it opens on a configuration node wired to
two pool sources and two transformations so the preview has a document to
show on first load.
"""
from __future__ import annotations

from feedgraph.core.GraphPrimitives import Graph
from feedgraph.core.Types import NodeType, DataSourceKind, AggregationFunction, Operator


ROOT_ID = "config"


def build_default_graph(name: str = "default-workspace") -> Graph:
    graph = Graph(name)

    root = graph.add_node(NodeType.ROOT, ROOT_ID)

    # ── Sources ──────────────────────────────────────────────────────────────
    weth = graph.add_node(
        NodeType.SOURCE, "src_wethusdt",
        ID="WETHUSDT",
        DATA_SOURCE=DataSourceKind.UNISWAP_V2,
        PROVIDER_URL="https://ethereum-rpc.publicnode.com",
        CONTRACT="0x0d4a11d5eeaac28ec3f61d100daf4d40471f1852",
        QUOTE_DECIMALS=6,
    )
    sol = graph.add_node(
        NodeType.SOURCE, "src_sol_usdc",
        ID="SOL_USDC",
        DATA_SOURCE=DataSourceKind.RAYDIUM_CLMM,
        PROVIDER_URL="https://solana-rpc.publicnode.com",
        CONTRACT="8sLbNZoA1cfnvMJLPfp98ZLAnFSYCFApfJKMbiXNLwxj",
    )
    graph.connect(root.id, "SOURCES", weth.id)
    graph.chain(weth.id, sol.id)

    # ── SOL_WETH_MEDIAN = median(SOL_USDC, WETHUSDT) ─────────────────────────
    median = graph.add_node(NodeType.TRANSFORMATION, "tr_sol_weth_median", ID="SOL_WETH_MEDIAN")
    aggregation = graph.add_node(NodeType.AGGREGATION, "agg_median", FORMULA=AggregationFunction.MEDIAN)
    first = graph.add_node(NodeType.VALUE, "val_sol_usdc")
    second = graph.add_node(NodeType.VALUE, "val_wethusdt")
    graph.connect(first.id, "INPUT", graph.add_node(NodeType.VARIABLE, "var_sol_usdc", NAME="SOL_USDC").id)
    graph.connect(second.id, "INPUT", graph.add_node(NodeType.VARIABLE, "var_wethusdt", NAME="WETHUSDT").id)
    graph.connect(aggregation.id, "VALUES", first.id)
    graph.chain(first.id, second.id)
    graph.connect(median.id, "VALUES", aggregation.id)

    # ── USDC_SOL = 1 / SOL_USDC ──────────────────────────────────────────────
    inverse = graph.add_node(NodeType.TRANSFORMATION, "tr_usdc_sol", ID="USDC_SOL")
    divide = graph.add_node(NodeType.FORMULA, "formula_inverse", OPERATION=Operator.DIVIDE)
    graph.connect(divide.id, "VALUE_A", graph.add_node(NodeType.CONSTANT, "const_one", INPUT="1").id)
    graph.connect(divide.id, "VALUE_B", graph.add_node(NodeType.VARIABLE, "var_sol_usdc_inv", NAME="SOL_USDC").id)
    graph.connect(inverse.id, "VALUES", divide.id)

    graph.connect(root.id, "TRANSFORMATIONS", median.id)
    graph.chain(median.id, inverse.id)
    return graph


__all__ = ["ROOT_ID", "build_default_graph"]
