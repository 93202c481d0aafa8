"""
feedgraph-compile: CLI for the feedgraph configuration compiler
================================================================
Compiles a serialised graph JSON file into the configuration document.

Usage
-----
    feedgraph-compile <graph.json> [options]
    feedgraph-compile --scaffold [options]

Options
-------
    --out        <file>   Write the document to a file instead of stdout
    --strict              Fail when a variable names no source or transformation
    --scaffold            Compile the default workspace instead of a file
    --log-level  <level>  Root log level (default: FEEDGRAPH_LOG_LEVEL or INFO)

Exit codes
----------
    0  document written
    1  invalid input file or malformed graph
    2  the generated document is not valid JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from feedgraph.compiler import MalformedGraphError, SchemaError, compile_graph, json_to_graph
from feedgraph.config import configure_logging, load_settings
from feedgraph.scaffold import build_default_graph


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="feedgraph-compile",
        description="Compile a feedgraph workspace to its configuration document.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument(
        "graph_json",
        metavar="graph.json",
        nargs="?",
        help="Path to the graph JSON file to compile.",
    )
    p.add_argument(
        "--out",
        metavar="FILE",
        help="Write the pretty-printed document to FILE instead of stdout.",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        help="Treat variables that name no source or transformation as errors.",
    )
    p.add_argument(
        "--scaffold",
        action="store_true",
        help="Compile the default workspace instead of a graph file.",
    )
    p.add_argument(
        "--log-level",
        metavar="LEVEL",
        help="Log level for the run (DEBUG, INFO, WARNING, ...).",
    )
    return p


def main(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        configure_logging(args.log_level or settings.log_level)
    except ValueError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return 1

    # ── Load graph ───────────────────────────────────────────────────────────
    if args.scaffold:
        graph = build_default_graph()
    elif args.graph_json is None:
        print("[error] A graph file is required unless --scaffold is given", file=sys.stderr)
        return 1
    else:
        json_path = Path(args.graph_json)
        if not json_path.exists():
            print(f"[error] File not found: {json_path}", file=sys.stderr)
            return 1
        try:
            graph = json_to_graph(json_path)
        except json.JSONDecodeError as exc:
            print(f"[error] Not valid JSON: {exc}", file=sys.stderr)
            return 1
        except SchemaError as exc:
            print(f"[error] Schema validation failed: {exc}", file=sys.stderr)
            return 1

    logger.debug(f"graph '{graph.name}': {len(graph.nodes)} nodes, {len(graph.edges)} edges")

    # ── Compile ──────────────────────────────────────────────────────────────
    try:
        result = compile_graph(
            graph,
            strict_references=args.strict or settings.strict_references,
            max_depth=settings.max_depth,
        )
    except MalformedGraphError as exc:
        print(f"[error] Malformed graph: {exc}", file=sys.stderr)
        return 1

    if not result.ok:
        print(f"[error] {result.display_text()}: {result.error}", file=sys.stderr)
        print(result.raw_text, file=sys.stderr)
        return 2

    # ── Output ───────────────────────────────────────────────────────────────
    text = result.pretty()
    if args.out is None:
        print(text)
        return 0

    out_path = Path(args.out)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(text + "\n", encoding="utf-8")
    print(f"[feedgraph-compile] wrote  : {out_path}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
