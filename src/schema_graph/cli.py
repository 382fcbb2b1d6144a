"""schema-graph CLI: render, export or search a schema file."""

import argparse
import json
import logging
import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version
from pathlib import Path
from typing import Optional

from schema_graph.api import build_session, export_graph
from schema_graph.errors import SchemaGraphError
from schema_graph.layout import Direction
from schema_graph.loader import FORMATS, format_for_path
from schema_graph.renderers import SvgRenderer


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaGraphError(f"File not found or unreadable: {path} ({exc})") from exc


def _write(text: str, output: Optional[Path]) -> None:
    if output is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
    else:
        output.write_text(text, encoding="utf-8")


def _session(args: argparse.Namespace):
    text = _read(args.file)
    fmt = args.format or format_for_path(args.file)
    return build_session(text, fmt, Direction.parse(args.direction), base_uri=args.file.resolve().as_uri())


def cmd_render(args: argparse.Namespace) -> int:
    renderer = SvgRenderer()
    session = _session(args)
    _write(renderer.render(session.graph, session.direction), args.output)
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    text = _read(args.file)
    fmt = args.format or format_for_path(args.file)
    payload = export_graph(text, fmt, Direction.parse(args.direction), base_uri=args.file.resolve().as_uri())
    _write(json.dumps(payload, indent=2, ensure_ascii=False), args.output)
    return 0


def cmd_search(args: argparse.Namespace) -> int:
    session = _session(args)
    matches = session.search(args.query)
    if not matches:
        feedback = session.feedback
        print(feedback.message if feedback else f"{args.query} is not in schema", file=sys.stderr)
        return 1
    for index, node in enumerate(matches, start=1):
        print(f"{index}/{len(matches)}\tdepth={node.depth}\t{node.node_label}\t{node.id}")
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point for schema-graph commands."""
    try:
        schema_graph_version = get_version("schema-graph")
    except PackageNotFoundError:
        schema_graph_version = "dev"

    parser = argparse.ArgumentParser(
        prog="schema-graph",
        description="Visualize JSON Schema documents as laid-out node graphs",
    )
    parser.add_argument("--version", action="version", version=f"schema-graph {schema_graph_version}")

    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument("file", type=Path, help="Path to JSON/YAML schema file")
    parent_parser.add_argument(
        "-f",
        "--format",
        choices=FORMATS,
        default=None,
        help="Schema format (defaults from the file suffix)",
    )
    parent_parser.add_argument(
        "-d",
        "--direction",
        choices=[d.value for d in Direction],
        default=Direction.LR.value,
        help="Layout direction (default: LR)",
    )
    parent_parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    render_parser = subparsers.add_parser("render", help="Render the schema graph as SVG", parents=[parent_parser])
    render_parser.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")

    export_parser = subparsers.add_parser(
        "export", help="Export laid-out nodes and edges as JSON", parents=[parent_parser]
    )
    export_parser.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")

    search_parser = subparsers.add_parser("search", help="List nodes whose label matches", parents=[parent_parser])
    search_parser.add_argument("query", help="Case-insensitive substring to look for")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    handlers = {"render": cmd_render, "export": cmd_export, "search": cmd_search}
    try:
        return handlers[args.command](args)
    except SchemaGraphError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
