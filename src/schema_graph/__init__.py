"""Compile JSON Schema documents into laid-out, searchable node/edge graphs."""

from schema_graph.api import build_graph, build_session, export_graph, render_svg
from schema_graph.ast import SchemaAst, SchemaAstNode, build_ast
from schema_graph.compiler import compile_schema
from schema_graph.config import CollisionOptions
from schema_graph.errors import LayoutPreconditionError, MalformedAstError, SchemaGraphError, SchemaParseError
from schema_graph.graph import CompiledGraph, GraphEdge, GraphNode
from schema_graph.layout import Direction, layout_graph, resolve_collisions
from schema_graph.loader import parse_schema
from schema_graph.ordering import sort_ast
from schema_graph.search import SearchIndex
from schema_graph.session import GraphSession

__all__ = [
    "CollisionOptions",
    "CompiledGraph",
    "Direction",
    "GraphEdge",
    "GraphNode",
    "GraphSession",
    "LayoutPreconditionError",
    "MalformedAstError",
    "SchemaAst",
    "SchemaAstNode",
    "SchemaGraphError",
    "SchemaParseError",
    "SearchIndex",
    "build_ast",
    "build_graph",
    "build_session",
    "compile_schema",
    "export_graph",
    "layout_graph",
    "parse_schema",
    "render_svg",
    "resolve_collisions",
    "sort_ast",
]
