"""Graph compiler — depth-first translation of an ordered schema AST into nodes and edges.

Every AST node reached from the root becomes exactly one ``GraphNode``; every
relation traversed (property, items, allOf branch, $ref, ...) becomes exactly
one ``GraphEdge``. A relation pointing at an already-compiled node (a ``$ref``
cycle, or a definition reached twice) draws an edge to the existing node
instead of compiling it again.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from schema_graph.ast import KeywordKind, SchemaAst, SchemaAstNode
from schema_graph.config import ELLIPSIS_LIMIT, ROOT_LABEL
from schema_graph.errors import MalformedAstError
from schema_graph.graph import (
    FALSE_SCHEMA_COLOR,
    KIND_COLORS,
    CompiledGraph,
    GraphBuilder,
    GraphEdge,
    GraphNode,
    Handle,
    NodeDataEntry,
    NodeStyle,
    Position,
    SchemaKind,
)
from schema_graph.pointer import escape_segment, pointer_segments, split_uri

logger = logging.getLogger(__name__)

BOOLEAN_SCHEMA_KEY = "booleanSchema"

# ─── Classification ───────────────────────────────────────────────────────────

_TYPE_KINDS: dict[str, SchemaKind] = {
    "object": SchemaKind.Object,
    "array": SchemaKind.Array,
    "string": SchemaKind.String,
    "number": SchemaKind.Number,
    "integer": SchemaKind.Integer,
    "boolean": SchemaKind.Boolean,
    "null": SchemaKind.Null,
}

_COMBINATOR_KEYWORDS = frozenset({"allOf", "anyOf", "oneOf", "not"})
_OBJECT_KEYWORDS = frozenset(
    {"properties", "patternProperties", "additionalProperties", "required", "propertyNames", "dependentSchemas"}
)
_ARRAY_KEYWORDS = frozenset({"items", "prefixItems", "contains", "additionalItems"})


def classify_node(node: SchemaAstNode) -> SchemaKind:
    """Pick the display kind of a schema node.

    An explicit single ``type`` wins; otherwise references, combinators and
    structural keywords are checked in that order.
    """
    if node.is_boolean:
        return SchemaKind.BooleanSchema

    type_kw = node.keyword("type")
    if type_kw is not None:
        declared = type_kw.value
        if isinstance(declared, list) and len(declared) == 1:
            declared = declared[0]
        if isinstance(declared, str) and declared in _TYPE_KINDS:
            return _TYPE_KINDS[declared]

    names = {kw.name for kw in node.keywords}
    if any(kw.kind is KeywordKind.REFERENCE for kw in node.keywords):
        return SchemaKind.Reference
    if names & _COMBINATOR_KEYWORDS:
        return SchemaKind.Combinator
    if names & _OBJECT_KEYWORDS:
        return SchemaKind.Object
    if names & _ARRAY_KEYWORDS:
        return SchemaKind.Array
    return SchemaKind.Unknown


def node_color(node: SchemaAstNode, kind: SchemaKind) -> str:
    if node.boolean is False:
        return FALSE_SCHEMA_COLOR
    return KIND_COLORS[kind]


# ─── Row formatting ───────────────────────────────────────────────────────────


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def format_entry(value: Any) -> NodeDataEntry:
    """Turn a raw keyword value into a display row.

    Arrays become stacked rows; everything else one row, shortened with an
    ``ellipsis`` display string past ``ELLIPSIS_LIMIT`` characters.
    """
    if isinstance(value, list):
        return NodeDataEntry(value=[_as_text(item) for item in value])
    text = _as_text(value)
    if len(text) > ELLIPSIS_LIMIT:
        return NodeDataEntry(value=text, ellipsis=text[: ELLIPSIS_LIMIT - 3] + "...")
    return NodeDataEntry(value=text)


# ─── Relations ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Relation:
    """One traversable parent → child link derived from a keyword.

    key:         keyword-relative path, unique within the parent; names the handle.
    label:       edge label.
    child_label: label given to the child if this relation compiles it.
    """

    keyword: str
    key: str
    label: str
    child_label: str
    target_uri: str


def _reference_label(uri: str) -> str:
    segments = pointer_segments(split_uri(uri)[1])
    return segments[-1] if segments else ROOT_LABEL


def relations(node: SchemaAstNode) -> list[Relation]:
    """Traversable relations of a node, in keyword order."""
    out: list[Relation] = []
    for kw in node.keywords:
        if kw.kind is KeywordKind.ANNOTATION:
            continue
        if kw.kind is KeywordKind.SUBSCHEMA:
            for _, uri in kw.targets:
                out.append(Relation(kw.name, kw.name, kw.name, kw.name, uri))
        elif kw.kind is KeywordKind.SUBSCHEMA_MAP:
            for member, uri in kw.targets:
                out.append(Relation(kw.name, f"{kw.name}/{escape_segment(member)}", member, member, uri))
        elif kw.kind is KeywordKind.SUBSCHEMA_LIST:
            for i, (_, uri) in enumerate(kw.targets):
                label = f"{kw.name}[{i}]"
                out.append(Relation(kw.name, f"{kw.name}/{i}", label, label, uri))
        elif kw.kind is KeywordKind.REFERENCE:
            for _, uri in kw.targets:
                out.append(Relation(kw.name, kw.name, kw.name, _reference_label(uri), uri))
        else:
            raise MalformedAstError(f"unknown keyword kind {kw.kind!r} for {kw.name!r}", node.uri)
    return out


# ─── Compiler ─────────────────────────────────────────────────────────────────


class _Compiler:
    def __init__(self, ast: SchemaAst, builder: GraphBuilder, root_id: str) -> None:
        self.ast = ast
        self.builder = builder
        self.ast_base = split_uri(ast.root_uri)[0]
        self.root_id = root_id
        # AST uri → compiled node; a hit means "draw an edge, don't recurse".
        self.visited: dict[str, GraphNode] = {}

    def node_id(self, uri: str) -> str:
        """Node id for an AST uri, moved onto the root id's base."""
        base, fragment = split_uri(uri)
        if base != self.ast_base or self.root_id == self.ast_base:
            return uri
        return f"{self.root_id}#{fragment}" if fragment else self.root_id

    def child_summary(self, uri: str) -> str:
        child = self.ast.get(uri)
        if child is None:
            return "?"
        if child.is_boolean:
            return "true" if child.boolean else "false"
        return classify_node(child).value

    def rows(self, node: SchemaAstNode) -> dict[str, NodeDataEntry]:
        if node.is_boolean:
            return {BOOLEAN_SCHEMA_KEY: NodeDataEntry(value=bool(node.boolean))}

        rows: dict[str, NodeDataEntry] = {}
        for kw in node.keywords:
            if kw.kind is KeywordKind.ANNOTATION or kw.kind is KeywordKind.REFERENCE:
                rows[kw.name] = format_entry(kw.value)
            elif kw.kind is KeywordKind.SUBSCHEMA:
                rows[kw.name] = NodeDataEntry(value=self.child_summary(kw.targets[0][1]) if kw.targets else "?")
            elif kw.kind is KeywordKind.SUBSCHEMA_MAP:
                rows[kw.name] = NodeDataEntry(value=[member for member, _ in kw.targets])
            else:
                rows[kw.name] = NodeDataEntry(value=[f"{kw.name}[{i}]" for i in range(len(kw.targets))])
        return rows

    def visit(self, uri: str, node_id: str, label: str, depth: int, is_root: bool) -> GraphNode:
        node = self.ast.get(uri)
        if not isinstance(node, SchemaAstNode):
            raise MalformedAstError("subschema is missing from the AST", uri)

        kind = classify_node(node)
        graph_node = GraphNode(
            id=node_id,
            depth=depth,
            node_label=label,
            kind=kind,
            node_style=NodeStyle(color=node_color(node, kind)),
            node_data=self.rows(node),
            is_boolean_node=node.is_boolean,
            target_handles=[] if is_root else [Handle(f"{node_id}-target", Position.Left)],
        )
        self.builder.add_node(graph_node)
        self.visited[uri] = graph_node

        for relation in relations(node):
            self.link(graph_node, relation)
        return graph_node

    def link(self, parent: GraphNode, relation: Relation) -> None:
        child = self.visited.get(relation.target_uri)
        if child is None:
            if relation.target_uri:
                child_id = self.node_id(relation.target_uri)
            else:
                child_id = f"{parent.id}/{escape_segment(relation.child_label)}"
            try:
                child = self.visit(relation.target_uri, child_id, relation.child_label, parent.depth + 1, False)
            except MalformedAstError as exc:
                logger.warning("Dropping subtree %s of %s: %s", relation.label, parent.id, exc)
                self.builder.add_error(str(exc))
                return

        handle = Handle(f"{parent.id}-{relation.key}", Position.Right)
        parent.source_handles.append(handle)
        self.builder.add_edge(
            GraphEdge(
                id=f"{parent.id}->{child.id}@{handle.handle_id}",
                source=parent.id,
                target=child.id,
                source_handle=handle.handle_id,
                target_handle=child.target_handles[0].handle_id if child.target_handles else None,
                label=relation.label,
                color=parent.node_style.color,
            )
        )


def compile_schema(
    ast: SchemaAst,
    schema_uri: str | None = None,
    builder: GraphBuilder | None = None,
) -> CompiledGraph:
    """Compile an (ordered) AST into a ``CompiledGraph``.

    The root node's id is ``schema_uri`` without its fragment (defaults to the
    AST's root URI) and its label is ``root``. Other ids keep their pointer
    fragment on the same base, so breadcrumbs always lead back to the root. Pass ``builder`` to accumulate
    into an existing builder. Raises ``MalformedAstError`` only when the root
    itself is unusable; broken subtrees are dropped and listed in
    ``CompiledGraph.errors``.
    """
    builder = builder if builder is not None else GraphBuilder()
    root_uri = ast.root_uri
    root_id = split_uri(schema_uri if schema_uri is not None else root_uri)[0]

    compiler = _Compiler(ast, builder, root_id)
    compiler.visit(root_uri, root_id, ROOT_LABEL, 0, True)

    graph = builder.build()
    logger.debug(
        "Compiled %s: %d nodes, %d edges, %d dropped subtrees",
        root_id,
        len(graph.nodes),
        len(graph.edges),
        len(graph.errors),
    )
    return graph
