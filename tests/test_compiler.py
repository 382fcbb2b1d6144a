"""Tests for compiler.py — AST → GraphNode / GraphEdge translation."""

from __future__ import annotations

import datetime

import pytest

from schema_graph.ast import SchemaAst, build_ast
from schema_graph.compiler import BOOLEAN_SCHEMA_KEY, classify_node, compile_schema, format_entry
from schema_graph.config import DEFAULT_BASE_URI, ELLIPSIS_LIMIT
from schema_graph.errors import MalformedAstError
from schema_graph.graph import (
    FALSE_SCHEMA_COLOR,
    KIND_COLORS,
    CompiledGraph,
    GraphBuilder,
    NodeDataEntry,
    Position,
    SchemaKind,
)
from schema_graph.ordering import sort_ast
from schema_graph.pointer import breadcrumbs

B = DEFAULT_BASE_URI

EXAMPLE = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "tags": {"type": "array", "items": {"type": "string"}},
    },
}

# ─── Helpers ──────────────────────────────────────────────────────────────────


def compile_value(schema: object) -> CompiledGraph:
    return compile_schema(sort_ast(build_ast(schema)))


def by_id(graph: CompiledGraph) -> dict:
    return {n.id: n for n in graph.nodes}


def edge_pairs(graph: CompiledGraph) -> list[tuple[str, str]]:
    return [(e.source, e.target) for e in graph.edges]


# ─── Worked Examples ──────────────────────────────────────────────────────────


class TestWorkedExamples:
    def test_object_with_array(self):
        """root, id, tags, tags.items — 4 nodes, 3 edges, depths 0/1/1/2."""
        graph = compile_value(EXAMPLE)
        nodes = by_id(graph)
        assert list(nodes) == [B, f"{B}#/properties/id", f"{B}#/properties/tags", f"{B}#/properties/tags/items"]
        assert sorted(edge_pairs(graph)) == sorted(
            [
                (B, f"{B}#/properties/id"),
                (B, f"{B}#/properties/tags"),
                (f"{B}#/properties/tags", f"{B}#/properties/tags/items"),
            ]
        )
        assert [n.depth for n in graph.nodes] == [0, 1, 1, 2]
        assert [n.node_label for n in graph.nodes] == ["root", "id", "tags", "items"]

    def test_boolean_true_schema(self):
        """A bare ``true`` compiles to one boolean node with a booleanSchema row."""
        graph = compile_value(True)
        assert len(graph.nodes) == 1
        assert graph.edges == []
        node = graph.nodes[0]
        assert node.is_boolean_node
        assert node.node_data == {BOOLEAN_SCHEMA_KEY: NodeDataEntry(value=True)}
        assert node.to_dict()["data"]["nodeData"] == {"booleanSchema": {"value": True}}

    def test_self_reference(self):
        """A $ref back to the root draws one edge to the existing root node."""
        graph = compile_value({"type": "object", "properties": {"child": {"$ref": "#"}}})
        assert len(graph.nodes) == 2
        assert sorted(edge_pairs(graph)) == sorted([(B, f"{B}#/properties/child"), (f"{B}#/properties/child", B)])
        back = next(e for e in graph.edges if e.target == B)
        assert back.label == "$ref"
        assert back.target_handle is None


# ─── Nodes ────────────────────────────────────────────────────────────────────


class TestNodes:
    def test_root_id_and_label(self):
        graph = compile_value(EXAMPLE)
        root = graph.nodes[0]
        assert root.id == B
        assert root.node_label == "root"
        assert root.depth == 0
        assert root.target_handles == []

    def test_schema_uri_sets_root_id(self):
        graph = compile_schema(sort_ast(build_ast(EXAMPLE)), "https://example.com/x.json#")
        assert graph.nodes[0].id == "https://example.com/x.json"
        ids = graph.node_ids()
        for node in graph.nodes[1:]:
            assert node.id.startswith("https://example.com/x.json#/")
            assert breadcrumbs(node.id)[0].id in ids
        assert all(edge.source in ids and edge.target in ids for edge in graph.edges)

    def test_schema_uri_rebases_refs(self):
        schema = {"$defs": {"a": {"type": "string"}}, "properties": {"x": {"$ref": "#/$defs/a"}}}
        graph = compile_schema(sort_ast(build_ast(schema)), "https://example.com/y.json")
        ids = graph.node_ids()
        assert "https://example.com/y.json#/$defs/a" in ids
        assert not any(i.startswith(B) for i in ids)

    def test_node_data_follows_ordered_keywords(self):
        """Rows follow the canonical keyword order, not declaration order."""
        graph = compile_value({"description": "d", "properties": {"a": {}}, "type": "object"})
        assert list(graph.nodes[0].node_data) == ["type", "properties", "description"]

    def test_subschema_rows(self):
        graph = compile_value(EXAMPLE)
        nodes = by_id(graph)
        assert nodes[B].node_data["properties"] == NodeDataEntry(value=["id", "tags"])
        assert nodes[f"{B}#/properties/tags"].node_data["items"] == NodeDataEntry(value="string")

    def test_list_rows(self):
        graph = compile_value({"anyOf": [{"type": "string"}, {"type": "null"}]})
        assert graph.nodes[0].node_data["anyOf"] == NodeDataEntry(value=["anyOf[0]", "anyOf[1]"])
        assert [n.node_label for n in graph.nodes[1:]] == ["anyOf[0]", "anyOf[1]"]

    def test_scalar_and_array_rows(self):
        graph = compile_value({"type": "string", "minLength": 2, "enum": ["a", 1, None], "readOnly": True})
        data = graph.nodes[0].node_data
        assert data["type"] == NodeDataEntry(value="string")
        assert data["minLength"] == NodeDataEntry(value="2")
        assert data["enum"] == NodeDataEntry(value=["a", "1", "null"])
        assert data["readOnly"] == NodeDataEntry(value="true")

    def test_reference_row(self):
        graph = compile_value({"$ref": "https://other.example/x.json"})
        assert graph.nodes[0].node_data["$ref"] == NodeDataEntry(value="https://other.example/x.json")
        assert graph.edges == []

    def test_handles(self):
        """One source handle per emitted relation, one target handle per non-root node."""
        graph = compile_value(EXAMPLE)
        nodes = by_id(graph)
        root = nodes[B]
        assert [h.handle_id for h in root.source_handles] == [f"{B}-properties/id", f"{B}-properties/tags"]
        assert all(h.position is Position.Right for h in root.source_handles)
        child = nodes[f"{B}#/properties/id"]
        assert [h.handle_id for h in child.target_handles] == [f"{B}#/properties/id-target"]
        assert child.source_handles == []

    def test_compile_order(self):
        graph = compile_value(EXAMPLE)
        assert [n.order for n in graph.nodes] == [0, 1, 2, 3]


# ─── Edges ────────────────────────────────────────────────────────────────────


class TestEdges:
    def test_edge_ids_and_handles(self):
        graph = compile_value(EXAMPLE)
        edge = next(e for e in graph.edges if e.target == f"{B}#/properties/id")
        assert edge.source_handle == f"{B}-properties/id"
        assert edge.target_handle == f"{B}#/properties/id-target"
        assert edge.id == f"{B}->{B}#/properties/id@{B}-properties/id"
        assert edge.label == "id"

    def test_edge_color_from_source(self):
        graph = compile_value(EXAMPLE)
        nodes = by_id(graph)
        for edge in graph.edges:
            assert edge.color == nodes[edge.source].node_style.color

    def test_shared_definition_compiled_once(self):
        """Two refs and the $defs entry all point at one compiled node."""
        graph = compile_value(
            {
                "properties": {"a": {"$ref": "#/$defs/x"}, "b": {"$ref": "#/$defs/x"}},
                "$defs": {"x": {"type": "string"}},
            }
        )
        x = f"{B}#/$defs/x"
        assert [n.id for n in graph.nodes] == [B, f"{B}#/properties/a", x, f"{B}#/properties/b"]
        assert sorted(edge_pairs(graph)) == sorted(
            [
                (B, f"{B}#/properties/a"),
                (f"{B}#/properties/a", x),
                (B, f"{B}#/properties/b"),
                (f"{B}#/properties/b", x),
                (B, x),
            ]
        )
        assert by_id(graph)[x].node_label == "x"
        assert by_id(graph)[x].depth == 2

    def test_referential_integrity(self):
        graph = compile_value(
            {
                "properties": {"n": {"$ref": "#"}, "m": {"items": [{"$ref": "#/properties/n"}, False]}},
                "if": {"required": ["n"]},
                "then": True,
            }
        )
        ids = graph.node_ids()
        for edge in graph.edges:
            assert edge.source in ids
            assert edge.target in ids

    def test_child_depth_is_parent_plus_one(self):
        """Every non-root node was first reached from a node one level shallower."""
        graph = compile_value(EXAMPLE | {"$defs": {"d": {"properties": {"e": {}}}}})
        nodes = by_id(graph)
        for node in graph.nodes[1:]:
            parents = [nodes[e.source].depth for e in graph.edges if e.target == node.id]
            assert node.depth - 1 in parents

    def test_handle_ids_unique_per_node(self):
        graph = compile_value({"properties": {"x": {}}, "patternProperties": {"x": {}}, "$defs": {"x": {}}})
        handles = [h.handle_id for h in graph.nodes[0].source_handles]
        assert len(handles) == len(set(handles)) == 3


# ─── Classification ───────────────────────────────────────────────────────────


class TestClassification:
    @pytest.mark.parametrize(
        "schema,kind",
        [
            ({"type": "object"}, SchemaKind.Object),
            ({"type": "array"}, SchemaKind.Array),
            ({"type": "string"}, SchemaKind.String),
            ({"type": "number"}, SchemaKind.Number),
            ({"type": ["integer"]}, SchemaKind.Integer),
            ({"type": "boolean"}, SchemaKind.Boolean),
            ({"type": "null"}, SchemaKind.Null),
            ({"$ref": "#"}, SchemaKind.Reference),
            ({"oneOf": [{}]}, SchemaKind.Combinator),
            ({"properties": {}}, SchemaKind.Object),
            ({"items": {}}, SchemaKind.Array),
            ({"type": ["string", "null"]}, SchemaKind.Unknown),
            ({}, SchemaKind.Unknown),
            (False, SchemaKind.BooleanSchema),
        ],
    )
    def test_classify(self, schema, kind):
        ast = build_ast(schema)
        assert classify_node(ast.root) is kind

    def test_same_kind_same_color(self):
        graph = compile_value({"properties": {"a": {"type": "string"}, "b": {"type": "string"}}})
        assert graph.nodes[1].node_style == graph.nodes[2].node_style
        assert graph.nodes[1].node_style.color == KIND_COLORS[SchemaKind.String]

    def test_false_schema_color(self):
        graph = compile_value({"properties": {"no": False, "yes": True}})
        nodes = by_id(graph)
        assert nodes[f"{B}#/properties/no"].node_style.color == FALSE_SCHEMA_COLOR
        assert nodes[f"{B}#/properties/yes"].node_style.color == KIND_COLORS[SchemaKind.BooleanSchema]
        assert nodes[f"{B}#/properties/no"].node_data == {BOOLEAN_SCHEMA_KEY: NodeDataEntry(value=False)}


# ─── format_entry Tests ───────────────────────────────────────────────────────


class TestFormatEntry:
    def test_short_string(self):
        assert format_entry("abc") == NodeDataEntry(value="abc")

    def test_long_string_gets_ellipsis(self):
        text = "x" * (ELLIPSIS_LIMIT + 10)
        entry = format_entry(text)
        assert entry.value == text
        assert entry.ellipsis is not None
        assert entry.ellipsis.endswith("...")
        assert len(entry.ellipsis) == ELLIPSIS_LIMIT

    def test_object_as_json(self):
        assert format_entry({"a": 1}) == NodeDataEntry(value='{"a": 1}')

    def test_array_items(self):
        assert format_entry(["a", {"b": 2}]) == NodeDataEntry(value=["a", '{"b": 2}'])

    def test_date_value_as_text(self):
        """YAML loads unquoted dates as ``datetime.date``."""
        assert format_entry(datetime.date(2020, 1, 1)) == NodeDataEntry(value='"2020-01-01"')

    def test_bytes_and_set_values(self):
        assert format_entry(b"raw").value == "\"b'raw'\""
        assert format_entry({"x"}).value == "\"{'x'}\""


# ─── Failure Handling ─────────────────────────────────────────────────────────


class TestMalformed:
    def test_bad_subtree_dropped(self):
        """A malformed member is dropped; siblings still compile."""
        graph = compile_value({"properties": {"good": {"type": "string"}, "bad": 3}})
        assert [n.node_label for n in graph.nodes] == ["root", "good"]
        assert len(graph.edges) == 1
        assert len(graph.errors) == 1
        assert f"{B}#/properties/bad" in graph.errors[0]

    def test_missing_root_raises(self):
        with pytest.raises(MalformedAstError):
            compile_schema(SchemaAst(root_uri=f"{B}#", nodes={}))


# ─── Determinism & Accumulation ───────────────────────────────────────────────


class TestDeterminism:
    def test_compile_twice_identical(self):
        schema = {
            "properties": {"z": {"$ref": "#/$defs/a"}, "a": {"items": {"type": "string"}}},
            "$defs": {"a": {"enum": [1, 2]}},
            "allOf": [{"required": ["z"]}],
        }
        first = compile_value(schema)
        second = compile_value(schema)
        assert [n.id for n in first.nodes] == [n.id for n in second.nodes]
        assert [e.id for e in first.edges] == [e.id for e in second.edges]
        assert [list(n.node_data) for n in first.nodes] == [list(n.node_data) for n in second.nodes]
        assert first.to_dict() == second.to_dict()

    def test_accumulates_into_builder(self):
        builder = GraphBuilder()
        graph = compile_schema(sort_ast(build_ast(EXAMPLE)), builder=builder)
        assert B in builder
        assert builder.get(f"{B}#/properties/id") is graph.nodes[1]
