"""Tests for renderers/svg.py — node measurement and SVG output."""

from __future__ import annotations

import re

from schema_graph.api import build_session
from schema_graph.graph import CompiledGraph, GraphNode, NodeDataEntry, NodeStyle, SchemaKind
from schema_graph.layout import Direction
from schema_graph.renderers import Renderer, SvgRenderer
from schema_graph.renderers.svg import HEADER_H, MAX_NODE_W, MIN_NODE_W, ROW_H

SCHEMA = """
{
  "type": "object",
  "properties": {
    "a<b": {"type": "string", "description": "quote \\" and ampersand &"},
    "list": {"type": "array", "items": {"enum": [1, 2, 3]}}
  }
}
"""


def make_node(label: str, data: dict[str, NodeDataEntry], boolean: bool = False) -> GraphNode:
    return GraphNode(
        id=label,
        depth=0,
        node_label=label,
        kind=SchemaKind.BooleanSchema if boolean else SchemaKind.Object,
        node_style=NodeStyle(color="#000"),
        node_data=data,
        is_boolean_node=boolean,
    )


class TestMeasure:
    def test_is_renderer(self):
        assert isinstance(SvgRenderer(), Renderer)

    def test_minimum_width(self):
        size = SvgRenderer().measure(make_node("x", {}))
        assert size.width == MIN_NODE_W
        assert size.height == HEADER_H

    def test_rows_add_height(self):
        node = make_node("x", {"type": NodeDataEntry("string"), "enum": NodeDataEntry(["a", "b", "c"])})
        assert SvgRenderer().measure(node).height == HEADER_H + 4 * ROW_H

    def test_width_capped(self):
        node = make_node("x", {"description": NodeDataEntry("y" * 200)})
        assert SvgRenderer().measure(node).width == MAX_NODE_W

    def test_ellipsis_used_for_width(self):
        long_text = "y" * 200
        full = make_node("x", {"d": NodeDataEntry(long_text)})
        short = make_node("x", {"d": NodeDataEntry(long_text, ellipsis="y" * 37 + "...")})
        assert SvgRenderer().measure(short).width < SvgRenderer().measure(full).width


class TestRender:
    def test_empty_graph(self):
        assert SvgRenderer().render(CompiledGraph(nodes=[], edges=[], errors=[])) == ""

    def test_document(self):
        renderer = SvgRenderer()
        session = build_session(SCHEMA, renderer=renderer)
        assert session.graph is not None
        svg = renderer.render(session.graph, session.direction)
        assert svg.startswith("<svg")
        assert svg.endswith("</svg>")
        assert svg.count('<g class="node"') == len(session.nodes)
        assert svg.count("<path ") == len(session.edges)

    def test_text_escaped(self):
        renderer = SvgRenderer()
        session = build_session(SCHEMA, renderer=renderer)
        assert session.graph is not None
        svg = renderer.render(session.graph)
        assert "a&lt;b" in svg
        assert "&quot;" in svg
        assert "&amp;" in svg
        assert "a<b" not in svg

    def test_viewbox_covers_negative_positions(self):
        renderer = SvgRenderer()
        session = build_session(SCHEMA, direction=Direction.TB, renderer=renderer)
        assert session.graph is not None
        session.graph.nodes[0].position.x = -500
        svg = renderer.render(session.graph, Direction.TB)
        match = re.search(r'viewBox="(-?[\d.]+) ', svg)
        assert match is not None
        assert float(match.group(1)) <= -500

    def test_boolean_node(self):
        renderer = SvgRenderer()
        session = build_session("false", renderer=renderer)
        assert session.graph is not None
        svg = renderer.render(session.graph)
        assert 'rx="16"' in svg
        assert ">false<" in svg
