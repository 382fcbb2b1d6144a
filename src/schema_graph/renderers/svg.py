"""SVG renderer — measures schema nodes and renders a positioned graph to SVG."""

from __future__ import annotations

from dataclasses import dataclass

from schema_graph.config import NODE_HEIGHT, NODE_WIDTH
from schema_graph.graph import CompiledGraph, GraphEdge, GraphNode, NodeDataEntry, Size
from schema_graph.layout.types import Direction
from schema_graph.pointer import unescape_segment

# ─── Constants ──────────────────────────────────────────────────────────────

CHAR_W = 7.5  # pixels per character at FONT_SIZE
ROW_H = 22  # one data row / stacked array item
HEADER_H = 24  # label bar
PAD_X = 8  # inner horizontal padding
FONT_SIZE = 12
FONT_FAMILY = "monospace"
PADDING = 40  # canvas padding in pixels
MIN_NODE_W = 100
MAX_NODE_W = 400

_IDLE_EDGE_COLOR = "#666"


def _escape(s: str) -> str:
    return s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _font(size: int = FONT_SIZE, weight: str = "normal") -> str:
    return f'font-family="{FONT_FAMILY}" font-size="{size}" font-weight="{weight}"'


def _num(v: float) -> str:
    text = f"{v:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


# ─── Row Geometry ───────────────────────────────────────────────────────────


@dataclass
class _Row:
    key: str
    entry: NodeDataEntry
    top: float
    items: list[str]


def _row_texts(entry: NodeDataEntry) -> list[str]:
    if isinstance(entry.value, list):
        return [str(item) for item in entry.value]
    if entry.ellipsis is not None:
        return [entry.ellipsis]
    if isinstance(entry.value, bool):
        return ["true" if entry.value else "false"]
    return [entry.value]


def _rows(node: GraphNode) -> list[_Row]:
    rows: list[_Row] = []
    top = float(HEADER_H)
    for key, entry in node.node_data.items():
        items = _row_texts(entry)
        rows.append(_Row(key=key, entry=entry, top=top, items=items))
        top += max(1, len(items)) * ROW_H
    return rows


def _handle_offsets(node: GraphNode) -> dict[str, float]:
    """Map source handle id → offset of its row centre from the node top.

    Handle ids are ``<node id>-<keyword>[/<member>]``; a member handle lines
    up with the stacked item of that member, others with the keyword row.
    """
    rows = {row.key: row for row in _rows(node)}
    prefix = f"{node.id}-"
    offsets: dict[str, float] = {}
    for handle in node.source_handles:
        key = handle.handle_id[len(prefix) :] if handle.handle_id.startswith(prefix) else ""
        keyword, _, member = key.partition("/")
        member = unescape_segment(member)
        row = rows.get(keyword)
        if row is None:
            offsets[handle.handle_id] = _node_size(node).height / 2
            continue
        index = 0
        if member and isinstance(row.entry.value, list):
            labels = row.entry.value
            candidates = [member, f"{keyword}[{member}]"]
            for candidate in candidates:
                if candidate in labels:
                    index = labels.index(candidate)
                    break
        offsets[handle.handle_id] = row.top + (index + 0.5) * ROW_H
    return offsets


def _node_size(node: GraphNode) -> Size:
    if node.measured is not None:
        return node.measured
    return Size(width=NODE_WIDTH, height=NODE_HEIGHT)


# ─── Shape Rendering ────────────────────────────────────────────────────────


def _render_node(node: GraphNode) -> str:
    size = _node_size(node)
    x, y, w, h = node.position.x, node.position.y, size.width, size.height
    color = node.node_style.color
    radius = 16 if node.is_boolean_node else 4
    stroke_w = 3 if node.selected else 1

    parts = [
        f'<g class="node" data-id="{_escape(node.id)}">',
        f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(w)}" height="{_num(h)}" rx="{radius}" '
        f'fill="white" stroke="{color}" stroke-width="{stroke_w}"/>',
        f'<rect x="{_num(x)}" y="{_num(y)}" width="{_num(w)}" height="{HEADER_H}" rx="{radius}" '
        f'fill="{color}" fill-opacity="0.3"/>',
        f'<text x="{_num(x + PAD_X)}" y="{_num(y + HEADER_H / 2)}" dominant-baseline="central" '
        f'{_font(weight="bold")} fill="{color}">{_escape(node.node_label)}</text>',
    ]

    for row in _rows(node):
        for i, item in enumerate(row.items):
            row_y = y + row.top + (i + 0.5) * ROW_H
            if node.is_boolean_node:
                parts.append(
                    f'<text x="{_num(x + w / 2)}" y="{_num(row_y)}" dominant-baseline="central" '
                    f'text-anchor="middle" {_font()}>{_escape(item)}</text>'
                )
            elif i == 0:
                parts.append(
                    f'<text x="{_num(x + PAD_X)}" y="{_num(row_y)}" dominant-baseline="central" {_font()}>'
                    f'<tspan font-weight="bold">{_escape(row.key)}:</tspan> {_escape(item)}</text>'
                )
            else:
                indent = PAD_X + (len(row.key) + 2) * CHAR_W
                parts.append(
                    f'<text x="{_num(x + indent)}" y="{_num(row_y)}" dominant-baseline="central" '
                    f"{_font()}>{_escape(item)}</text>"
                )

    parts.append("</g>")
    return "\n".join(parts)


# ─── Edge Rendering ─────────────────────────────────────────────────────────


def _render_edge(
    edge: GraphEdge,
    nodes: dict[str, GraphNode],
    offsets: dict[str, dict[str, float]],
    direction: Direction,
) -> str:
    source = nodes.get(edge.source)
    target = nodes.get(edge.target)
    if source is None or target is None:
        return ""

    s_size, t_size = _node_size(source), _node_size(target)
    if direction is Direction.LR:
        sx = source.position.x + s_size.width
        sy = source.position.y + offsets[source.id].get(edge.source_handle, s_size.height / 2)
        tx = target.position.x
        ty = target.position.y + t_size.height / 2
        bend = max(40.0, abs(tx - sx) / 2)
        path = f"M {_num(sx)} {_num(sy)} C {_num(sx + bend)} {_num(sy)}, {_num(tx - bend)} {_num(ty)}, {_num(tx)} {_num(ty)}"
    else:
        sx = source.position.x + s_size.width / 2
        sy = source.position.y + s_size.height
        tx = target.position.x + t_size.width / 2
        ty = target.position.y
        bend = max(30.0, abs(ty - sy) / 2)
        path = f"M {_num(sx)} {_num(sy)} C {_num(sx)} {_num(sy + bend)}, {_num(tx)} {_num(ty - bend)}, {_num(tx)} {_num(ty)}"

    stroke = edge.color if edge.selected else _IDLE_EDGE_COLOR
    width = 2.5 if edge.selected else 1
    return (
        f'<path d="{path}" fill="none" stroke="{stroke}" stroke-width="{width}" marker-end="url(#arrowhead)">'
        f"<title>{_escape(edge.label)}</title></path>"
    )


# ─── Public Renderer ────────────────────────────────────────────────────────


class SvgRenderer:
    """SVG renderer — measures nodes from their rows, draws the laid-out graph."""

    def measure(self, node: GraphNode) -> Size:
        widest = len(node.node_label)
        rows = _rows(node)
        for row in rows:
            key_w = 0 if node.is_boolean_node else len(row.key) + 2
            for item in row.items or [""]:
                widest = max(widest, key_w + len(item))
        width = min(MAX_NODE_W, max(MIN_NODE_W, widest * CHAR_W + 2 * PAD_X))
        height = HEADER_H + sum(max(1, len(row.items)) * ROW_H for row in rows)
        return Size(width=width, height=float(height))

    def render(self, graph: CompiledGraph, direction: Direction = Direction.LR) -> str:
        if not graph.nodes:
            return ""

        max_x = max_y = 0.0
        min_x = min_y = 0.0
        for node in graph.nodes:
            size = _node_size(node)
            min_x = min(min_x, node.position.x)
            min_y = min(min_y, node.position.y)
            max_x = max(max_x, node.position.x + size.width)
            max_y = max(max_y, node.position.y + size.height)

        # Collision resolution may push nodes above/left of the origin.
        origin_x, origin_y = min_x - PADDING, min_y - PADDING
        svg_w = max_x - min_x + 2 * PADDING
        svg_h = max_y - min_y + 2 * PADDING

        parts = [
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{_num(svg_w)}" height="{_num(svg_h)}" '
            f'viewBox="{_num(origin_x)} {_num(origin_y)} {_num(svg_w)} {_num(svg_h)}">',
            "<defs>",
            '  <marker id="arrowhead" markerWidth="10" markerHeight="7" refX="10" refY="3.5" orient="auto">',
            f'    <polygon points="0 0, 10 3.5, 0 7" fill="{_IDLE_EDGE_COLOR}"/>',
            "  </marker>",
            "</defs>",
            f'<rect x="{_num(origin_x)}" y="{_num(origin_y)}" width="{_num(svg_w)}" height="{_num(svg_h)}" fill="white"/>',
        ]

        by_id = {node.id: node for node in graph.nodes}
        offsets = {node.id: _handle_offsets(node) for node in graph.nodes}

        # Edges behind nodes; selected edges drawn last so they sit on top.
        ordered = [e for e in graph.edges if not e.selected] + [e for e in graph.edges if e.selected]
        for edge in ordered:
            svg = _render_edge(edge, by_id, offsets, direction)
            if svg:
                parts.append(svg)

        for node in graph.nodes:
            parts.append(_render_node(node))

        parts.append("</svg>")
        return "\n".join(parts)
