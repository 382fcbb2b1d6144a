"""Layered layout of compiled schema graphs with strict depth banding.

The Sugiyama pass decides the cross-axis order of nodes; the primary-axis
coordinate is then replaced by a pure function of ``depth`` so every node of
one depth sits in one band, even where the layered layout put nodes of
different depths into the same layer.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import networkx as nx

from schema_graph.config import CROSS_GAP, HORIZONTAL_GAP, NODE_HEIGHT, NODE_WIDTH, VERTICAL_GAP
from schema_graph.graph import GraphEdge, GraphNode, Handle, Position
from schema_graph.layout.sugiyama import layered_layout
from schema_graph.layout.types import Direction

logger = logging.getLogger(__name__)


def band_offset(depth: int, direction: Direction = Direction.LR) -> float:
    """Primary-axis coordinate of a depth band."""
    if direction is Direction.LR:
        return depth * (NODE_WIDTH + HORIZONTAL_GAP)
    return depth * (NODE_HEIGHT + VERTICAL_GAP)


def to_digraph(nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]) -> nx.DiGraph:
    """Layout graph: one vertex per node in compile order, one edge per relation."""
    g: nx.DiGraph = nx.DiGraph()
    ordered = sorted(nodes, key=lambda n: n.order)
    for node in ordered:
        g.add_node(node.id, depth=node.depth)
    for edge in edges:
        g.add_edge(edge.source, edge.target)
    return g


def _handle_sides(direction: Direction) -> tuple[Position, Position]:
    if direction is Direction.LR:
        return Position.Left, Position.Right
    return Position.Top, Position.Bottom


def layout_graph(
    nodes: list[GraphNode],
    edges: list[GraphEdge],
    direction: Direction | str = Direction.LR,
) -> list[GraphNode]:
    """Position every node in place and return the same list.

    Vertices use the nominal ``NODE_WIDTH`` × ``NODE_HEIGHT`` box. Handle
    sides follow the direction (LR: in on the left, out on the right).
    """
    direction = Direction.parse(direction)
    if not nodes:
        return nodes

    graph = to_digraph(nodes, edges)
    layer_gap = HORIZONTAL_GAP if direction is Direction.LR else VERTICAL_GAP
    placed = layered_layout(graph, (NODE_WIDTH, NODE_HEIGHT), CROSS_GAP, layer_gap, direction)

    target_side, source_side = _handle_sides(direction)
    for node in nodes:
        vertex = placed[node.id]
        if direction is Direction.LR:
            node.position.x = band_offset(node.depth, direction)
            node.position.y = vertex.y
        else:
            node.position.x = vertex.x
            node.position.y = band_offset(node.depth, direction)
        node.target_handles = [Handle(h.handle_id, target_side) for h in node.target_handles]
        node.source_handles = [Handle(h.handle_id, source_side) for h in node.source_handles]

    logger.debug("Laid out %d nodes (%s), %d bands", len(nodes), direction.value, len({n.depth for n in nodes}))
    return nodes
