"""Tests for collision.py — measured-box overlap resolution."""

from __future__ import annotations

import pytest

from schema_graph.config import CollisionOptions
from schema_graph.errors import LayoutPreconditionError
from schema_graph.graph import GraphNode, NodeStyle, Point, SchemaKind, Size
from schema_graph.layout import Direction, all_nodes_measured, count_overlaps, resolve_collisions

# ─── Helpers ──────────────────────────────────────────────────────────────────


def make_node(
    node_id: str,
    x: float = 0.0,
    y: float = 0.0,
    size: tuple[float, float] | None = (100.0, 40.0),
    order: int = 0,
) -> GraphNode:
    return GraphNode(
        id=node_id,
        depth=0,
        node_label=node_id,
        kind=SchemaKind.Object,
        node_style=NodeStyle(color="#000"),
        position=Point(x=x, y=y),
        measured=Size(*size) if size is not None else None,
        order=order,
    )


NO_MARGIN = CollisionOptions(margin=0.0)


# ─── Measurement Precondition ─────────────────────────────────────────────────


class TestMeasured:
    def test_all_measured(self):
        assert all_nodes_measured([make_node("A"), make_node("B")])

    def test_missing_size(self):
        assert not all_nodes_measured([make_node("A"), make_node("B", size=None)])

    def test_zero_size_is_unmeasured(self):
        assert not all_nodes_measured([make_node("A", size=(0.0, 40.0))])

    def test_empty_is_not_ready(self):
        assert not all_nodes_measured([])

    def test_resolve_requires_measurements(self):
        nodes = [make_node("A"), make_node("B", size=None)]
        with pytest.raises(LayoutPreconditionError):
            resolve_collisions(nodes)
        assert nodes[0].position == Point(0.0, 0.0)


# ─── Overlap Counting ─────────────────────────────────────────────────────────


class TestCountOverlaps:
    def test_coincident(self):
        assert count_overlaps([make_node("A"), make_node("B")]) == 1

    def test_margin_counts(self):
        """Boxes 30px apart still collide once each grows by a 20px margin."""
        nodes = [make_node("A"), make_node("B", y=70.0)]
        assert count_overlaps(nodes, NO_MARGIN) == 0
        assert count_overlaps(nodes) == 1

    def test_below_threshold_ignored(self):
        nodes = [make_node("A"), make_node("B", y=39.6)]
        assert count_overlaps(nodes, NO_MARGIN) == 0

    def test_touching_is_clear(self):
        assert count_overlaps([make_node("A"), make_node("B", y=40.0)], NO_MARGIN) == 0


# ─── Resolution ───────────────────────────────────────────────────────────────


class TestResolveCollisions:
    def test_two_coincident_nodes(self):
        """Equal halves of the overlap go to each node; the earlier one moves up."""
        a, b = make_node("A", order=0), make_node("B", order=1)
        result = resolve_collisions([a, b])
        assert result.converged
        assert result.iterations == 1
        assert (a.position.x, a.position.y) == (0.0, -40.0)
        assert (b.position.x, b.position.y) == (0.0, 40.0)

    def test_rerun_is_noop(self):
        a, b = make_node("A", order=0), make_node("B", order=1)
        resolve_collisions([a, b])
        result = resolve_collisions([a, b])
        assert result.iterations == 0
        assert result.converged
        assert (a.position.y, b.position.y) == (-40.0, 40.0)

    def test_left_to_right_keeps_x(self):
        nodes = [make_node(str(i), x=322.0, y=i * 5.0, order=i) for i in range(4)]
        result = resolve_collisions(nodes, direction=Direction.LR)
        assert all(n.position.x == 322.0 for n in nodes)
        if result.converged:
            assert count_overlaps(nodes) == 0

    def test_top_to_bottom_keeps_y(self):
        a, b = make_node("A", y=116.0, order=0), make_node("B", y=116.0, order=1)
        result = resolve_collisions([a, b], direction="TB")
        assert result.converged
        assert a.position.y == b.position.y == 116.0
        assert (a.position.x, b.position.x) == (-70.0, 70.0)

    def test_separated_nodes_untouched(self):
        a, b = make_node("A"), make_node("B", y=200.0)
        result = resolve_collisions([a, b])
        assert result.iterations == 0
        assert result.converged
        assert (a.position.y, b.position.y) == (0.0, 200.0)

    def test_push_follows_centre_offset(self):
        """The node whose centre is lower gets pushed further down."""
        a, b = make_node("A", y=10.0, order=0), make_node("B", y=0.0, order=1)
        resolve_collisions([a, b], NO_MARGIN)
        assert a.position.y > b.position.y

    def test_iteration_cap(self):
        nodes = [make_node("A"), make_node("B", order=1)]
        result = resolve_collisions(nodes, CollisionOptions(max_iterations=0))
        assert result.iterations == 0
        assert not result.converged
        assert nodes[1].position.y == 0.0

    def test_many_overlaps_settle(self):
        nodes = [make_node(str(i), y=float(i), order=i) for i in range(6)]
        options = CollisionOptions()
        result = resolve_collisions(nodes, options)
        assert result.converged or result.iterations == options.max_iterations
        if result.converged:
            assert count_overlaps(nodes, options) == 0

    def test_returns_same_nodes(self):
        nodes = [make_node("A")]
        result = resolve_collisions(nodes)
        assert result.nodes is nodes
