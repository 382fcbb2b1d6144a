"""Collision resolution over measured node boxes.

Runs after the presentation layer has reported real node sizes. Overlapping
pairs are pushed apart along the cross axis only (y for left-to-right
layouts, x for top-to-bottom), so depth banding is never disturbed. The pass
stops once no pair overlaps beyond the threshold or after
``max_iterations`` sweeps; a residual overlap is possible in the second case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from schema_graph.config import DEFAULT_COLLISION_OPTIONS, CollisionOptions
from schema_graph.errors import LayoutPreconditionError
from schema_graph.graph import GraphNode
from schema_graph.layout.types import Direction

logger = logging.getLogger(__name__)


@dataclass
class _Box:
    node: GraphNode
    x: float
    y: float
    width: float
    height: float
    moved: bool = False


@dataclass
class CollisionResult:
    """Outcome of a resolution run.

    ``iterations`` counts sweeps that moved something; ``converged`` is False
    when the run stopped at ``max_iterations`` with overlaps left.
    """

    nodes: list[GraphNode]
    iterations: int
    converged: bool


def all_nodes_measured(nodes: list[GraphNode]) -> bool:
    return bool(nodes) and all(n.is_measured() for n in nodes)


def _boxes(nodes: list[GraphNode], margin: float) -> list[_Box]:
    boxes = []
    for node in nodes:
        if not node.is_measured():
            raise LayoutPreconditionError(f"node {node.id!r} has no measured size")
        assert node.measured is not None
        boxes.append(
            _Box(
                node=node,
                x=node.position.x - margin,
                y=node.position.y - margin,
                width=node.measured.width + 2 * margin,
                height=node.measured.height + 2 * margin,
            )
        )
    return boxes


def _overlap(a: _Box, b: _Box) -> tuple[float, float, float, float]:
    """Return (dx, dy, overlap_x, overlap_y) between box centres."""
    dx = (a.x + a.width / 2) - (b.x + b.width / 2)
    dy = (a.y + a.height / 2) - (b.y + b.height / 2)
    return dx, dy, (a.width + b.width) / 2 - abs(dx), (a.height + b.height) / 2 - abs(dy)


def _direction_sign(delta: float, a: _Box, b: _Box) -> float:
    if delta > 0:
        return 1.0
    if delta < 0:
        return -1.0
    # Coincident centres: the earlier-compiled node moves up/left.
    return -1.0 if a.node.order <= b.node.order else 1.0


def count_overlaps(
    nodes: list[GraphNode],
    options: CollisionOptions = DEFAULT_COLLISION_OPTIONS,
) -> int:
    """Number of node pairs whose expanded boxes overlap beyond the threshold."""
    boxes = _boxes(nodes, options.margin)
    total = 0
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            _, _, px, py = _overlap(boxes[i], boxes[j])
            if px > options.overlap_threshold and py > options.overlap_threshold:
                total += 1
    return total


def resolve_collisions(
    nodes: list[GraphNode],
    options: CollisionOptions = DEFAULT_COLLISION_OPTIONS,
    direction: Direction | str = Direction.LR,
) -> CollisionResult:
    """Push overlapping nodes apart in place.

    Every node must carry a positive ``measured`` size, otherwise
    ``LayoutPreconditionError`` is raised before anything moves.
    """
    direction = Direction.parse(direction)
    margin = options.margin
    threshold = options.overlap_threshold
    boxes = _boxes(nodes, margin)

    iterations = 0
    converged = False
    for _ in range(options.max_iterations):
        moved = False
        for i in range(len(boxes)):
            for j in range(i + 1, len(boxes)):
                a, b = boxes[i], boxes[j]
                dx, dy, px, py = _overlap(a, b)
                if px <= threshold or py <= threshold:
                    continue
                moved = True
                a.moved = b.moved = True
                if direction is Direction.LR:
                    step = (py / 2) * _direction_sign(dy, a, b)
                    a.y += step
                    b.y -= step
                else:
                    step = (px / 2) * _direction_sign(dx, a, b)
                    a.x += step
                    b.x -= step
        if not moved:
            converged = True
            break
        iterations += 1

    for box in boxes:
        if box.moved:
            box.node.position.x = box.x + margin
            box.node.position.y = box.y + margin

    if not converged:
        converged = count_overlaps(nodes, options) == 0
        if not converged:
            logger.warning("Collision resolution stopped after %d iterations with overlaps left", iterations)
    logger.debug("Collision resolution: %d iterations, converged=%s", iterations, converged)
    return CollisionResult(nodes=nodes, iterations=iterations, converged=converged)
