"""Layout passes: layered placement with depth banding, then collision resolution."""

from schema_graph.layout.banding import band_offset, layout_graph
from schema_graph.layout.collision import CollisionResult, all_nodes_measured, count_overlaps, resolve_collisions
from schema_graph.layout.types import Direction, LayoutNode

__all__ = [
    "CollisionResult",
    "Direction",
    "LayoutNode",
    "all_nodes_measured",
    "band_offset",
    "count_overlaps",
    "layout_graph",
    "resolve_collisions",
]
