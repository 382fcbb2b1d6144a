"""Base renderer protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from schema_graph.graph import CompiledGraph, GraphNode, Size
from schema_graph.layout.types import Direction


@runtime_checkable
class Renderer(Protocol):
    """Protocol that all renderers must implement.

    ``measure`` plays the part of the first render: it reports the real box of
    a node so collision resolution can run before ``render``.
    """

    def measure(self, node: GraphNode) -> Size:
        """Return the rendered size of one node."""
        ...

    def render(self, graph: CompiledGraph, direction: Direction = Direction.LR) -> str:
        """Render a laid-out graph to an output string."""
        ...
