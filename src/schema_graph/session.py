"""Stateful driver for the two-phase pipeline.

Phase one (``load_*``): order → compile → layered layout, all synchronous.
Phase two (``apply_measurements``): once the view has reported a real size
for every node, collision resolution runs exactly once per compiled graph.

A new load replaces the graph wholesale and resets the resolved flag;
measurements tagged with an older generation are ignored. When a load fails
the previous graph stays in place and the error is kept in ``last_error``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from schema_graph.ast import SchemaAst, build_ast
from schema_graph.compiler import compile_schema
from schema_graph.config import DEFAULT_BASE_URI, DEFAULT_COLLISION_OPTIONS, CollisionOptions
from schema_graph.errors import SchemaGraphError
from schema_graph.graph import CompiledGraph, GraphEdge, GraphNode, Point, Size
from schema_graph.layout import CollisionResult, Direction, all_nodes_measured, layout_graph, resolve_collisions
from schema_graph.loader import parse_schema
from schema_graph.ordering import sort_ast
from schema_graph.pointer import Crumb, breadcrumbs
from schema_graph.search import NavigateDirection, SearchFeedback, SearchIndex

logger = logging.getLogger(__name__)


class GraphSession:
    def __init__(
        self,
        direction: Direction | str = Direction.LR,
        collision_options: CollisionOptions = DEFAULT_COLLISION_OPTIONS,
    ) -> None:
        self.direction = Direction.parse(direction)
        self.collision_options = collision_options
        self.graph: CompiledGraph | None = None
        self.generation = 0
        self.collision_resolved = False
        self.last_collision: CollisionResult | None = None
        self.last_error: SchemaGraphError | None = None
        self.search_index = SearchIndex([])

    @property
    def nodes(self) -> list[GraphNode]:
        return self.graph.nodes if self.graph is not None else []

    @property
    def edges(self) -> list[GraphEdge]:
        return self.graph.edges if self.graph is not None else []

    # ─── Phase one: compile + layout ──────────────────────────────────────────

    def load_ast(self, ast: SchemaAst, schema_uri: str | None = None) -> bool:
        """Compile and lay out ``ast``. Returns False (keeping the old graph) on failure."""
        try:
            graph = compile_schema(sort_ast(ast), schema_uri)
            layout_graph(graph.nodes, graph.edges, self.direction)
        except SchemaGraphError as exc:
            logger.error("Error generating visualization graph: %s", exc)
            self.last_error = exc
            return False
        except Exception as exc:
            logger.exception("Unexpected error generating visualization graph")
            error = SchemaGraphError(f"unexpected error generating graph: {exc}")
            error.__cause__ = exc
            self.last_error = error
            return False

        self.graph = graph
        self.generation += 1
        self.collision_resolved = False
        self.last_collision = None
        self.last_error = None
        self.search_index = SearchIndex(graph.nodes)
        return True

    def load_schema(self, schema: Any, base_uri: str = DEFAULT_BASE_URI) -> bool:
        try:
            ast = build_ast(schema, base_uri)
        except SchemaGraphError as exc:
            logger.error("Error compiling schema: %s", exc)
            self.last_error = exc
            return False
        return self.load_ast(ast)

    def load_text(self, text: str, fmt: str = "json", base_uri: str = DEFAULT_BASE_URI) -> bool:
        try:
            schema = parse_schema(text, fmt)
        except SchemaGraphError as exc:
            logger.error("Error parsing schema: %s", exc)
            self.last_error = exc
            return False
        return self.load_schema(schema, base_uri)

    # ─── Phase two: measurement + collision resolution ────────────────────────

    def apply_measurements(
        self,
        sizes: Mapping[str, Size | tuple[float, float]],
        generation: int | None = None,
    ) -> CollisionResult | None:
        """Record measured sizes, then resolve collisions if every node is measured.

        Sizes for unknown node ids, or tagged with a ``generation`` other than
        the current one, belong to a replaced graph and are dropped.
        """
        if self.graph is None:
            return None
        if generation is not None and generation != self.generation:
            logger.debug("Ignoring measurements for stale generation %d (current %d)", generation, self.generation)
            return None

        by_id = {node.id: node for node in self.graph.nodes}
        for node_id, size in sizes.items():
            node = by_id.get(node_id)
            if node is None:
                logger.debug("Ignoring measurement for unknown node %s", node_id)
                continue
            node.measured = size if isinstance(size, Size) else Size(width=size[0], height=size[1])
        return self.resolve_if_ready()

    def resolve_if_ready(self) -> CollisionResult | None:
        if self.collision_resolved or not all_nodes_measured(self.nodes):
            return None
        result = resolve_collisions(self.nodes, self.collision_options, self.direction)
        self.collision_resolved = True
        self.last_collision = result
        return result

    # ─── Search, selection, breadcrumbs ───────────────────────────────────────

    def search(self, text: str) -> list[GraphNode]:
        return self.search_index.search(text)

    def navigate(self, direction: NavigateDirection) -> GraphNode | None:
        return self.search_index.navigate(direction)

    @property
    def feedback(self) -> SearchFeedback | None:
        return self.search_index.feedback

    def focus_point(self) -> Point | None:
        return self.search_index.focus_point()

    def select(self, node_id: str) -> GraphNode | None:
        """Select one node by id (clearing the rest); unknown ids change nothing."""
        target = self.graph.node(node_id) if self.graph is not None else None
        if target is None:
            logger.info("Node not found in graph view: %s", node_id)
            return None
        for node in self.nodes:
            node.selected = node is target
        return target

    @property
    def selected_node(self) -> GraphNode | None:
        for node in self.nodes:
            if node.selected:
                return node
        return None

    def breadcrumbs(self, node_id: str | None = None) -> list[Crumb]:
        """Trail for ``node_id`` (default: the selected node)."""
        if node_id is None:
            selected = self.selected_node
            node_id = selected.id if selected is not None else None
        return breadcrumbs(node_id)
