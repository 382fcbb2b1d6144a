"""One-call entry points running the full two-phase pipeline."""

from __future__ import annotations

from typing import Any

from schema_graph.config import DEFAULT_BASE_URI, DEFAULT_COLLISION_OPTIONS, CollisionOptions
from schema_graph.errors import SchemaGraphError
from schema_graph.graph import CompiledGraph
from schema_graph.layout import Direction
from schema_graph.renderers import Renderer, SvgRenderer
from schema_graph.session import GraphSession


def build_session(
    text: str,
    fmt: str = "json",
    direction: Direction | str = Direction.LR,
    base_uri: str = DEFAULT_BASE_URI,
    renderer: Renderer | None = None,
    collision_options: CollisionOptions = DEFAULT_COLLISION_OPTIONS,
) -> GraphSession:
    """Parse, compile and lay out ``text``, measure every node, then resolve collisions.

    Raises the underlying ``SchemaGraphError`` if the schema cannot be loaded.
    """
    session = GraphSession(direction=direction, collision_options=collision_options)
    if not session.load_text(text, fmt, base_uri):
        assert session.last_error is not None
        raise session.last_error

    renderer = renderer if renderer is not None else SvgRenderer()
    session.apply_measurements({node.id: renderer.measure(node) for node in session.nodes}, session.generation)
    return session


def build_graph(text: str, fmt: str = "json", direction: Direction | str = Direction.LR, **kwargs: Any) -> CompiledGraph:
    session = build_session(text, fmt, direction, **kwargs)
    if session.graph is None:
        raise SchemaGraphError("no graph was produced")
    return session.graph


def render_svg(text: str, fmt: str = "json", direction: Direction | str = Direction.LR) -> str:
    """Render schema text to an SVG document."""
    renderer = SvgRenderer()
    session = build_session(text, fmt, direction, renderer=renderer)
    assert session.graph is not None
    return renderer.render(session.graph, session.direction)


def export_graph(
    text: str,
    fmt: str = "json",
    direction: Direction | str = Direction.LR,
    base_uri: str = DEFAULT_BASE_URI,
) -> dict[str, Any]:
    """Graph as plain JSON-ready data (nodes with positions and sizes, edges).

    A ``collision`` entry reports the iterations the resolution pass took and
    whether it left any overlap.
    """
    session = build_session(text, fmt, direction, base_uri=base_uri)
    if session.graph is None:
        raise SchemaGraphError("no graph was produced")
    payload = session.graph.to_dict()
    if session.last_collision is not None:
        payload["collision"] = {
            "iterations": session.last_collision.iterations,
            "converged": session.last_collision.converged,
        }
    return payload
