from schema_graph.renderers.base import Renderer
from schema_graph.renderers.svg import SvgRenderer

__all__ = ["Renderer", "SvgRenderer"]
