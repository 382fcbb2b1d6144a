"""Graph records produced by the compiler and consumed by layout, collision and search.

GraphNode / GraphEdge mirror what a node-graph view needs: ids, positions,
display rows, style and handle attachment points. Positions are mutable;
layout and collision passes update them in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ─── Geometry ─────────────────────────────────────────────────────────────────


@dataclass
class Point:
    """A 2D point in pixel coordinates (top-left anchored for nodes)."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Size:
    width: float
    height: float


class Position(Enum):
    """Side of a node box a handle sits on."""

    Left = "left"
    Right = "right"
    Top = "top"
    Bottom = "bottom"


# ─── Classification ───────────────────────────────────────────────────────────


class SchemaKind(Enum):
    """Display classification of a schema node; drives colour and shape."""

    Object = "object"
    Array = "array"
    String = "string"
    Number = "number"
    Integer = "integer"
    Boolean = "boolean"
    Null = "null"
    Reference = "reference"
    Combinator = "combinator"
    BooleanSchema = "booleanSchema"
    Unknown = "unknown"


KIND_COLORS: dict[SchemaKind, str] = {
    SchemaKind.Object: "#3b82f6",
    SchemaKind.Array: "#8b5cf6",
    SchemaKind.String: "#10b981",
    SchemaKind.Number: "#f59e0b",
    SchemaKind.Integer: "#f97316",
    SchemaKind.Boolean: "#06b6d4",
    SchemaKind.Null: "#6b7280",
    SchemaKind.Reference: "#ec4899",
    SchemaKind.Combinator: "#eab308",
    SchemaKind.BooleanSchema: "#22c55e",
    SchemaKind.Unknown: "#94a3b8",
}

# ``false`` schemas reject everything; they get their own colour.
FALSE_SCHEMA_COLOR = "#ef4444"


# ─── Nodes and edges ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class NodeDataEntry:
    """One display row. ``value`` is a single data point or a list of stacked rows.

    ``ellipsis`` is a shortened display string for long single values.
    """

    value: str | bool | list[str]
    ellipsis: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"value": self.value}
        if self.ellipsis is not None:
            out["ellipsis"] = self.ellipsis
        return out


@dataclass(frozen=True)
class NodeStyle:
    color: str


@dataclass(frozen=True)
class Handle:
    handle_id: str
    position: Position


@dataclass
class GraphNode:
    """A positioned schema node."""

    id: str
    depth: int
    node_label: str
    kind: SchemaKind
    node_style: NodeStyle
    node_data: dict[str, NodeDataEntry] = field(default_factory=dict)
    is_boolean_node: bool = False
    target_handles: list[Handle] = field(default_factory=list)
    source_handles: list[Handle] = field(default_factory=list)
    position: Point = field(default_factory=Point)
    measured: Size | None = None
    selected: bool = False
    order: int = 0

    def is_measured(self) -> bool:
        return self.measured is not None and self.measured.width > 0 and self.measured.height > 0

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "depth": self.depth,
            "position": {"x": self.position.x, "y": self.position.y},
            "data": {
                "nodeLabel": self.node_label,
                "nodeData": {key: entry.to_dict() for key, entry in self.node_data.items()},
                "nodeStyle": {"color": self.node_style.color},
                "isBooleanNode": self.is_boolean_node,
                "targetHandles": [{"handleId": h.handle_id, "position": h.position.value} for h in self.target_handles],
                "sourceHandles": [{"handleId": h.handle_id, "position": h.position.value} for h in self.source_handles],
            },
        }
        if self.measured is not None:
            out["measured"] = {"width": self.measured.width, "height": self.measured.height}
        return out


@dataclass
class GraphEdge:
    """A parent → child relation. ``color`` is inherited from the source node."""

    id: str
    source: str
    target: str
    source_handle: str
    target_handle: str | None
    label: str
    color: str
    selected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle,
            "targetHandle": self.target_handle,
            "label": self.label,
            "data": {"color": self.color},
        }


@dataclass
class CompiledGraph:
    """Compiler output. ``errors`` lists subtrees dropped as malformed."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


class GraphBuilder:
    """Append-only accumulator for compiled nodes and edges.

    Node ids must be unique; ``add_node`` assigns compile order.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, GraphNode] = {}
        self._edges: list[GraphEdge] = []
        self._edge_ids: set[str] = set()
        self._errors: list[str] = []

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> GraphNode | None:
        return self._nodes.get(node_id)

    def add_node(self, node: GraphNode) -> GraphNode:
        if node.id in self._nodes:
            raise ValueError(f"duplicate node id: {node.id}")
        node.order = len(self._nodes)
        self._nodes[node.id] = node
        return node

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        if edge.id not in self._edge_ids:
            self._edge_ids.add(edge.id)
            self._edges.append(edge)
        return edge

    def add_error(self, message: str) -> None:
        self._errors.append(message)

    def build(self) -> CompiledGraph:
        return CompiledGraph(nodes=list(self._nodes.values()), edges=list(self._edges), errors=list(self._errors))
