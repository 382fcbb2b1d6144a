"""Sugiyama-style layered graph layout.

Phases:
  1. Cycle removal  (greedy-FAS approach)
  2. Layer assignment (rank each node)
  3. Dummy node insertion for edges spanning several layers
  4. Crossing minimization (barycenter heuristic)
  5. Coordinate assignment (x/y positions)

Works on a plain ``networkx.DiGraph`` whose node insertion order is the
tie-breaking order everywhere, so the same graph always lays out the same way.
Every vertex gets the same nominal box; real sizes are not known yet.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass

import networkx as nx

from schema_graph.layout.types import DUMMY_PREFIX, Direction, LayoutNode

# Cross-axis extent of a dummy vertex (pixels).
DUMMY_SIZE: float = 10.0

# ─── Cycle Removal (Greedy-FAS) ───────────────────────────────────────────────


def greedy_fas_ordering(graph: nx.DiGraph) -> list[str]:
    """Order vertices so that few edges point backwards (Eades–Lin–Smyth).

    Sinks are peeled onto the tail and sources onto the head until neither
    is left; then the vertex with the largest out-degree minus in-degree
    goes to the head. Degrees only count edges between vertices that are
    still in play. Candidates are scanned in graph insertion order, which
    makes the result repeatable.
    """
    pending: dict[str, None] = dict.fromkeys(graph.nodes)
    out_deg = {n: graph.out_degree(n) for n in pending}
    in_deg = {n: graph.in_degree(n) for n in pending}
    head: list[str] = []
    tail: list[str] = []

    def take(node: str, into: list[str]) -> None:
        del pending[node]
        into.append(node)
        for succ in graph.successors(node):
            if succ in pending:
                in_deg[succ] -= 1
        for pred in graph.predecessors(node):
            if pred in pending:
                out_deg[pred] -= 1

    while pending:
        peeled = True
        while peeled:
            sinks = [n for n in pending if out_deg[n] == 0]
            sources = [n for n in pending if in_deg[n] == 0 and out_deg[n] > 0]
            for node in sinks:
                take(node, tail)
            for node in sources:
                take(node, head)
            peeled = bool(sinks or sources)

        if pending:
            take(max(pending, key=lambda n: out_deg[n] - in_deg[n]), head)

    return head + tail[::-1]


def remove_cycles(graph: nx.DiGraph) -> tuple[nx.DiGraph, set[tuple[str, str]]]:
    """Remove cycles from a copy of the DiGraph using the greedy-FAS heuristic.

    Returns a tuple of:
    - new_graph: copy of graph with back-edges reversed (self-loops removed)
    - reversed_edges: set of (src_id, tgt_id) tuples that were reversed
      (identified relative to the ORIGINAL graph's edge directions)
    """
    if graph.number_of_nodes() == 0:
        return graph.copy(), set()

    ordering = greedy_fas_ordering(graph)
    position: dict[str, int] = {node: pos for pos, node in enumerate(ordering)}

    reversed_edges: set[tuple[str, str]] = set()
    for src, tgt in graph.edges():
        if src == tgt or position[src] > position[tgt]:
            reversed_edges.add((src, tgt))

    new_graph: nx.DiGraph = nx.DiGraph()
    for node_id in graph.nodes:
        new_graph.add_node(node_id, **graph.nodes[node_id])

    for src, tgt, edge_attrs in graph.edges(data=True):
        if src == tgt:
            continue
        if (src, tgt) in reversed_edges:
            new_graph.add_edge(tgt, src, **edge_attrs)
        else:
            new_graph.add_edge(src, tgt, **edge_attrs)

    return new_graph, reversed_edges


# ─── Layer Assignment ─────────────────────────────────────────────────────────


class LayerAssignment:
    """Result of layer assignment: each node is assigned a layer (rank).

    Attributes:
        layers: Maps node id → layer index.
        layer_count: Total number of layers.
        dag: The cycle-free copy of the input the layers were computed on.
    """

    def __init__(
        self,
        layers: dict[str, int],
        layer_count: int,
        dag: nx.DiGraph,
    ) -> None:
        self.layers = layers
        self.layer_count = layer_count
        self.dag = dag

    @classmethod
    def assign(cls, graph: nx.DiGraph) -> LayerAssignment:
        """Assign layers by longest path on the cycle-free copy of ``graph``.

        Algorithm: for each edge u→v in the DAG, rank[v] = max(rank[v], rank[u]+1),
        applied in topological order.
        """
        dag, _ = remove_cycles(graph)

        rank: dict[str, int] = {node_id: i for i, node_id in enumerate(graph.nodes)}
        layers: dict[str, int] = {node_id: 0 for node_id in graph.nodes}
        for node_id in nx.lexicographical_topological_sort(dag, key=rank.__getitem__):
            for succ in dag.successors(node_id):
                if layers[succ] < layers[node_id] + 1:
                    layers[succ] = layers[node_id] + 1

        layer_count = (max(layers.values()) + 1) if layers else 1
        return cls(layers=layers, layer_count=layer_count, dag=dag)


# ─── Dummy Node Insertion ─────────────────────────────────────────────────────


@dataclass
class AugmentedGraph:
    """A graph augmented with dummy nodes so every edge joins adjacent layers."""

    graph: nx.DiGraph
    layers: dict[str, int]
    layer_count: int


def insert_dummy_nodes(la: LayerAssignment) -> AugmentedGraph:
    """Replace each edge u → v with layer[v] - layer[u] > 1 by the chain
    u → d₁ → … → dₖ → v, where each dᵢ lives in layer ``layer[u] + i``.

    Dummy vertices carry the ``dummy`` node attribute.
    """
    dag = la.dag
    g: nx.DiGraph = nx.DiGraph()
    for node_id in dag.nodes:
        g.add_node(node_id, **dag.nodes[node_id])

    layers: dict[str, int] = copy.copy(la.layers)
    long_edges = 0

    for src_id, tgt_id in list(dag.edges()):
        src_layer = layers[src_id]
        tgt_layer = layers[tgt_id]
        layer_diff = tgt_layer - src_layer if tgt_layer > src_layer else 1

        if layer_diff <= 1:
            g.add_edge(src_id, tgt_id)
            continue

        chain_prev = src_id
        for i in range(layer_diff - 1):
            dummy_id = f"{DUMMY_PREFIX}{long_edges}_{i}"
            g.add_node(dummy_id, dummy=True)
            layers[dummy_id] = src_layer + i + 1
            g.add_edge(chain_prev, dummy_id)
            chain_prev = dummy_id
        g.add_edge(chain_prev, tgt_id)
        long_edges += 1

    layer_count = (max(layers.values()) + 1) if layers else 1
    return AugmentedGraph(graph=g, layers=layers, layer_count=layer_count)


# ─── Crossing Minimization (Barycenter) ───────────────────────────────────────


def minimise_crossings(aug: AugmentedGraph, max_passes: int = 24) -> list[list[str]]:
    """Minimise edge crossings using the barycenter heuristic.

    Initial per-layer order is graph insertion order (compile order for
    schema graphs). Top-down + bottom-up sweeps repeat until the crossing
    count stops improving or ``max_passes`` is reached; the best ordering
    seen is returned.
    """
    layer_count = aug.layer_count

    ordering: list[list[str]] = [[] for _ in range(layer_count)]
    for node_id in aug.graph.nodes:
        ordering[aug.layers[node_id]].append(node_id)

    best_ordering = [list(layer) for layer in ordering]
    best = count_crossings(ordering, aug.graph)

    for _pass in range(max_passes):
        if best == 0:
            break

        for layer_idx in range(1, layer_count):
            prev: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx - 1])}
            ordering[layer_idx].sort(key=lambda a, p=prev: _barycenter(a, aug.graph, p, "incoming"))

        for layer_idx in range(max(0, layer_count - 2), -1, -1):
            nxt: dict[str, float] = {nid: float(i) for i, nid in enumerate(ordering[layer_idx + 1])}
            ordering[layer_idx].sort(key=lambda a, n=nxt: _barycenter(a, aug.graph, n, "outgoing"))

        new = count_crossings(ordering, aug.graph)
        if new >= best:
            break
        best = new
        best_ordering = [list(layer) for layer in ordering]

    return best_ordering


def _barycenter(
    node_id: str,
    graph: nx.DiGraph,
    neighbor_pos: dict[str, float],
    direction: str,
) -> float:
    """Average position of a node's neighbours in the adjacent layer.

    direction: "incoming" to look at predecessors, "outgoing" for successors.
    Returns float('inf') if the node has no neighbours in the adjacent layer.
    """
    if node_id not in graph:
        return float("inf")

    neighbors = graph.predecessors(node_id) if direction == "incoming" else graph.successors(node_id)
    positions = [neighbor_pos[nb] for nb in neighbors if nb in neighbor_pos]
    if not positions:
        return float("inf")
    return sum(positions) / len(positions)


def count_crossings(ordering: list[list[str]], graph: nx.DiGraph) -> int:
    """Count edge crossings between consecutive layers (inversion count)."""
    total = 0
    for l_idx in range(len(ordering) - 1):
        tgt_pos: dict[str, int] = {nid: i for i, nid in enumerate(ordering[l_idx + 1])}
        edges: list[tuple[int, int]] = []
        for sp, src_id in enumerate(ordering[l_idx]):
            if src_id in graph:
                for nb in graph.successors(src_id):
                    if nb in tgt_pos:
                        edges.append((sp, tgt_pos[nb]))
        for i in range(len(edges)):
            for j in range(i + 1, len(edges)):
                ei, ej = edges[i], edges[j]
                if (ei[0] < ej[0] and ei[1] > ej[1]) or (ei[0] > ej[0] and ei[1] < ej[1]):
                    total += 1
    return total


# ─── Coordinate Assignment ────────────────────────────────────────────────────


def assign_coordinates(
    ordering: list[list[str]],
    aug: AugmentedGraph,
    node_size: tuple[float, float],
    cross_gap: float,
    layer_gap: float,
    direction: Direction = Direction.TB,
) -> list[LayoutNode]:
    """Assign top-left (x, y) pixel coordinates to every vertex.

    Computed top-down: ``x`` is the cross axis (position within a layer) and
    ``y`` the layer axis. For LR, width↔height are swapped before placement
    and the result is transposed back, so callers always get final-orientation
    coordinates.
    """
    is_lr = direction is Direction.LR
    width, height = node_size
    cross_size, layer_size = (height, width) if is_lr else (width, height)

    def cross_extent(node_id: str) -> float:
        return DUMMY_SIZE if aug.graph.nodes[node_id].get("dummy") else cross_size

    layer_total: list[float] = []
    for layer_nodes in ordering:
        extent = sum(cross_extent(nid) for nid in layer_nodes)
        gaps = (len(layer_nodes) - 1) * cross_gap if len(layer_nodes) > 1 else 0.0
        layer_total.append(extent + gaps)
    center = max(layer_total, default=0.0) / 2

    nodes: list[LayoutNode] = []
    for layer_idx, layer_nodes in enumerate(ordering):
        cursor = center - layer_total[layer_idx] / 2
        for order, node_id in enumerate(layer_nodes):
            extent = cross_extent(node_id)
            nodes.append(
                LayoutNode(
                    id=node_id,
                    layer=layer_idx,
                    order=order,
                    x=cursor,
                    y=layer_idx * (layer_size + layer_gap),
                    width=extent,
                    height=layer_size,
                )
            )
            cursor += extent + cross_gap

    # ── Barycenter refinement: align layers with parent/child centers ──
    #
    # Shift each layer as a block so the mean center of its nodes lines up
    # with the mean center of their neighbours in the previous (top-down) or
    # next (bottom-up) layer. Shifting whole layers keeps in-layer spacing.

    node_idx: dict[str, int] = {n.id: i for i, n in enumerate(nodes)}

    def shift_layer(layer_idx: int, neighbours: str) -> None:
        sum_self = 0.0
        sum_other = 0.0
        count = 0
        for node_id in ordering[layer_idx]:
            ni = node_idx[node_id]
            self_center = nodes[ni].x + nodes[ni].width / 2
            adjacent = (
                aug.graph.predecessors(node_id) if neighbours == "incoming" else aug.graph.successors(node_id)
            )
            for other in adjacent:
                oi = node_idx[other]
                sum_self += self_center
                sum_other += nodes[oi].x + nodes[oi].width / 2
                count += 1
        if count == 0:
            return
        shift = sum_other / count - sum_self / count
        for node_id in ordering[layer_idx]:
            nodes[node_idx[node_id]].x += shift

    for layer_idx in range(1, len(ordering)):
        shift_layer(layer_idx, "incoming")
    for layer_idx in range(max(0, len(ordering) - 2), -1, -1):
        shift_layer(layer_idx, "outgoing")

    # Normalize: leftmost vertex starts at 0.
    if nodes:
        min_x = min(n.x for n in nodes)
        for n in nodes:
            n.x -= min_x

    if is_lr:
        for n in nodes:
            n.x, n.y = n.y, n.x
            n.width, n.height = n.height, n.width
    return nodes


# ─── Full Layout Pipeline ─────────────────────────────────────────────────────


def layered_layout(
    graph: nx.DiGraph,
    node_size: tuple[float, float],
    cross_gap: float,
    layer_gap: float,
    direction: Direction = Direction.TB,
) -> dict[str, LayoutNode]:
    """Run every phase and return positioned real (non-dummy) vertices by id."""
    if graph.number_of_nodes() == 0:
        return {}
    aug = insert_dummy_nodes(LayerAssignment.assign(graph))
    ordering = minimise_crossings(aug)
    placed = assign_coordinates(ordering, aug, node_size, cross_gap, layer_gap, direction)
    return {n.id: n for n in placed if not n.id.startswith(DUMMY_PREFIX)}
