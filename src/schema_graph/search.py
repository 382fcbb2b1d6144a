"""Label search and match navigation over a laid-out node set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from schema_graph.config import NODE_HEIGHT, NODE_WIDTH, SEARCH_FEEDBACK_SECONDS
from schema_graph.graph import GraphNode, Point

NavigateDirection = Literal["next", "prev"]


@dataclass(frozen=True)
class SearchFeedback:
    """Transient message for the view; dismissed after ``dismiss_after`` seconds."""

    message: str
    dismiss_after: float = SEARCH_FEEDBACK_SECONDS


class SearchIndex:
    """Case-insensitive substring index over node labels.

    ``search`` orders matches shallowest first (ties by compile order) and
    focuses the first; ``navigate`` steps through them cyclically. Focusing a
    node marks it ``selected`` and clears the flag on every other node. The
    view centres its camera on ``focus_point()``.
    """

    def __init__(self, nodes: list[GraphNode]) -> None:
        self._nodes = list(nodes)
        self._labels: list[tuple[str, GraphNode]] = [(n.node_label.lower(), n) for n in self._nodes]
        self.matches: list[GraphNode] = []
        self.current_match_index: int = 0
        self.feedback: SearchFeedback | None = None

    @property
    def match_count(self) -> int:
        return len(self.matches)

    @property
    def current_match(self) -> GraphNode | None:
        if not self.matches:
            return None
        return self.matches[self.current_match_index]

    def clear(self) -> None:
        self.matches = []
        self.current_match_index = 0
        self.feedback = None

    def search(self, text: str) -> list[GraphNode]:
        query = text.strip()
        if not query:
            self.clear()
            return []

        needle = query.lower()
        found = [node for label, node in self._labels if needle in label]
        self.matches = sorted(found, key=lambda n: (n.depth, n.order))
        self.current_match_index = 0

        if not self.matches:
            self.feedback = SearchFeedback(message=f"{query} is not in schema")
            return []

        self.feedback = None
        self._focus(self.matches[0])
        return list(self.matches)

    def navigate(self, direction: NavigateDirection) -> GraphNode | None:
        """Step to the next/previous match, wrapping around. No-op without matches."""
        if not self.matches:
            return None
        if direction not in ("next", "prev"):
            raise ValueError(f"direction must be 'next' or 'prev', got {direction!r}")

        step = 1 if direction == "next" else -1
        count = len(self.matches)
        self.current_match_index = (self.current_match_index + step + count) % count
        node = self.matches[self.current_match_index]
        self._focus(node)
        return node

    def focus_point(self) -> Point | None:
        """Camera centre for the current match: position + half the nominal size."""
        node = self.current_match
        if node is None:
            return None
        return Point(x=node.position.x + NODE_WIDTH / 2, y=node.position.y + NODE_HEIGHT / 2)

    def _focus(self, target: GraphNode) -> None:
        for node in self._nodes:
            node.selected = node is target
