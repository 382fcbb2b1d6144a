"""Tunable constants shared by the compiler, layout, collision and search passes."""

from __future__ import annotations

from dataclasses import dataclass

# ─── Nominal geometry (pixels) ────────────────────────────────────────────────

# Placeholder node box used before the presentation layer reports real sizes.
NODE_WIDTH: float = 172.0
NODE_HEIGHT: float = 36.0

# Gap between depth bands along the primary axis.
HORIZONTAL_GAP: float = 150.0  # LR
VERTICAL_GAP: float = 80.0  # TB

# Gap between neighbouring nodes of one layer along the cross axis.
CROSS_GAP: float = 50.0

# ─── Compiler ─────────────────────────────────────────────────────────────────

ROOT_LABEL: str = "root"

# Single-value rows longer than this get a truncated ``ellipsis`` display string.
ELLIPSIS_LIMIT: int = 40

# ─── Search ───────────────────────────────────────────────────────────────────

# Seconds before a "not in schema" message is dismissed by the view.
SEARCH_FEEDBACK_SECONDS: float = 3.0


# ─── Collision resolution ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CollisionOptions:
    """Stopping and spacing parameters for ``resolve_collisions``.

    overlap_threshold is measured in pixels along each axis: a pair only
    counts as colliding when its expanded boxes overlap by more than this on
    both axes.
    """

    max_iterations: int = 500
    overlap_threshold: float = 0.5
    margin: float = 20.0


DEFAULT_COLLISION_OPTIONS = CollisionOptions()

# ─── Schema AST ───────────────────────────────────────────────────────────────

# Base URI for documents that carry no ``$id`` and were not given one.
DEFAULT_BASE_URI: str = "https://schema-graph.local/schema"
