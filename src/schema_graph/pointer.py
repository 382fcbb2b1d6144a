"""JSON-pointer helpers for node ids: escaping, breadcrumb trails, subschema lookup.

Node ids have the form ``base#/seg1/seg2/...``. Segments use RFC 6901
escaping (``~0`` for ``~``, ``~1`` for ``/``), so an id can always be split
back into the path that produced it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote

from schema_graph.config import ROOT_LABEL

_INDEX_RE = re.compile(r"^\d+$")


def escape_segment(segment: str) -> str:
    """Escape one path segment (``~`` first, then ``/``)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Decode one pointer segment: percent-escapes, then ``~1`` and ``~0``."""
    return unquote(segment).replace("~1", "/").replace("~0", "~")


def split_uri(uri: str) -> tuple[str, str]:
    """Split ``base#fragment`` into ``(base, fragment)``; fragment may be ''."""
    base, _, fragment = uri.partition("#")
    return base, fragment


def pointer_segments(fragment: str) -> list[str]:
    """Decode a JSON-pointer fragment into its unescaped segments."""
    return [unescape_segment(part) for part in fragment.split("/") if part]


# ─── Breadcrumbs ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Crumb:
    """One step of a breadcrumb trail: display label and the node id it targets."""

    label: str
    id: str


def breadcrumbs(node_id: str | None) -> list[Crumb]:
    """Decompose a node id into successive prefixes, starting at the root.

    ``https://x/s#/properties/a`` →
    ``[root → https://x/s, properties → ...#/properties, a → ...#/properties/a]``.
    Ids without a fragment are the root itself.
    """
    if not node_id:
        return []
    if "#" not in node_id:
        return [Crumb(label=ROOT_LABEL, id=node_id)]

    base, fragment = split_uri(node_id)
    trail = [Crumb(label=ROOT_LABEL, id=base)]
    current = ""
    for part in fragment.split("/"):
        if not part:
            continue
        current += f"/{part}"
        trail.append(Crumb(label=unescape_segment(part), id=f"{base}#{current}"))
    return trail


# ─── Subschema extraction ─────────────────────────────────────────────────────

_MISSING = object()


def _walk(document: Any, path: list[str | int]) -> Any:
    current = document
    for segment in path:
        if isinstance(current, Mapping) and segment in current:
            current = current[segment]
        elif isinstance(current, list) and isinstance(segment, int) and segment < len(current):
            current = current[segment]
        elif isinstance(current, Mapping) and str(segment) in current:
            current = current[str(segment)]
        else:
            return _MISSING
    return current


def extract_subschema(
    root_schema: Any,
    node_id: str,
    node_data: Mapping[str, Any] | None = None,
) -> Any:
    """Return the raw subschema a node id points at, ready to be copied out.

    When the pointer does not resolve against ``root_schema`` (for example a
    synthetic id), the value is rebuilt from the node's rows: a boolean node
    yields its literal, any other node a keyword → value mapping. If the last
    path segment is a name rather than an index, the result is wrapped as
    ``{name: subschema}``.
    """
    _, fragment = split_uri(node_id)
    path: list[str | int] = [
        int(seg) if _INDEX_RE.match(seg) else seg for seg in pointer_segments(fragment)
    ]

    subschema = _walk(root_schema, path)
    if subschema is _MISSING:
        rows = dict(node_data or {})
        if "booleanSchema" in rows:
            subschema = _row_value(rows["booleanSchema"])
        else:
            subschema = {key: _row_value(entry) for key, entry in rows.items()}

    key_name = path[-1] if path and isinstance(path[-1], str) else None
    if key_name is not None:
        return {key_name: subschema}
    return subschema


def _row_value(entry: Any) -> Any:
    # Accept NodeDataEntry objects as well as plain {"value": ...} mappings.
    if isinstance(entry, Mapping):
        return entry.get("value")
    return getattr(entry, "value", entry)
