"""Schema text loading: JSON or YAML text into an in-memory schema value."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from schema_graph.errors import SchemaParseError

FORMATS: tuple[str, ...] = ("json", "yaml")

_SUFFIX_FORMATS: dict[str, str] = {".json": "json", ".yaml": "yaml", ".yml": "yaml"}


def parse_schema(text: str, fmt: str = "json") -> Any:
    """Parse schema text in the given format (``json`` or ``yaml``)."""
    if fmt == "json":
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise SchemaParseError(f"invalid JSON: {exc}") from exc
    if fmt == "yaml":
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise SchemaParseError(f"invalid YAML: {exc}") from exc
    raise SchemaParseError(f"unknown schema format {fmt!r}; expected one of {', '.join(FORMATS)}")


def format_for_path(path: Path) -> str:
    """Guess the format from a file suffix; anything unknown is treated as JSON."""
    return _SUFFIX_FORMATS.get(path.suffix.lower(), "json")


def load_schema_file(path: Path, fmt: str | None = None) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SchemaParseError(f"cannot read {path}: {exc}") from exc
    return parse_schema(text, fmt or format_for_path(path))
