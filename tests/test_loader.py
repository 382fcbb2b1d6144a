"""Tests for loader.py — JSON/YAML schema text parsing."""

from __future__ import annotations

from pathlib import Path

import pytest

from schema_graph.errors import SchemaGraphError, SchemaParseError
from schema_graph.loader import format_for_path, load_schema_file, parse_schema


class TestParseSchema:
    def test_json(self):
        assert parse_schema('{"type": "string"}') == {"type": "string"}

    def test_json_boolean(self):
        assert parse_schema("true") is True

    def test_yaml(self):
        text = "type: object\nproperties:\n  id:\n    type: string\n"
        assert parse_schema(text, "yaml") == {"type": "object", "properties": {"id": {"type": "string"}}}

    def test_invalid_json(self):
        with pytest.raises(SchemaParseError, match="invalid JSON"):
            parse_schema("{not json")

    def test_invalid_yaml(self):
        with pytest.raises(SchemaParseError, match="invalid YAML"):
            parse_schema("a: [1, 2", "yaml")

    def test_unknown_format(self):
        with pytest.raises(SchemaParseError, match="unknown schema format"):
            parse_schema("{}", "toml")

    def test_parse_error_is_schema_graph_error(self):
        with pytest.raises(SchemaGraphError):
            parse_schema("")


class TestFiles:
    @pytest.mark.parametrize(
        "name,fmt",
        [("s.json", "json"), ("s.yaml", "yaml"), ("s.YML", "yaml"), ("schema", "json")],
    )
    def test_format_for_path(self, name, fmt):
        assert format_for_path(Path(name)) == fmt

    def test_load_yaml_file(self, tmp_path: Path):
        path = tmp_path / "tree.yaml"
        path.write_text("type: array\nitems: {type: integer}\n", encoding="utf-8")
        assert load_schema_file(path) == {"type": "array", "items": {"type": "integer"}}

    def test_explicit_format_wins(self, tmp_path: Path):
        path = tmp_path / "schema.txt"
        path.write_text("type: string\n", encoding="utf-8")
        assert load_schema_file(path, "yaml") == {"type": "string"}

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SchemaParseError, match="cannot read"):
            load_schema_file(tmp_path / "nope.json")
