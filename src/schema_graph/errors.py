"""Exception hierarchy for schema-graph."""

from __future__ import annotations


class SchemaGraphError(Exception):
    """Base class for every error raised by schema-graph."""


class SchemaParseError(SchemaGraphError):
    """Schema text could not be parsed, or the format tag is unknown."""


class MalformedAstError(SchemaGraphError):
    """A schema AST node does not have the shape the compiler expects.

    ``location`` is the schema URI (or synthetic path) of the offending node.
    """

    def __init__(self, message: str, location: str | None = None) -> None:
        super().__init__(message if location is None else f"{message} (at {location})")
        self.location = location


class LayoutPreconditionError(SchemaGraphError):
    """Collision resolution was requested before every node was measured."""
