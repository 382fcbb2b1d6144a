"""Canonical keyword ordering for schema ASTs.

Graph output (and therefore layout) follows keyword order, so every node's
keywords are sorted into fixed classes before compilation. Within a class the
document's declaration order is kept.
"""

from __future__ import annotations

from enum import IntEnum

from schema_graph.ast import Keyword, SchemaAst, SchemaAstNode


class KeywordClass(IntEnum):
    """Ordering buckets, lowest value first."""

    IDENTITY = 0
    COMBINATOR = 1
    STRUCTURE = 2
    CONDITIONAL = 3
    DEFINITIONS = 4
    METADATA = 5
    OTHER = 6


_KEYWORD_CLASSES: dict[str, KeywordClass] = {}


def _register(cls: KeywordClass, *names: str) -> None:
    for name in names:
        _KEYWORD_CLASSES[name] = cls


_register(
    KeywordClass.IDENTITY,
    "$schema",
    "$id",
    "$anchor",
    "$dynamicAnchor",
    "$recursiveAnchor",
    "$vocabulary",
    "$ref",
    "$dynamicRef",
    "$recursiveRef",
    "$comment",
    "type",
)
_register(KeywordClass.COMBINATOR, "allOf", "anyOf", "oneOf", "not")
_register(
    KeywordClass.STRUCTURE,
    "properties",
    "patternProperties",
    "additionalProperties",
    "propertyNames",
    "unevaluatedProperties",
    "dependentSchemas",
    "items",
    "prefixItems",
    "additionalItems",
    "contains",
    "unevaluatedItems",
    "contentSchema",
)
_register(KeywordClass.CONDITIONAL, "if", "then", "else", "dependentRequired", "dependencies")
_register(KeywordClass.DEFINITIONS, "$defs", "definitions")
_register(
    KeywordClass.METADATA,
    "title",
    "description",
    "default",
    "examples",
    "deprecated",
    "readOnly",
    "writeOnly",
    "const",
    "enum",
    "required",
    "format",
    "pattern",
    "minLength",
    "maxLength",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minContains",
    "maxContains",
    "minProperties",
    "maxProperties",
    "contentEncoding",
    "contentMediaType",
)


def keyword_class(name: str) -> KeywordClass:
    """Bucket for a keyword name; unknown keywords go to ``OTHER``."""
    return _KEYWORD_CLASSES.get(name, KeywordClass.OTHER)


def sort_keywords(keywords: tuple[Keyword, ...]) -> tuple[Keyword, ...]:
    return tuple(sorted(keywords, key=lambda kw: (keyword_class(kw.name), kw.index)))


def sort_ast(ast: SchemaAst) -> SchemaAst:
    """Return a new AST whose nodes list keywords in canonical order.

    The input AST is left untouched; boolean nodes are carried over as-is.
    """
    nodes: dict[str, SchemaAstNode] = {}
    for uri, node in ast.nodes.items():
        if node.is_boolean:
            nodes[uri] = node
        else:
            nodes[uri] = SchemaAstNode(uri=node.uri, keywords=sort_keywords(node.keywords), boolean=None)
    return SchemaAst(root_uri=ast.root_uri, nodes=nodes)
