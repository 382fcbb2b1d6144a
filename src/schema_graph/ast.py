"""Schema AST — the URI-indexed, keyword-level form of a JSON Schema document.

``build_ast`` walks a parsed schema value (dicts, lists, scalars as produced
by ``json``/``yaml``) and produces a ``SchemaAst``: a flat mapping from schema
URI (``base#/json/pointer``) to ``SchemaAstNode``. Each node lists its
keywords in declaration order, already classified by how they relate to
subschemas. Subschemas are referenced by URI, never embedded, so ``$ref``
cycles are representable without recursion.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import unquote, urldefrag, urljoin

from schema_graph.config import DEFAULT_BASE_URI
from schema_graph.errors import MalformedAstError
from schema_graph.pointer import escape_segment, split_uri

logger = logging.getLogger(__name__)

# ─── Keyword vocabulary ───────────────────────────────────────────────────────


class KeywordKind(Enum):
    """How a keyword's value relates to subschemas."""

    ANNOTATION = "annotation"
    SUBSCHEMA = "subschema"
    SUBSCHEMA_MAP = "subschema_map"
    SUBSCHEMA_LIST = "subschema_list"
    REFERENCE = "reference"


SUBSCHEMA_KEYWORDS: frozenset[str] = frozenset(
    {
        "items",
        "additionalItems",
        "additionalProperties",
        "unevaluatedProperties",
        "unevaluatedItems",
        "propertyNames",
        "contains",
        "not",
        "if",
        "then",
        "else",
        "contentSchema",
    }
)

SUBSCHEMA_MAP_KEYWORDS: frozenset[str] = frozenset(
    {"properties", "patternProperties", "$defs", "definitions", "dependentSchemas"}
)

SUBSCHEMA_LIST_KEYWORDS: frozenset[str] = frozenset({"allOf", "anyOf", "oneOf", "prefixItems", "items"})

REFERENCE_KEYWORDS: frozenset[str] = frozenset({"$ref", "$dynamicRef", "$recursiveRef"})


def classify_keyword(name: str, value: Any) -> KeywordKind:
    """Classify a keyword by name and value shape.

    A structural keyword whose value has the wrong shape (``properties: 3``)
    is kept as a plain annotation rather than rejected.
    """
    if name in REFERENCE_KEYWORDS and isinstance(value, str):
        return KeywordKind.REFERENCE
    if name in SUBSCHEMA_MAP_KEYWORDS and isinstance(value, Mapping):
        return KeywordKind.SUBSCHEMA_MAP
    if name in SUBSCHEMA_LIST_KEYWORDS and isinstance(value, list):
        return KeywordKind.SUBSCHEMA_LIST
    if name in SUBSCHEMA_KEYWORDS and isinstance(value, (Mapping, bool)):
        return KeywordKind.SUBSCHEMA
    return KeywordKind.ANNOTATION


# ─── AST records ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Keyword:
    """One keyword of a schema node.

    Attributes:
        name:    Keyword name as written in the document (``properties``).
        kind:    Relationship to subschemas.
        index:   Declaration position within the owning node.
        value:   Raw value for annotations and references; ``None`` otherwise.
        targets: ``(label, uri)`` pairs of the subschemas this keyword applies,
                 in declaration order. ``label`` is the member name, the list
                 index as a string, or the keyword name for single subschemas.
                 A reference's single target is its resolved URI, or empty
                 when the reference could not be resolved locally.
    """

    name: str
    kind: KeywordKind
    index: int
    value: Any = None
    targets: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class SchemaAstNode:
    """A single (sub)schema. ``boolean`` is set for ``true``/``false`` schemas."""

    uri: str | None
    keywords: tuple[Keyword, ...] = ()
    boolean: bool | None = None

    @property
    def is_boolean(self) -> bool:
        return self.boolean is not None

    def keyword(self, name: str) -> Keyword | None:
        for kw in self.keywords:
            if kw.name == name:
                return kw
        return None


@dataclass(frozen=True, eq=False)
class SchemaAst:
    """A whole compiled document: root URI plus every reachable schema node."""

    root_uri: str
    nodes: Mapping[str, SchemaAstNode]

    @property
    def base_uri(self) -> str:
        return split_uri(self.root_uri)[0]

    @property
    def root(self) -> SchemaAstNode:
        return self.nodes[self.root_uri]

    def get(self, uri: str) -> SchemaAstNode | None:
        return self.nodes.get(uri)

    def __contains__(self, uri: object) -> bool:
        return uri in self.nodes

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)


# ─── Builder ──────────────────────────────────────────────────────────────────


class _AstBuilder:
    def __init__(self, base: str) -> None:
        self.base = base
        self.nodes: dict[str, SchemaAstNode] = {}
        self.anchors: dict[str, str] = {}
        # uri → raw keyword list, finalised once every node exists.
        self._pending: dict[str, list[tuple[str, KeywordKind, Any, tuple[tuple[str, str], ...]]]] = {}

    def uri_for(self, pointer: str) -> str:
        return f"{self.base}#{pointer}"

    def visit(self, value: Any, pointer: str) -> None:
        uri = self.uri_for(pointer)
        if isinstance(value, bool):
            self.nodes[uri] = SchemaAstNode(uri=uri, boolean=value)
            return
        if not isinstance(value, Mapping):
            raise MalformedAstError(f"expected an object or boolean schema, got {type(value).__name__}", uri)

        anchor = value.get("$anchor")
        if isinstance(anchor, str):
            self.anchors[anchor] = uri

        entries: list[tuple[str, KeywordKind, Any, tuple[tuple[str, str], ...]]] = []
        for key, raw in value.items():
            name = str(key)
            kind = classify_keyword(name, raw)
            keyword_ptr = f"{pointer}/{escape_segment(name)}"
            if kind is KeywordKind.SUBSCHEMA:
                self._visit_child(raw, keyword_ptr)
                entries.append((name, kind, None, ((name, self.uri_for(keyword_ptr)),)))
            elif kind is KeywordKind.SUBSCHEMA_MAP:
                targets = []
                for member, sub in raw.items():
                    member_ptr = f"{keyword_ptr}/{escape_segment(str(member))}"
                    self._visit_child(sub, member_ptr)
                    targets.append((str(member), self.uri_for(member_ptr)))
                entries.append((name, kind, None, tuple(targets)))
            elif kind is KeywordKind.SUBSCHEMA_LIST:
                targets = []
                for i, sub in enumerate(raw):
                    item_ptr = f"{keyword_ptr}/{i}"
                    self._visit_child(sub, item_ptr)
                    targets.append((str(i), self.uri_for(item_ptr)))
                entries.append((name, kind, None, tuple(targets)))
            else:
                entries.append((name, kind, raw, ()))

        self._pending[uri] = entries
        self.nodes[uri] = SchemaAstNode(uri=uri)

    def _visit_child(self, value: Any, pointer: str) -> None:
        # A non-schema value leaves a dangling target; the compiler reports it.
        try:
            self.visit(value, pointer)
        except MalformedAstError as exc:
            logger.warning("Skipping malformed subschema: %s", exc)

    def resolve_reference(self, ref: str) -> str | None:
        """Resolve a ``$ref`` value to a URI present in this document, if any."""
        if ref.startswith("#"):
            target = self.base + ref
        else:
            target = urljoin(self.base, ref)
        document, fragment = urldefrag(target)
        if document != self.base:
            return None
        fragment = unquote(fragment)
        if fragment and not fragment.startswith("/"):
            return self.anchors.get(fragment)
        uri = self.uri_for(fragment)
        return uri if uri in self.nodes else None

    def finish(self) -> dict[str, SchemaAstNode]:
        for uri, entries in self._pending.items():
            keywords: list[Keyword] = []
            for index, (name, kind, raw, targets) in enumerate(entries):
                if kind is KeywordKind.REFERENCE:
                    resolved = self.resolve_reference(raw)
                    if resolved is None:
                        logger.warning("Unresolved reference %r in %s", raw, uri)
                        targets = ()
                    else:
                        targets = ((name, resolved),)
                keywords.append(Keyword(name=name, kind=kind, index=index, value=raw, targets=targets))
            self.nodes[uri] = SchemaAstNode(uri=uri, keywords=tuple(keywords))
        return self.nodes


def build_ast(schema: Any, base_uri: str = DEFAULT_BASE_URI) -> SchemaAst:
    """Compile a parsed schema value into a ``SchemaAst``.

    ``$id`` on the root schema replaces ``base_uri``. Raises
    ``MalformedAstError`` when the root itself is neither an object nor a
    boolean; malformed nested subschemas are logged and left out.
    """
    base = base_uri
    if isinstance(schema, Mapping) and isinstance(schema.get("$id"), str):
        base = urljoin(base_uri, schema["$id"])
    base, _ = urldefrag(base)

    builder = _AstBuilder(base)
    builder.visit(schema, "")
    nodes = builder.finish()
    logger.debug("Built schema AST for %s with %d nodes", base, len(nodes))
    return SchemaAst(root_uri=builder.uri_for(""), nodes=nodes)
