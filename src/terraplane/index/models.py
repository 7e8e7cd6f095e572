"""Index data model: source positions, declared sections and section filters.

A Section is one top-level block of a Terraform document. Its canonical
identifier is the string other blocks use to reference it:

    variable "region" {}             -> var.region
    resource "aws_s3_bucket" "b" {}  -> aws_s3_bucket.b
    data "template_file" "t" {}      -> data.template_file.t
    output "url" {}                  -> url
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

import structlog

log = structlog.get_logger()

# Block keywords that carry a "<type>" label ahead of the name
TYPED_SECTION_TYPES: frozenset[str] = frozenset({"resource", "data"})

KNOWN_SECTION_TYPES: frozenset[str] = frozenset(
    {
        "resource",
        "data",
        "variable",
        "output",
        "module",
        "provider",
        "locals",
        "terraform",
    }
)


@dataclass(frozen=True, slots=True)
class Position:
    """Zero-based line/column, as reported by tree-sitter."""

    line: int
    column: int


@dataclass(frozen=True, slots=True)
class Range:
    start: Position
    end: Position

    @classmethod
    def from_points(cls, start: tuple[int, int], end: tuple[int, int]) -> Range:
        return cls(Position(*start), Position(*end))


@dataclass(frozen=True, slots=True)
class Location:
    uri: str | None
    range: Range


@dataclass(eq=False)
class Section:
    """One declared configuration block.

    ``name`` is only changed by callers; ``id(override_name)`` previews the
    identifier a rename would produce without touching it.
    """

    section_type: str
    type: str | None
    name: str
    location: Location | None = None
    node: Any = field(default=None, repr=False)  # tree-sitter block node
    name_location: Location | None = None  # name label; what a rename edits

    def id(self, override_name: str | None = None) -> str:
        name = self.name if override_name is None else override_name

        if self.section_type == "variable":
            return f"var.{name}"
        if self.section_type == "resource" and self.type:
            return f"{self.type}.{name}"
        if self.section_type == "data" and self.type:
            return f"data.{self.type}.{name}"
        return name

    @property
    def uri(self) -> str | None:
        return self.location.uri if self.location else None

    def attributes(self) -> dict[str, str]:
        """Raw expression text of each top-level attribute in the block body."""
        if self.node is None:
            return {}

        result: dict[str, str] = {}
        for child in self.node.children:
            if child.type != "body":
                continue
            for item in child.named_children:
                parts = [c for c in item.named_children if c.type != "comment"]
                if item.type != "attribute" or len(parts) < 2:
                    continue
                key, value = parts[0], parts[-1]
                result[_text(key)] = _text(value)
        return result

    def attribute(self, name: str) -> str | None:
        return self.attributes().get(name)

    def __repr__(self) -> str:
        return f"Section({self.section_type!r}, id={self.id()!r}, uri={self.uri!r})"


@dataclass(frozen=True, slots=True)
class Query:
    """Section filter; every set field must match.

    - name: case-sensitive substring of Section.name
    - section_type: exact block keyword
    - type: exact resource/data type
    - id: exact Section.id()
    """

    name: str | None = None
    section_type: str | None = None
    type: str | None = None
    id: str | None = None

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> Query:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            log.debug("query_fields_ignored", fields=unknown)
        return cls(**{k: v for k, v in mapping.items() if k in known})

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.section_type is None and self.type is None and self.id is None

    def matches(self, section: Section) -> bool:
        if self.name is not None and self.name not in section.name:
            return False
        if self.section_type is not None and section.section_type != self.section_type:
            return False
        if self.type is not None and section.type != self.type:
            return False
        return self.id is None or section.id() == self.id


def coerce_query(value: Query | Mapping[str, Any] | None) -> Query:
    if value is None:
        return Query()
    if isinstance(value, Query):
        return value
    return Query.from_mapping(value)


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""


@dataclass(frozen=True, slots=True)
class Document:
    """A document as handed over by the content provider.

    Only documents with ``language_id == "terraform"`` that are not dirty are
    meant to be indexed; that gating is the caller's decision.
    """

    uri: str
    text: str
    path: str | None = None
    is_dirty: bool = False
    language_id: str = "terraform"
