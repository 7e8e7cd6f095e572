"""Build pass: turn a parsed HCL tree into a FileIndex.

HCL AST structure (tree-sitter-hcl)::

    config_file
    └── body
        └── block
            ├── identifier: "resource" | "variable" | "data" | ...
            ├── string_lit / identifier: labels ("aws_s3_bucket", "bucket")
            ├── block_start
            ├── body: attribute* block*
            └── block_end
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

import structlog

from terraplane.index.file_index import FileIndex
from terraplane.index.models import (
    KNOWN_SECTION_TYPES,
    TYPED_SECTION_TYPES,
    Location,
    Position,
    Range,
    Section,
)
from terraplane.index.reference import Reference, iter_reference_candidates

if TYPE_CHECKING:
    from terraplane.index.parser import ParseError, ParseResult

log = structlog.get_logger()

_LABEL_TYPES = frozenset({"string_lit", "identifier"})


def build(uri: str | None, result: ParseResult, error: ParseError | None = None) -> FileIndex:
    """Index every top-level block of a parsed document.

    Blocks inside ERROR nodes are still picked up, so a document with a
    syntax error keeps the sections that parsed.
    """
    sections: list[Section] = []
    for node in _top_level_blocks(result.root_node):
        section = _section_from_block(uri, node)
        if section is not None:
            sections.append(section)

    if error is not None:
        log.debug("build_partial", uri=uri, error=str(error), sections=len(sections))

    return FileIndex(uri, sections, result=result, parse_error=error)


def extract_references(file_index: FileIndex) -> list[Reference]:
    """Every reference expression in the document's blocks, in source order."""
    references: list[Reference] = []
    for section in file_index.sections:
        if section.node is None:
            continue
        for expression in _block_expressions(section.node):
            text = _text(expression)
            template = expression.type == "heredoc_template" or text.lstrip().startswith("<<")
            row, column = expression.start_point
            for offset, path in iter_reference_candidates(text, template=template):
                start = _advance(row, column, text, offset)
                end = _advance(row, column, text, offset + len(path))
                location = Location(file_index.uri, Range(start, end))
                references.append(Reference(path, file_index.uri, location))
    return references


def _top_level_blocks(node: Any) -> Iterator[Any]:
    for child in node.children:
        if child.type == "block":
            yield child
        elif child.type in ("body", "ERROR"):
            yield from _top_level_blocks(child)


def _section_from_block(uri: str | None, node: Any) -> Section | None:
    keyword: Any = None
    labels: list[Any] = []
    for child in node.children:
        if child.type == "block_start":
            break
        if keyword is None:
            if child.type == "identifier":
                keyword = child
            continue
        if child.type in _LABEL_TYPES:
            labels.append(child)

    if keyword is None:
        return None

    section_type = _text(keyword)
    if section_type not in KNOWN_SECTION_TYPES:
        log.debug("unknown_section_type", uri=uri, section_type=section_type)
    location = _location(uri, node)

    if section_type in TYPED_SECTION_TYPES and len(labels) >= 2:
        type_node, name_node = labels[0], labels[1]
        return Section(
            section_type,
            _label(type_node),
            _label(name_node),
            location,
            node,
            name_location=_location(uri, name_node),
        )

    if labels:
        name_node = labels[-1]
        return Section(
            section_type,
            None,
            _label(name_node),
            location,
            node,
            name_location=_location(uri, name_node),
        )

    return Section(section_type, None, section_type, location, node)


def _block_expressions(block: Any) -> Iterator[Any]:
    """Attribute value expressions of a block, nested blocks included."""
    for child in block.children:
        if child.type != "body":
            continue
        for item in child.named_children:
            if item.type == "attribute":
                parts = [c for c in item.named_children if c.type != "comment"]
                if len(parts) >= 2:
                    yield parts[-1]
            elif item.type == "block":
                yield from _block_expressions(item)


def _advance(row: int, column: int, text: str, offset: int) -> Position:
    newlines = text.count("\n", 0, offset)
    if not newlines:
        return Position(row, column + offset)
    return Position(row + newlines, offset - text.rfind("\n", 0, offset) - 1)


def _location(uri: str | None, node: Any) -> Location:
    return Location(uri, Range.from_points(node.start_point, node.end_point))


def _label(node: Any) -> str:
    return _text(node).strip('"')


def _text(node: Any) -> str:
    return node.text.decode("utf-8", errors="replace") if node.text else ""
