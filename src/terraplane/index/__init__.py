"""Index module - sections and references of Terraform documents.

This module provides:
- Section: one declared block with its canonical id (``var.x``, ``t.n``, ``data.t.n``)
- Reference: a parsed dotted path and the section id it targets
- FileIndex: the sections of one document
- Index: FileIndexes keyed by document identity, queried across documents
- build/parse: tree-sitter-hcl parsing and the build pass
"""

from terraplane.index.build import build, extract_references
from terraplane.index.file_index import FileIndex, SectionQuery
from terraplane.index.index import ALL_FILES, Index, to_uri
from terraplane.index.models import (
    KNOWN_SECTION_TYPES,
    Document,
    Location,
    Position,
    Query,
    Range,
    Section,
)
from terraplane.index.parser import HclParser, ParseError, ParseResult, parse
from terraplane.index.reference import (
    RawPath,
    Reference,
    ReferenceTarget,
    ResolvedSection,
    iter_reference_candidates,
    normalize_target,
)

__all__ = [
    # Aggregates
    "ALL_FILES",
    "Index",
    "FileIndex",
    "SectionQuery",
    "to_uri",
    # Model
    "KNOWN_SECTION_TYPES",
    "Document",
    "Location",
    "Position",
    "Query",
    "Range",
    "Section",
    # References
    "RawPath",
    "Reference",
    "ReferenceTarget",
    "ResolvedSection",
    "iter_reference_candidates",
    "normalize_target",
    # Parsing
    "HclParser",
    "ParseError",
    "ParseResult",
    "build",
    "extract_references",
    "parse",
]
