"""Tree-sitter parsing for Terraform/HCL documents.

Wraps the tree-sitter-hcl grammar. A parse always yields a tree; syntax
errors are reported alongside it so the build pass can still index the
blocks that did parse.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from terraplane.core.errors import IndexingError

GRAMMAR_MODULE = "tree_sitter_hcl"


@dataclass(frozen=True, slots=True)
class ParseError:
    """First syntax error found in a document (0-based position)."""

    message: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.message} at {self.line + 1}:{self.column + 1}"


@dataclass
class ParseResult:
    """Result of parsing a document."""

    tree: Any  # Tree-sitter Tree
    source: bytes
    error_count: int = 0

    @property
    def root_node(self) -> Any:
        return self.tree.root_node

    @property
    def text(self) -> str:
        return self.source.decode("utf-8", errors="replace")


@dataclass
class HclParser:
    """
    Tree-sitter parser for HCL.

    Usage::

        parser = HclParser()
        result, error = parser.parse('variable "region" {}')
        if error:
            print(error)
    """

    _parser: Any = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        try:
            import tree_sitter
            import tree_sitter_hcl
        except ImportError as e:
            raise IndexingError.grammar_unavailable(GRAMMAR_MODULE, str(e)) from e

        self._parser = tree_sitter.Parser(tree_sitter.Language(tree_sitter_hcl.language()))

    def parse(self, text: str | bytes) -> tuple[ParseResult, ParseError | None]:
        source = text.encode("utf-8") if isinstance(text, str) else text

        # tree_sitter.Parser is not safe to share between threads
        with self._lock:
            tree = self._parser.parse(source)

        error: ParseError | None = None
        error_count = 0
        for node in _walk(tree.root_node):
            if node.type == "ERROR" or node.is_missing:
                error_count += 1
                if error is None:
                    kind = f"missing {node.type}" if node.is_missing else "syntax error"
                    error = ParseError(kind, node.start_point[0], node.start_point[1])

        return ParseResult(tree=tree, source=source, error_count=error_count), error


_default_parser: HclParser | None = None


def get_parser() -> HclParser:
    """Shared parser instance, created on first use."""
    global _default_parser
    if _default_parser is None:
        _default_parser = HclParser()
    return _default_parser


def parse(text: str | bytes) -> tuple[ParseResult, ParseError | None]:
    return get_parser().parse(text)


def _walk(node: Any) -> Any:
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if current.has_error or current.is_missing or current.type == "ERROR":
            stack.extend(reversed(current.children))
