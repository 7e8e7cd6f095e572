"""Workspace-wide index: one FileIndex per document.

Usage::

    index = Index()
    index.index_document(Document(uri="main.tf", text=source))

    index.query(ALL_FILES, {"section_type": "variable"})
    index.query_references(ALL_FILES, target="var.region")
"""

from __future__ import annotations

import threading
from collections.abc import Mapping, Sequence
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, Final

import structlog

from terraplane.index._internal.ignore import is_excluded
from terraplane.index.build import build
from terraplane.index.file_index import FileIndex
from terraplane.index.models import Document, Query, Section, coerce_query
from terraplane.index.reference import RawPath, Reference, ResolvedSection, normalize_target

if TYPE_CHECKING:
    from terraplane.index.parser import HclParser

log = structlog.get_logger()

ALL_FILES: Final = "ALL_FILES"

DocumentUri = str | PurePath


def to_uri(value: DocumentUri) -> str:
    """Normalize a document identity to the string key used by the index."""
    if isinstance(value, PurePath):
        return value.as_posix()
    return value


class Index:
    """Mapping from document identity to FileIndex.

    Writes are serialized; parse and build of a document run outside the
    lock and the finished FileIndex is swapped in, so readers never see a
    partial one. Queries work on a snapshot of the mapping.
    """

    def __init__(self, *file_indexes: FileIndex, parser: HclParser | None = None) -> None:
        self._files: dict[str | None, FileIndex] = {}
        self._lock = threading.Lock()
        self._parser = parser
        for file_index in file_indexes:
            self.add(file_index)

    @property
    def parser(self) -> HclParser:
        if self._parser is None:
            from terraplane.index.parser import get_parser

            self._parser = get_parser()
        return self._parser

    @property
    def uris(self) -> list[str | None]:
        with self._lock:
            return list(self._files)

    def get(self, uri: DocumentUri) -> FileIndex | None:
        with self._lock:
            return self._files.get(to_uri(uri))

    def add(self, file_index: FileIndex) -> None:
        """Retain a pre-built FileIndex, replacing any for the same document."""
        with self._lock:
            self._files[file_index.uri] = file_index

    def index_document(
        self,
        doc: Document,
        *,
        exclude: Sequence[str] | None = None,
    ) -> FileIndex | None:
        """Parse and index ``doc``, replacing any previous FileIndex for it.

        Returns None when the document path matches an ``exclude`` glob. An
        excluded document keeps whatever was indexed for it before.
        """
        if is_excluded(doc.path or doc.uri, exclude):
            log.debug("document_excluded", uri=doc.uri)
            return None

        result, error = self.parser.parse(doc.text)
        file_index = build(doc.uri, result, error)
        if error is not None:
            log.info("document_parse_error", uri=doc.uri, error=str(error))

        self.add(file_index)
        log.debug("document_indexed", uri=doc.uri, sections=len(file_index))
        return file_index

    def delete(self, uri: DocumentUri) -> None:
        with self._lock:
            self._files.pop(to_uri(uri), None)

    def clear(self) -> None:
        with self._lock:
            self._files.clear()

    def query(
        self,
        scope: DocumentUri = ALL_FILES,
        filter: Query | Mapping[str, Any] | None = None,  # noqa: A002
    ) -> list[Section]:
        """Sections matching ``filter``, in file order then declaration order.

        An unknown document scope yields an empty list.
        """
        query = coerce_query(filter)
        return [section for f in self._in_scope(scope) for section in f.query(query)]

    def query_references(
        self,
        scope: DocumentUri = ALL_FILES,
        *,
        target: str | Section | RawPath | ResolvedSection,
    ) -> list[Reference]:
        """References in scope that point at ``target``.

        ``target`` is either a dotted path (normalized the way references
        are, so ``var.region.x`` matches ``var.region``) or a Section.
        """
        target_id = normalize_target(target)
        return [ref for f in self._in_scope(scope) for ref in f.query_references(target_id)]

    def _in_scope(self, scope: DocumentUri) -> list[FileIndex]:
        with self._lock:
            if scope == ALL_FILES:
                return list(self._files.values())
            file_index = self._files.get(to_uri(scope))
        return [file_index] if file_index is not None else []

    def __len__(self) -> int:
        with self._lock:
            return len(self._files)

    def __contains__(self, uri: object) -> bool:
        if not isinstance(uri, (str, PurePath)):
            return False
        with self._lock:
            return to_uri(uri) in self._files

    def __repr__(self) -> str:
        return f"Index(files={len(self)})"
