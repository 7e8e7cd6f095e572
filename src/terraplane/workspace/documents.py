"""Document loading, gating and error diagnostics for workspace indexing."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from terraplane.config.models import IndexingConfig
from terraplane.core.errors import IndexingError, TerraplaneError
from terraplane.index._internal.ignore import should_prune_dir
from terraplane.index.models import Document, Position, Range

if TYPE_CHECKING:
    from terraplane.index.index import Index

log = structlog.get_logger()

TERRAFORM_LANGUAGE_ID = "terraform"
TERRAFORM_EXTENSIONS: frozenset[str] = frozenset({".tf", ".tfvars"})

# Whole-document marker used for errors that have no better position
DOCUMENT_ERROR_RANGE = Range(Position(0, 0), Position(0, 300))


class DiagnosticSeverity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"


@dataclass(frozen=True, slots=True)
class Diagnostic:
    range: Range
    message: str
    severity: DiagnosticSeverity = DiagnosticSeverity.ERROR


class DiagnosticCollection:
    """Diagnostics per document uri; setting replaces the document's list."""

    def __init__(self) -> None:
        self._entries: dict[str, list[Diagnostic]] = {}

    def set(self, uri: str, diagnostics: list[Diagnostic]) -> None:
        self._entries[uri] = list(diagnostics)

    def get(self, uri: str) -> list[Diagnostic]:
        return list(self._entries.get(uri, []))

    def items(self) -> list[tuple[str, list[Diagnostic]]]:
        return [(uri, list(entries)) for uri, entries in self._entries.items()]

    def delete(self, uri: str) -> None:
        self._entries.pop(uri, None)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, uri: object) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def document_uri(path: Path) -> str:
    return path.resolve().as_posix()


def language_id_for(path: Path, extensions: frozenset[str] = TERRAFORM_EXTENSIONS) -> str:
    suffix = path.suffix.lower()
    return TERRAFORM_LANGUAGE_ID if suffix in extensions else suffix.lstrip(".")


def open_document(path: Path, *, extensions: frozenset[str] = TERRAFORM_EXTENSIONS) -> Document:
    """Read a document from disk.

    Raises:
        IndexingError: When the file cannot be read or decoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise IndexingError.unreadable(str(path), str(e)) from e
    uri = document_uri(path)
    return Document(uri=uri, text=text, path=uri, language_id=language_id_for(path, extensions))


def update_document(
    index: Index,
    path: Path,
    *,
    config: IndexingConfig | None = None,
    diagnostics: DiagnosticCollection | None = None,
) -> None:
    """(Re-)index one document, turning failures into a document diagnostic."""
    config = config or IndexingConfig()
    uri = document_uri(path)

    try:
        doc = open_document(path, extensions=frozenset(config.extensions))
        if doc.is_dirty or doc.language_id != TERRAFORM_LANGUAGE_ID:
            return

        if index.index_document(doc, exclude=config.exclude) is None:
            log.info("index_not_generated", uri=uri)
        else:
            log.info("indexed", uri=uri)
            if diagnostics is not None:
                diagnostics.delete(uri)
    except TerraplaneError as e:
        log.warning("index_document_failed", uri=uri, **e.to_dict())
        _report_failure(diagnostics, uri, e)
    except Exception as e:
        log.error("index_document_failed", uri=uri, error=str(e), exc_info=True)
        _report_failure(diagnostics, uri, e)


def _report_failure(diagnostics: DiagnosticCollection | None, uri: str, e: Exception) -> None:
    if diagnostics is not None:
        message = f"Unhandled error parsing document: {e}"
        diagnostics.set(uri, [Diagnostic(DOCUMENT_ERROR_RANGE, message)])


def find_documents(root: Path, extensions: frozenset[str] = TERRAFORM_EXTENSIONS) -> list[Path]:
    """All Terraform documents under ``root`` (sorted), skipping caches and VCS dirs."""
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not should_prune_dir(d))
        for filename in filenames:
            if Path(filename).suffix.lower() in extensions:
                found.append(Path(dirpath) / filename)
    return sorted(found)


def initial_crawl(
    index: Index,
    root: Path,
    *,
    config: IndexingConfig | None = None,
    diagnostics: DiagnosticCollection | None = None,
) -> list[Path]:
    """Index every Terraform document in the workspace, one at a time."""
    config = config or IndexingConfig()
    log.info("crawl_started", root=str(root))

    paths = find_documents(root, frozenset(config.extensions))
    for i, path in enumerate(paths, start=1):
        log.debug("crawl_progress", path=str(path), done=i, total=len(paths))
        update_document(index, path, config=config, diagnostics=diagnostics)

    log.info("crawl_finished", root=str(root), documents=len(paths), indexed=len(index))
    return paths
