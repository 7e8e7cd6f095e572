"""Workspace integration: document gating, initial crawl and file watching."""

from terraplane.workspace.documents import (
    Diagnostic,
    DiagnosticCollection,
    DiagnosticSeverity,
    document_uri,
    find_documents,
    initial_crawl,
    open_document,
    update_document,
)
from terraplane.workspace.watcher import (
    FileChangeEvent,
    FileChangeKind,
    FileWatcher,
    WatcherConfig,
    WatcherQueue,
    WorkspaceWatcher,
)

__all__ = [
    "Diagnostic",
    "DiagnosticCollection",
    "DiagnosticSeverity",
    "FileChangeEvent",
    "FileChangeKind",
    "FileWatcher",
    "WatcherConfig",
    "WatcherQueue",
    "WorkspaceWatcher",
    "document_uri",
    "find_documents",
    "initial_crawl",
    "open_document",
    "update_document",
]
