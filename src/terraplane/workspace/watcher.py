"""Workspace watcher keeping the index in step with Terraform files on disk.

- Poll the workspace for created/modified/deleted .tf/.tfvars files
- Debounce events (handle save storms, mid-write saves)
- Re-index created and modified documents, drop deleted ones
- Apply batches one event at a time so index writes never interleave
"""

from __future__ import annotations

import asyncio
import contextlib
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from terraplane.config.models import IndexingConfig, WatchConfig
from terraplane.index._internal.ignore import should_prune_dir
from terraplane.workspace.documents import (
    DiagnosticCollection,
    document_uri,
    update_document,
)

if TYPE_CHECKING:
    from terraplane.index.index import Index

log = structlog.get_logger()


class FileChangeKind(Enum):
    """Kind of file change detected."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


@dataclass
class FileChangeEvent:
    """A file change event."""

    path: Path  # absolute
    kind: FileChangeKind
    timestamp: float


@dataclass
class WatcherConfig:
    """Configuration for the file watcher."""

    root: Path
    debounce_seconds: float = 0.5
    extensions: frozenset[str] = field(default_factory=lambda: frozenset({".tf", ".tfvars"}))
    max_queue_size: int = 1000

    @classmethod
    def from_config(
        cls, root: Path, watch: WatchConfig, indexing: IndexingConfig
    ) -> WatcherConfig:
        return cls(
            root=root,
            debounce_seconds=watch.debounce_sec,
            extensions=frozenset(indexing.extensions),
            max_queue_size=watch.max_queue_size,
        )


class FileWatcher:
    """Polls the workspace and yields batches of debounced change events.

    Usage::

        watcher = FileWatcher(WatcherConfig(root=Path("/infra")))

        async for events in watcher.watch():
            for event in events:
                print(f"{event.kind}: {event.path}")
    """

    def __init__(self, config: WatcherConfig) -> None:
        self._config = config
        self._running = False
        self._stop_event: asyncio.Event | None = None

    @property
    def root(self) -> Path:
        return self._config.root

    @property
    def is_running(self) -> bool:
        return self._running

    async def watch(self) -> AsyncIterator[list[FileChangeEvent]]:
        """Watch for file changes and yield batches."""
        self._running = True
        self._stop_event = asyncio.Event()

        try:
            mtimes = self._scan_mtimes()
            while not self._stop_event.is_set():
                await asyncio.sleep(self._config.debounce_seconds)

                current = self._scan_mtimes()
                events = self._diff(mtimes, current)
                mtimes = current

                if events:
                    yield events
        finally:
            self._running = False
            self._stop_event = None

    def stop(self) -> None:
        """Signal the watcher to stop."""
        if self._stop_event:
            self._stop_event.set()

    def _diff(self, before: dict[Path, float], after: dict[Path, float]) -> list[FileChangeEvent]:
        now = asyncio.get_running_loop().time()
        events: list[FileChangeEvent] = []

        for path, old_mtime in before.items():
            if path not in after:
                events.append(FileChangeEvent(path, FileChangeKind.DELETED, now))
            elif after[path] > old_mtime:
                events.append(FileChangeEvent(path, FileChangeKind.MODIFIED, now))

        for path in after:
            if path not in before:
                events.append(FileChangeEvent(path, FileChangeKind.CREATED, now))

        return events

    def _scan_mtimes(self) -> dict[Path, float]:
        """Collect modification times of watched documents."""
        mtimes: dict[Path, float] = {}

        for dirpath, dirnames, filenames in os.walk(self._config.root):
            # Filter in-place to prevent descent
            dirnames[:] = [d for d in dirnames if not should_prune_dir(d)]

            for filename in filenames:
                file_path = Path(dirpath) / filename
                if not self.is_watched(file_path):
                    continue
                try:
                    mtimes[file_path] = file_path.stat().st_mtime
                except OSError:
                    # File may have been deleted between listing and stat
                    pass

        return mtimes

    def is_watched(self, path: Path) -> bool:
        return path.suffix.lower() in self._config.extensions


class WatcherQueue:
    """Async queue for file change events with backpressure."""

    def __init__(self, max_size: int = 1000) -> None:
        self._queue: asyncio.Queue[list[FileChangeEvent]] = asyncio.Queue(maxsize=max_size)
        self._dropped = 0

    @property
    def dropped_count(self) -> int:
        """Number of events dropped due to queue full."""
        return self._dropped

    def put(self, events: list[FileChangeEvent]) -> bool:
        """Add events to the queue. Returns False if queue is full."""
        try:
            self._queue.put_nowait(events)
            return True
        except asyncio.QueueFull:
            self._dropped += len(events)
            log.warning("watch_queue_full", dropped=len(events), total_dropped=self._dropped)
            return False

    async def get(self) -> list[FileChangeEvent]:
        return await self._queue.get()

    def empty(self) -> bool:
        return self._queue.empty()


class WorkspaceWatcher:
    """Ties a FileWatcher to an Index.

    Usage::

        watcher = WorkspaceWatcher(index, WatcherConfig(root=root))
        await watcher.start()
        # ... later ...
        await watcher.stop()
    """

    def __init__(
        self,
        index: Index,
        config: WatcherConfig,
        *,
        indexing: IndexingConfig | None = None,
        diagnostics: DiagnosticCollection | None = None,
    ) -> None:
        self._index = index
        self._config = config
        self._indexing = indexing or IndexingConfig(extensions=sorted(config.extensions))
        self._diagnostics = diagnostics
        self._watcher = FileWatcher(config)
        self._queue = WatcherQueue(max_size=config.max_queue_size)
        self._watch_task: asyncio.Task[None] | None = None
        self._process_task: asyncio.Task[None] | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def queue_dropped(self) -> int:
        return self._queue.dropped_count

    async def start(self) -> None:
        if self._running:
            return

        self._running = True
        self._watch_task = asyncio.create_task(self._watch_loop())
        self._process_task = asyncio.create_task(self._process_loop())

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        self._watcher.stop()

        for task in (self._watch_task, self._process_task):
            if task:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._watch_task = None
        self._process_task = None

    def apply(self, events: list[FileChangeEvent]) -> None:
        """Apply a batch of change events to the index, in order."""
        for event in events:
            if event.kind is FileChangeKind.DELETED:
                self._index.delete(document_uri(event.path))
                if self._diagnostics is not None:
                    self._diagnostics.delete(document_uri(event.path))
                log.info("document_removed", uri=document_uri(event.path))
            else:
                update_document(
                    self._index,
                    event.path,
                    config=self._indexing,
                    diagnostics=self._diagnostics,
                )

    async def _watch_loop(self) -> None:
        async for events in self._watcher.watch():
            self._queue.put(events)

    async def _process_loop(self) -> None:
        while self._running:
            events = await self._queue.get()
            # Parsing is CPU-bound; keep it off the event loop
            await asyncio.to_thread(self.apply, events)
