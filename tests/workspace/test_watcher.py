"""Tests for the polling file watcher and the index-backed workspace watcher."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from pathlib import Path

import pytest

from terraplane.config.models import IndexingConfig, WatchConfig
from terraplane.index import ALL_FILES, Index
from terraplane.workspace import (
    DiagnosticCollection,
    FileChangeEvent,
    FileChangeKind,
    FileWatcher,
    WatcherConfig,
    WatcherQueue,
    WorkspaceWatcher,
    document_uri,
)


def _event(path: Path, kind: FileChangeKind) -> FileChangeEvent:
    return FileChangeEvent(path=path, kind=kind, timestamp=time.monotonic())


async def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        await asyncio.sleep(0.05)
    return predicate()


class TestWatcherConfig:
    def test_from_config(self, tmp_path: Path) -> None:
        config = WatcherConfig.from_config(
            tmp_path,
            WatchConfig(debounce_sec=0.2, max_queue_size=5),
            IndexingConfig(extensions=[".tf"]),
        )

        assert config.root == tmp_path
        assert config.debounce_seconds == 0.2
        assert config.extensions == frozenset({".tf"})
        assert config.max_queue_size == 5


class TestFileWatcher:
    def test_is_watched(self, tmp_path: Path) -> None:
        watcher = FileWatcher(WatcherConfig(root=tmp_path))

        assert watcher.is_watched(tmp_path / "main.tf")
        assert watcher.is_watched(tmp_path / "PROD.TFVARS")
        assert not watcher.is_watched(tmp_path / "notes.md")

    def test_scan_prunes_cache_dirs(self, tmp_path: Path) -> None:
        (tmp_path / ".terraform").mkdir()
        (tmp_path / ".terraform" / "cached.tf").write_text("")
        (tmp_path / "main.tf").write_text("")

        mtimes = FileWatcher(WatcherConfig(root=tmp_path))._scan_mtimes()

        assert list(mtimes) == [tmp_path / "main.tf"]

    @pytest.mark.asyncio
    async def test_diff_reports_all_kinds(self, tmp_path: Path) -> None:
        watcher = FileWatcher(WatcherConfig(root=tmp_path))
        a, b, c = tmp_path / "a.tf", tmp_path / "b.tf", tmp_path / "c.tf"

        events = watcher._diff({a: 1.0, b: 1.0}, {b: 2.0, c: 1.0})

        assert {(e.path, e.kind) for e in events} == {
            (a, FileChangeKind.DELETED),
            (b, FileChangeKind.MODIFIED),
            (c, FileChangeKind.CREATED),
        }

    @pytest.mark.asyncio
    async def test_yields_created_file(self, tmp_path: Path) -> None:
        watcher = FileWatcher(WatcherConfig(root=tmp_path, debounce_seconds=0.05))
        target = tmp_path / "main.tf"

        async def create_later() -> None:
            await asyncio.sleep(0.2)
            target.write_text('variable "region" {}\n')

        task = asyncio.create_task(create_later())
        batches = watcher.watch()
        try:
            async with asyncio.timeout(5):
                events = await anext(batches)
            assert watcher.is_running
        finally:
            await batches.aclose()
            await task

        assert [(e.path, e.kind) for e in events] == [(target, FileChangeKind.CREATED)]

        assert not watcher.is_running


class TestWatcherQueue:
    @pytest.mark.asyncio
    async def test_drops_when_full(self, tmp_path: Path) -> None:
        queue = WatcherQueue(max_size=1)
        batch = [_event(tmp_path / "a.tf", FileChangeKind.CREATED)]

        assert queue.put(batch)
        assert not queue.put(batch)
        assert queue.dropped_count == 1
        assert await queue.get() == batch
        assert queue.empty()


class TestWorkspaceWatcherApply:
    def test_created_and_deleted(self, tmp_path: Path) -> None:
        index = Index()
        diagnostics = DiagnosticCollection()
        watcher = WorkspaceWatcher(index, WatcherConfig(root=tmp_path), diagnostics=diagnostics)
        path = tmp_path / "main.tf"
        path.write_text('variable "region" {}\n')

        watcher.apply([_event(path, FileChangeKind.CREATED)])
        assert document_uri(path) in index

        path.write_text('variable "zone" {}\n')
        watcher.apply([_event(path, FileChangeKind.MODIFIED)])
        assert [s.id() for s in index.query(ALL_FILES)] == ["var.zone"]

        path.unlink()
        watcher.apply([_event(path, FileChangeKind.DELETED)])
        assert len(index) == 0
        assert document_uri(path) not in diagnostics

    def test_exclusions_apply(self, tmp_path: Path) -> None:
        index = Index()
        watcher = WorkspaceWatcher(
            index,
            WatcherConfig(root=tmp_path),
            indexing=IndexingConfig(exclude=["*.tfvars"]),
        )
        path = tmp_path / "prod.tfvars"
        path.write_text('region = "eu-west-1"\n')

        watcher.apply([_event(path, FileChangeKind.CREATED)])

        assert len(index) == 0


class TestWorkspaceWatcher:
    @pytest.mark.asyncio
    async def test_keeps_index_in_step_with_disk(self, tmp_path: Path) -> None:
        index = Index()
        watcher = WorkspaceWatcher(index, WatcherConfig(root=tmp_path, debounce_seconds=0.05))
        path = tmp_path / "main.tf"
        uri = document_uri(path)

        await watcher.start()
        try:
            assert watcher.is_running
            await asyncio.sleep(0.2)

            path.write_text('variable "region" {}\n')
            assert await _wait_for(lambda: uri in index)

            path.unlink()
            assert await _wait_for(lambda: uri not in index)
        finally:
            await watcher.stop()

        assert not watcher.is_running
