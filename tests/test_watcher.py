"""Tests for livedoc.source.watcher — single-file modification polling."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from livedoc.source.watcher import FileWatcher, observe


class TestPoll:
    """FileWatcher.poll() — one modification check."""

    def test_signal_holds_path(self, doc: Path) -> None:
        watcher = observe(doc, 100)
        assert watcher.signal.value == doc
        assert watcher.signal.version == 1
        assert watcher.last_modified_ns == doc.stat().st_mtime_ns

    def test_no_change(self, doc: Path) -> None:
        watcher = observe(doc, 100)
        assert watcher.poll() is False
        assert watcher.signal.version == 1

    def test_modification_fires(self, doc: Path, bump_mtime) -> None:
        watcher = observe(doc, 100)
        fired: list[Path] = []
        watcher.signal.subscribe(lambda s: fired.append(s.value))

        bump_mtime(doc)

        assert watcher.poll() is True
        assert fired == [doc]
        assert watcher.poll() is False

    def test_timestamp_moving_backwards_counts(self, doc: Path, bump_mtime) -> None:
        watcher = observe(doc, 100)
        bump_mtime(doc, seconds=-60)
        assert watcher.poll() is True

    def test_missing_file_is_stale(self, doc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        watcher = observe(doc, 100)
        known = watcher.last_modified_ns
        doc.unlink()

        assert watcher.poll() is True
        assert watcher.poll() is False
        assert watcher.signal.version == 2
        assert watcher.stale is True
        assert watcher.last_modified_ns == known
        assert capsys.readouterr().err.count("Source unreadable") == 1

    def test_recovers_after_recreate(self, doc: Path, bump_mtime) -> None:
        watcher = observe(doc, 100)
        text = doc.read_text()
        doc.unlink()
        watcher.poll()

        doc.write_text(text)
        bump_mtime(doc)

        assert watcher.poll() is True
        assert watcher.stale is False

    def test_missing_at_construction(self, tmp_path: Path) -> None:
        watcher = FileWatcher(tmp_path / "nope.md")
        assert watcher.stale is True
        assert watcher.last_modified_ns is None


class TestDisabled:
    """interval_ms=None disables watching altogether."""

    def test_never_fires(self, doc: Path, bump_mtime) -> None:
        watcher = observe(doc, None)
        bump_mtime(doc)
        assert watcher.enabled is False
        assert watcher.poll() is False
        assert watcher.signal.version == 1

    @pytest.mark.asyncio
    async def test_run_returns_immediately(self, doc: Path) -> None:
        watcher = observe(doc, None)
        await asyncio.wait_for(watcher.run(), timeout=1)
        assert watcher.is_running is False


class TestRun:
    """FileWatcher.run() — background polling."""

    @pytest.mark.asyncio
    async def test_detects_edit_and_stops(self, doc: Path, bump_mtime) -> None:
        watcher = observe(doc, 50)
        changed = asyncio.Event()
        watcher.signal.subscribe(lambda s: changed.set())

        task = asyncio.create_task(watcher.run())
        await asyncio.sleep(0.2)
        assert watcher.is_running is True

        doc.write_text("Edited.")
        bump_mtime(doc)
        await asyncio.wait_for(changed.wait(), timeout=5)

        watcher.stop()
        await asyncio.wait_for(task, timeout=5)
        assert watcher.is_running is False

    @pytest.mark.asyncio
    async def test_ignores_sibling_files(self, doc: Path, tmp_path: Path) -> None:
        watcher = observe(doc, 50)
        task = asyncio.create_task(watcher.run())
        await asyncio.sleep(0.2)

        (tmp_path / "other.md").write_text("unrelated")
        await asyncio.sleep(0.3)

        watcher.stop()
        await asyncio.wait_for(task, timeout=5)
        assert watcher.signal.version == 1
