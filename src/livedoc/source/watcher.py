"""File watcher — polls the source document and signals modifications.

Watches exactly one file.  The watched value is the file's path; the
modification timestamp is what decides whether a change happened.  Each
detected change re-sets the watcher's signal, which is what the render
pipeline subscribes to.

With auto-reload disabled the watcher never fires: the signal holds the
static path from construction on and ``run()`` returns immediately.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import awatch

from livedoc.reactive.signal import ReactiveSignal

if TYPE_CHECKING:
    from watchfiles import Change


class FileWatcher:
    """Polls a single file's modification timestamp.

    Uses watchfiles in forced-polling mode on the file's directory so that
    deleting and re-creating the file (as many editors do on save) is still
    observed.  Every batch from watchfiles is confirmed against the file's
    ``st_mtime_ns`` before the signal fires.

    If the file becomes unreadable the watcher fires once, keeps its last
    known timestamp and reports itself ``stale``; the next successful read
    recovers it.

    Args:
        path: The file to watch.
        interval_ms: Poll interval, or None to disable watching.

    """

    def __init__(self, path: Path, interval_ms: int | None = 500) -> None:
        self._path = Path(path)
        self._interval_ms = interval_ms
        self._mtime_ns: int | None = self._read_mtime()
        self._stale = self._mtime_ns is None
        self._stop_event = asyncio.Event()
        self._running = False
        self.signal: ReactiveSignal[Path] = ReactiveSignal(
            f"file:{self._path.name}", self._path
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def interval_ms(self) -> int | None:
        return self._interval_ms

    @property
    def enabled(self) -> bool:
        """Whether the watcher polls at all."""
        return self._interval_ms is not None

    @property
    def stale(self) -> bool:
        """True while the file cannot be read."""
        return self._stale

    @property
    def last_modified_ns(self) -> int | None:
        """Last successfully read modification timestamp."""
        return self._mtime_ns

    @property
    def is_running(self) -> bool:
        return self._running

    def poll(self) -> bool:
        """Check the file once; fire the signal and return True if it changed.

        A file that was readable and now is not counts as a change, once.
        """
        if not self.enabled:
            return False

        mtime = self._read_mtime()
        if mtime is None:
            if self._stale:
                return False
            # Readable to missing: fire once so the next render reports it.
            print(f"  Source unreadable: {self._path}", file=sys.stderr)
            self._stale = True
            self.signal.set(self._path)
            return True

        self._stale = False
        if mtime == self._mtime_ns:
            return False

        self._mtime_ns = mtime
        self.signal.set(self._path)
        return True

    async def run(self) -> None:
        """Poll until ``stop()`` is called.  Returns at once when disabled."""
        if not self.enabled or self._running:
            return

        self._running = True
        self._stop_event.clear()
        interval = self._interval_ms or 0
        try:
            while not self._stop_event.is_set():
                try:
                    async for _changes in awatch(
                        self._path.parent,
                        watch_filter=self._is_watched,
                        stop_event=self._stop_event,
                        force_polling=True,
                        poll_delay_ms=interval,
                        debounce=interval,
                        step=min(50, interval),
                        recursive=False,
                    ):
                        self.poll()
                except OSError as exc:
                    # The directory itself went away; keep the last known
                    # state and try again one interval later.
                    if not self._stale:
                        print(f"  Watch error ({self._path.name}): {exc}", file=sys.stderr)
                    await asyncio.sleep(interval / 1000)
                    self.poll()
        finally:
            self._running = False

    def stop(self) -> None:
        """Signal ``run()`` to return."""
        self._stop_event.set()

    def _is_watched(self, change: Change, path: str) -> bool:
        return Path(path).name == self._path.name

    def _read_mtime(self) -> int | None:
        try:
            return self._path.stat().st_mtime_ns
        except OSError:
            return None


def observe(path: Path, interval_ms: int | None = 500) -> FileWatcher:
    """Create a watcher for *path*; ``interval_ms=None`` disables watching."""
    return FileWatcher(path, interval_ms)
