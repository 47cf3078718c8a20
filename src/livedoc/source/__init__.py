"""Source layer — watching the document being previewed."""

from livedoc.source.watcher import FileWatcher, observe

__all__ = ["FileWatcher", "observe"]
