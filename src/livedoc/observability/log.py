"""Event log — bounded store for render, cleanup, session and server events.

Keeps the most recent events in a ring buffer.  Livedoc events carry a
``session_id``, so the log can answer per-session questions ("what did
session X render, and was everything it produced cleaned up?") as well as
global ones.  Pounce lifecycle events are stored alongside them untouched.

Thread Safety:
    Guarded by a ``threading.Lock``.  Cleanup events arrive from worker
    threads while renders are recorded from the event loop.

"""

import threading
from collections import Counter, deque
from typing import Any


def _event_path(event: Any) -> str:
    """The file path an event is about, if it has one."""
    for attr in ("source", "path", "artifact"):
        value = getattr(event, attr, None)
        if value:
            return str(value)
    return ""


class EventLog:
    """Ring buffer of events with filtered, newest-first queries.

    Args:
        max_events: How many events to keep before the oldest are dropped.

    """

    __slots__ = ("_capacity", "_events", "_lock")

    def __init__(self, max_events: int = 10_000) -> None:
        self._capacity = max_events
        self._events: deque[Any] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event: Any) -> None:
        with self._lock:
            self._events.append(event)

    def _snapshot(self) -> list[Any]:
        with self._lock:
            return list(self._events)

    def query(
        self,
        *,
        event_type: type | None = None,
        session_id: str | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[Any]:
        """Return up to *limit* matching events, newest first.

        Args:
            event_type: Keep only instances of this class.
            session_id: Keep only events of this session.
            since_ns: Keep only events stamped at or after this time.
            path: Keep only events whose source, path or artifact contains
                this substring.
            limit: Maximum number of events returned.

        """

        def wanted(event: Any) -> bool:
            if event_type is not None and not isinstance(event, event_type):
                return False
            if session_id is not None and getattr(event, "session_id", None) != session_id:
                return False
            if since_ns and getattr(event, "timestamp_ns", 0) < since_ns:
                return False
            return path is None or path in _event_path(event)

        matches: list[Any] = []
        for event in reversed(self._snapshot()):
            if len(matches) >= limit:
                break
            if wanted(event):
                matches.append(event)
        return matches

    def recent(self, n: int = 20) -> list[Any]:
        """The last *n* events in arrival order."""
        return self._snapshot()[-n:]

    def sessions(self) -> list[str]:
        """Session ids seen in the log, in order of first appearance."""
        seen: dict[str, None] = {}
        for event in self._snapshot():
            session_id = getattr(event, "session_id", None)
            if session_id:
                seen.setdefault(session_id, None)
        return list(seen)

    def clear(self) -> int:
        """Drop every event; return how many there were."""
        with self._lock:
            dropped = len(self._events)
            self._events.clear()
        return dropped

    def stats(self) -> dict[str, Any]:
        """Counts by event class and the number of sessions seen."""
        events = self._snapshot()
        by_type = Counter(type(event).__name__ for event in events)
        return {
            "total": len(events),
            "max_events": self._capacity,
            "by_type": dict(by_type),
            "sessions": len(self.sessions()),
        }
