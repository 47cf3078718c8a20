"""Stack collector — one sink for Pounce, pipeline, and session events.

Implements Pounce's ``LifecycleCollector`` protocol so it can be passed
directly to the server.  Also provides methods for recording render and
session events from livedoc itself.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.
    Cleanup events are recorded from worker threads.

"""

from __future__ import annotations

from typing import Any, Literal

from livedoc.observability.events import (
    ArtifactCleaned,
    RenderCompleted,
    RenderFailed,
    SessionEvent,
    now_ns,
)
from livedoc.observability.log import EventLog


class StackCollector:
    """Unified event collector.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Pounce LifecycleCollector protocol -----

    def record(self, event: Any) -> None:
        """Record a Pounce lifecycle event as-is."""
        self._log.append(event)

    # ----- Render pipeline events -----

    def record_render(
        self,
        session_id: str,
        source: str,
        artifact: str,
        *,
        render_ms: float = 0.0,
        superseded: bool = False,
    ) -> None:
        """Record a completed render."""
        self._log.append(
            RenderCompleted(
                session_id=session_id,
                source=source,
                artifact=artifact,
                render_ms=render_ms,
                superseded=superseded,
                timestamp_ns=now_ns(),
            )
        )

    def record_render_failure(self, session_id: str, source: str, exc: BaseException) -> None:
        """Record a failed render."""
        self._log.append(
            RenderFailed(
                session_id=session_id,
                source=source,
                error_type=type(exc).__name__,
                message=str(exc),
                timestamp_ns=now_ns(),
            )
        )

    def record_cleanup(
        self,
        session_id: str,
        path: str,
        *,
        ok: bool,
        reason: Literal["superseded", "teardown", "discarded"],
        error: str = "",
    ) -> None:
        """Record the deletion of a result's artifact and asset directory."""
        self._log.append(
            ArtifactCleaned(
                session_id=session_id,
                path=path,
                ok=ok,
                reason=reason,
                error=error,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Session events -----

    def record_session(self, session_id: str, kind: Literal["opened", "closed"]) -> None:
        """Record a session opening or closing."""
        self._log.append(SessionEvent(session_id=session_id, kind=kind, timestamp_ns=now_ns()))


def compute_render_stats(log: EventLog, *, limit: int = 100) -> dict[str, Any]:
    """Aggregate recent render timings and failure counts.

    Returns a dict with p50/p95/p99 render latency and failure totals.

    """
    renders = log.query(event_type=RenderCompleted, limit=limit)
    failures = log.query(event_type=RenderFailed, limit=limit)
    cleanups = log.query(event_type=ArtifactCleaned, limit=limit)

    stats: dict[str, Any] = {
        "count": len(renders),
        "failures": len(failures),
        "cleanup_failures": sum(1 for c in cleanups if not c.ok),
    }
    if not renders:
        return stats

    timings = sorted(r.render_ms for r in renders)

    def percentile(data: list[float], pct: float) -> float:
        idx = int(len(data) * pct / 100)
        return data[min(idx, len(data) - 1)]

    stats["render_ms"] = {
        "p50": round(percentile(timings, 50), 1),
        "p95": round(percentile(timings, 95), 1),
        "p99": round(percentile(timings, 99), 1),
        "min": round(timings[0], 1),
        "max": round(timings[-1], 1),
    }
    return stats
