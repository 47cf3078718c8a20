"""Observability — render and session events in one queryable log.

Aggregates events from:
- **Pounce**: Connection lifecycle (open, request, response, disconnect, close)
- **Pipeline**: Renders, render failures, artifact cleanup
- **Sessions**: Browser sessions opening and closing

Quick Start:
    >>> from livedoc.observability import StackCollector, EventLog
    >>> collector = StackCollector(EventLog())
    >>> collector.record_session("abc", "opened")
    >>> len(collector.log)
    1

"""

from livedoc.observability.collector import StackCollector, compute_render_stats
from livedoc.observability.events import (
    ArtifactCleaned,
    LivedocEvent,
    RenderCompleted,
    RenderFailed,
    SessionEvent,
    now_ns,
)
from livedoc.observability.log import EventLog

__all__ = [
    "ArtifactCleaned",
    "EventLog",
    "LivedocEvent",
    "RenderCompleted",
    "RenderFailed",
    "SessionEvent",
    "StackCollector",
    "compute_render_stats",
    "now_ns",
]
