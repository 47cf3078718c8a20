"""Event model for render and session observability.

Defines event types for the render pipeline and session lifecycle.
Pounce lifecycle events are stored alongside them unchanged.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- ``session_id``: The session the event belongs to (where applicable)

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Render pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RenderCompleted:
    """A recomputation finished and its result became current.

    Attributes:
        session_id: Owning session.
        source: Source document path.
        artifact: Rendered artifact path.
        render_ms: Time spent in the compiler in milliseconds.
        superseded: True if an earlier result was replaced.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    source: str
    artifact: str
    render_ms: float
    superseded: bool
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class RenderFailed:
    """A recomputation failed; the previous result (if any) stays current.

    Attributes:
        session_id: Owning session.
        source: Source document path.
        error_type: Exception class name.
        message: Exception message.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    source: str
    error_type: str
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ArtifactCleaned:
    """A superseded or torn-down result's files were deleted (or not).

    Attributes:
        session_id: Owning session.
        path: Artifact path.
        ok: False if any deletion failed.
        reason: Why the files were removed.
        error: Failure message when ``ok`` is False.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    path: str
    ok: bool
    reason: Literal["superseded", "teardown", "discarded"]
    error: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Session events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SessionEvent:
    """A browser session opened or closed.

    Attributes:
        session_id: The session.
        kind: What happened.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    session_id: str
    kind: Literal["opened", "closed"]
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type LivedocEvent = RenderCompleted | RenderFailed | ArtifactCleaned | SessionEvent


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
