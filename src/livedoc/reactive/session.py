"""Sessions — one render pipeline per connected browser.

A session starts when a browser opens the event stream and ends when the
stream closes (disconnect) or the server shuts down.  Each session owns its
own watcher and pipeline; nothing is shared between sessions except the
resource-mount registry and the event log.

The session is the UI-side dependent of its pipeline: it subscribes to the
pipeline's ``output`` and ``failure`` signals and, whenever either changes,
re-reads ``current_output()`` and pushes the result to the browser.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from typing import TYPE_CHECKING, Any

from livedoc._errors import LivedocError, RenderFailure
from livedoc.reactive.error_overlay import format_error_event, render_error_fragment
from livedoc.reactive.pipeline import RenderPipeline
from livedoc.render.invoker import RenderInvoker
from livedoc.render.markdown import render_markdown
from livedoc.source.watcher import observe
from livedoc.theme import SHELL_DEPENDENCIES

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from livedoc._types import Compiler, SessionID
    from livedoc.config import LivedocConfig
    from livedoc.observability.collector import StackCollector
    from livedoc.reactive.mount import ResourceMount


RENDER_EVENT = "livedoc:render"
ERROR_EVENT = "livedoc:error"


class Session:
    """A connected browser and the pipeline rendering for it.

    Args:
        session_id: Unique identifier for this session.
        pipeline: The session's render pipeline (not yet started).

    """

    def __init__(self, session_id: SessionID, pipeline: RenderPipeline) -> None:
        self.session_id = session_id
        self.pipeline = pipeline
        self._wakeup = asyncio.Event()
        self._unsubscribers: list[Callable[[], None]] = []
        self._pushed_version = 0
        self._reported: RenderFailure | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def attach(self) -> None:
        """Subscribe to the pipeline and start it.  The first read renders."""
        self._unsubscribers = [
            self.pipeline.output.subscribe(self._on_pipeline_change),
            self.pipeline.failure.subscribe(self._on_pipeline_change),
        ]
        self.pipeline.start()
        self._wakeup.set()

    async def close(self) -> None:
        """Detach from the pipeline and tear it down.  Idempotent."""
        self._closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self._wakeup.set()
        await self.pipeline.close()

    async def events(self) -> AsyncIterator[Any]:
        """Yield SSE events for this session until it is closed.

        Used as the generator for Chirp's ``EventStream``.  Catches
        ``CancelledError`` and ``GeneratorExit`` (client disconnect) so
        they do not leak into the event loop's exception handler.

        """
        try:
            while not self._closed:
                await self._wakeup.wait()
                self._wakeup.clear()
                if self._closed:
                    return
                for event in await self.next_events():
                    yield event
        except (asyncio.CancelledError, GeneratorExit):
            return

    async def next_events(self) -> list[Any]:
        """Read the pipeline and return the events the browser has not seen."""
        from chirp import SSEEvent

        try:
            content = await self.pipeline.current_output()
        except RenderFailure as exc:
            # Nothing good rendered yet: show the failure in the output slot.
            if exc is self._reported:
                return []
            self._reported = exc
            return [SSEEvent(data=render_error_fragment(exc), event=RENDER_EVENT)]
        except LivedocError:
            # Torn down while waiting.
            return []

        events: list[Any] = []
        version = self.pipeline.output.version
        if version != self._pushed_version:
            self._pushed_version = version
            self._reported = None
            events.append(SSEEvent(data=content, event=RENDER_EVENT))

        failure = self.pipeline.last_error
        if failure is not None and failure is not self._reported:
            self._reported = failure
            events.append(SSEEvent(data=format_error_event(failure), event=ERROR_EVENT))
        return events

    def _on_pipeline_change(self, _signal: object) -> None:
        self._wakeup.set()


class SessionManager:
    """Creates, tracks, and tears down sessions.

    Thread-safe: the session map is protected by a lock.
    Per-worker: each Pounce worker has its own SessionManager instance.

    Args:
        config: Resolved LivedocConfig.
        mounts: Shared resource-mount registry.
        compiler: Document compiler used by every session.
        collector: Optional observability sink.
        provided_dependencies: Dependencies the shell page provides.

    """

    def __init__(
        self,
        config: LivedocConfig,
        mounts: ResourceMount,
        *,
        compiler: Compiler = render_markdown,
        collector: StackCollector | None = None,
        provided_dependencies: frozenset[str] = SHELL_DEPENDENCIES,
    ) -> None:
        self._config = config
        self._mounts = mounts
        self._compiler = compiler
        self._collector = collector
        self._provided = provided_dependencies
        self._sessions: dict[SessionID, Session] = {}
        self._lock = threading.Lock()

    @property
    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: SessionID) -> Session | None:
        with self._lock:
            return self._sessions.get(session_id)

    def session_ids(self) -> frozenset[SessionID]:
        with self._lock:
            return frozenset(self._sessions)

    def open(self) -> Session:
        """Start a new session bound to the configured source document.

        Must be called from within the running event loop.

        """
        session_id = uuid.uuid4().hex
        watcher = observe(self._config.source, self._config.watch_interval_ms)
        invoker = RenderInvoker(
            self._compiler,
            self._config.render,
            provided_dependencies=self._provided,
            temp_dir=self._config.temp_dir,
        )
        pipeline = RenderPipeline(
            watcher,
            invoker,
            self._mounts,
            session_id=session_id,
            collector=self._collector,
        )
        session = Session(session_id, pipeline)
        with self._lock:
            self._sessions[session_id] = session
        session.attach()
        if self._collector is not None:
            self._collector.record_session(session_id, "opened")
        return session

    async def close(self, session_id: SessionID) -> None:
        """End a session; its pipeline is torn down before this returns.

        Closing an unknown or already-closed session is a no-op.

        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        await session.close()
        if self._collector is not None:
            self._collector.record_session(session_id, "closed")

    async def close_all(self) -> None:
        """End every session (server shutdown)."""
        for session_id in self.session_ids():
            await self.close(session_id)
