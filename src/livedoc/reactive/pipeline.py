"""Render pipeline — the per-session reactive core.

Keeps one rendered document current for one session:
    1. FileWatcher signals that the source changed
    2. The pipeline builds a fresh RenderRequest and calls the compiler
       in a worker thread
    3. The side-asset directory is mounted, the artifact text is read,
       and the new RenderResult is swapped in as the current value
    4. The superseded result is unmounted at once and its files are
       deleted off the critical path

States::

    IDLE -> RENDERING -> READY -> (RENDERING | TORN_DOWN)

Renders are serialised: a change that arrives while a render is in flight
only flags a follow-up, and however many changes arrive, exactly one
follow-up render runs after the current one completes.  There is no
mid-flight cancellation of a compiler call.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import shutil
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Self

from livedoc._errors import CleanupFailure, LivedocError, RenderFailure
from livedoc.reactive.signal import ReactiveSignal

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from livedoc.observability.collector import StackCollector
    from livedoc.reactive.mount import ResourceMount
    from livedoc.render.invoker import InvokeResult, RenderInvoker
    from livedoc.source.watcher import FileWatcher


class PipelineState(enum.Enum):
    """Lifecycle states of a RenderPipeline.

    ``IDLE`` covers both "not rendered yet" and "every render so far has
    failed".  In the second case the pipeline is not re-rendered by reading
    it; it waits for the next source change.
    """

    IDLE = "idle"
    RENDERING = "rendering"
    READY = "ready"
    TORN_DOWN = "torn-down"


@dataclass(frozen=True, slots=True)
class RenderResult:
    """A completed render.

    Attributes:
        artifact: Path to the rendered artifact.
        assets_dir: Supporting-files directory, if any.
        content: Full text of the artifact.

    """

    artifact: Path
    assets_dir: Path | None
    content: str

    @property
    def mount_name(self) -> str | None:
        """Name the asset directory is served under."""
        return self.assets_dir.name if self.assets_dir is not None else None


class RenderPipeline:
    """Recomputes one session's rendered document whenever its source changes.

    Exposes the latest rendered content through ``current_output()`` and the
    ``output`` signal.  Owns every artifact it produces until that artifact
    is superseded or the pipeline is closed.

    Use as an async context manager, or call ``start()`` / ``close()``.

    Args:
        watcher: Change source for the document.
        invoker: Compiler call-through.
        mounts: Registry the side-asset directories are mounted in.
        session_id: Owning session, for diagnostics and events.
        collector: Optional observability sink.

    """

    def __init__(
        self,
        watcher: FileWatcher,
        invoker: RenderInvoker,
        mounts: ResourceMount,
        *,
        session_id: str = "",
        collector: StackCollector | None = None,
    ) -> None:
        self._watcher = watcher
        self._invoker = invoker
        self._mounts = mounts
        self._session_id = session_id
        self._collector = collector

        self._state = PipelineState.IDLE
        self._result: RenderResult | None = None
        self._last_error: RenderFailure | None = None
        self._render_count = 0

        # Single render loop per pipeline; follow-ups run inside it.
        self._task: asyncio.Task[None] | None = None
        self._followup = False

        self._watch_task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._cleanups: set[asyncio.Task[CleanupFailure | None]] = set()
        self._closed: asyncio.Event | None = None

        self.output: ReactiveSignal[str] = ReactiveSignal(f"output:{session_id}")
        self.failure: ReactiveSignal[RenderFailure | None] = ReactiveSignal(
            f"failure:{session_id}", None
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def watcher(self) -> FileWatcher:
        return self._watcher

    @property
    def result(self) -> RenderResult | None:
        """The current result, if any render has succeeded."""
        return self._result

    @property
    def last_error(self) -> RenderFailure | None:
        """The failure of the latest render, cleared by the next success."""
        return self._last_error

    @property
    def render_count(self) -> int:
        """Number of renders that completed successfully."""
        return self._render_count

    @property
    def snapshot(self) -> str | None:
        """Current content without waiting for an in-flight render."""
        return self._result.content if self._result is not None else None

    @property
    def is_rendering(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to the watcher and start polling.  Idempotent."""
        if self._state is PipelineState.TORN_DOWN or self._unsubscribe is not None:
            return
        self._unsubscribe = self._watcher.signal.subscribe(self._on_source_change)
        if self._watcher.enabled:
            self._watch_task = asyncio.get_running_loop().create_task(self._watcher.run())

    async def close(self) -> None:
        """Tear the pipeline down and delete every artifact it still owns.

        Waits for an in-flight render (whose result is discarded), deletes
        the current artifact and asset directory synchronously, and waits
        for pending supersession cleanups.  Safe to call more than once.

        """
        if self._state is PipelineState.TORN_DOWN:
            if self._closed is not None:
                await self._closed.wait()
            return

        self._state = PipelineState.TORN_DOWN
        self._closed = asyncio.Event()
        self._followup = False
        try:
            if self._unsubscribe is not None:
                self._unsubscribe()
                self._unsubscribe = None

            self._watcher.stop()
            if self._watch_task is not None:
                self._watch_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._watch_task
                self._watch_task = None

            if self._task is not None:
                # No mid-flight cancellation: let the compiler finish,
                # _recompute() discards what it produced.
                await asyncio.shield(self._task)

            current, self._result = self._result, None
            if current is not None:
                self._release(current)
                self._delete(current, "teardown")

            if self._cleanups:
                await asyncio.gather(*self._cleanups)
        finally:
            self._closed.set()

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    async def current_output(self) -> str:
        """Return the latest rendered content.

        Triggers the first render if none was requested yet and waits for
        any render that is in flight or scheduled.  Never returns partial
        content.  After a failed first render the pipeline is back in
        ``IDLE`` but is not rendered again until the source changes.

        Raises:
            RenderFailure: No render has succeeded yet; the latest failure.
            LivedocError: The pipeline has been torn down.

        """
        if self._state is PipelineState.TORN_DOWN:
            msg = f"pipeline {self._session_id or '<anonymous>'} is torn down"
            raise LivedocError(msg)

        if self._task is None:
            self._request_render()

        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)

        if self._result is None:
            if self._last_error is not None:
                raise self._last_error
            msg = "no output rendered"
            raise RenderFailure(msg)
        return self._result.content

    # ------------------------------------------------------------------
    # Recomputation
    # ------------------------------------------------------------------

    def _on_source_change(self, _signal: ReactiveSignal[Path]) -> None:
        if self._state is PipelineState.TORN_DOWN:
            return
        self._request_render()

    def _request_render(self) -> None:
        """Start the render loop, or flag a follow-up if it is running."""
        if self.is_rendering:
            self._followup = True
            return
        self.output.invalidate()
        self._task = asyncio.get_running_loop().create_task(self._render_loop())

    async def _render_loop(self) -> None:
        while True:
            self._followup = False
            await self._recompute()
            if not self._followup or self._state is PipelineState.TORN_DOWN:
                break

    async def _recompute(self) -> None:
        if self._state is PipelineState.TORN_DOWN:
            return

        self._state = PipelineState.RENDERING
        request = self._invoker.build_request(self._watcher.signal.value)
        t0 = time.perf_counter()

        try:
            invoked = await asyncio.to_thread(self._invoker.invoke, request)
        except RenderFailure as exc:
            self._fail(exc)
            return

        try:
            content = await asyncio.to_thread(invoked.artifact.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self._delete(_orphan(invoked), "discarded")
            failure = RenderFailure(f"rendered artifact unreadable: {exc}")
            failure.__cause__ = exc
            self._fail(failure)
            return

        render_ms = (time.perf_counter() - t0) * 1000
        result = RenderResult(
            artifact=invoked.artifact,
            assets_dir=invoked.assets_dir,
            content=content,
        )

        if self._state is PipelineState.TORN_DOWN:
            # Session ended while the compiler was running.
            self._delete(result, "discarded")
            return

        if result.assets_dir is not None:
            self._mounts.mount(result.assets_dir.name, result.assets_dir)

        previous, self._result = self._result, result
        self._last_error = None
        self._state = PipelineState.READY
        self._render_count += 1
        self.output.set(content)
        if self.failure.get() is not None:
            self.failure.set(None)

        if self._collector is not None:
            self._collector.record_render(
                self._session_id,
                str(request.source),
                str(result.artifact),
                render_ms=render_ms,
                superseded=previous is not None,
            )

        if previous is not None:
            self._supersede(previous, result)

    def _fail(self, exc: RenderFailure) -> None:
        if self._state is PipelineState.TORN_DOWN:
            return
        self._last_error = exc
        self._state = PipelineState.READY if self._result is not None else PipelineState.IDLE
        self.output.settle()
        print(
            f"  Render error ({self._watcher.path.name}): {exc}",
            file=sys.stderr,
        )
        if self._collector is not None:
            self._collector.record_render_failure(
                self._session_id, str(self._watcher.path), exc
            )
        self.failure.set(exc)

    # ------------------------------------------------------------------
    # Supersession and cleanup
    # ------------------------------------------------------------------

    def _supersede(self, previous: RenderResult, current: RenderResult) -> None:
        """Unmount *previous* now and delete its files in a worker thread."""
        if previous.mount_name != current.mount_name:
            self._release(previous)
        task = asyncio.get_running_loop().create_task(
            asyncio.to_thread(self._delete, previous, "superseded")
        )
        self._cleanups.add(task)
        task.add_done_callback(self._cleanups.discard)

    def _release(self, result: RenderResult) -> None:
        name = result.mount_name
        if name is not None and self._mounts.get(name) == _resolved(result.assets_dir):
            self._mounts.unmount(name)

    def _delete(
        self,
        result: RenderResult,
        reason: Literal["superseded", "teardown", "discarded"],
    ) -> CleanupFailure | None:
        """Best-effort deletion of a result's artifact and asset directory.

        Failures are logged and recorded, never raised: the files live in
        the temp area and are eventually collected by the OS.

        """
        errors: list[str] = []
        try:
            result.artifact.unlink(missing_ok=True)
        except OSError as exc:
            errors.append(f"{result.artifact}: {exc}")
        if result.assets_dir is not None:
            try:
                shutil.rmtree(result.assets_dir)
            except FileNotFoundError:
                pass
            except OSError as exc:
                errors.append(f"{result.assets_dir}: {exc}")

        failure = CleanupFailure("; ".join(errors)) if errors else None
        if failure is not None:
            print(f"  Cleanup failed ({reason}): {failure}", file=sys.stderr)
        if self._collector is not None:
            self._collector.record_cleanup(
                self._session_id,
                str(result.artifact),
                ok=failure is None,
                reason=reason,
                error=str(failure) if failure is not None else "",
            )
        return failure


def _orphan(invoked: InvokeResult) -> RenderResult:
    return RenderResult(artifact=invoked.artifact, assets_dir=invoked.assets_dir, content="")


def _resolved(path: Path | None) -> Path | None:
    return path.resolve() if path is not None else None
