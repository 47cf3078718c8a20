"""Livedoc application — the Chirp shell around the reactive render pipeline.

``build_app()`` assembles a Chirp App that serves the preview shell page, one
SSE stream per session, the mounted side-asset directories, and a stats
endpoint.  ``run()`` is the public entry point: it validates the source
document, builds the app, and hands it to Pounce.
"""

from __future__ import annotations

import asyncio
import os
import sys
import time
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from livedoc._errors import ConfigError, ServerStartFailure
from livedoc.config import RESERVED_SERVER_KEYS, LivedocConfig, RenderOptions
from livedoc.config_loader import load_config
from livedoc.render.markdown import render_markdown

if TYPE_CHECKING:
    from chirp import App
    from chirp import SSEEvent
    from chirp.http.request import Request
    from pounce.config import ServerConfig

    from livedoc._types import Compiler
    from livedoc.observability.collector import StackCollector
    from livedoc.reactive.mount import ResourceMount
    from livedoc.reactive.session import SessionManager


# Name of the shell page's single output slot.
OUTPUT_ID = "__reactivedoc__"

EVENTS_ENDPOINT = "/__livedoc/events"
STATS_ENDPOINT = "/__livedoc/stats"
STATIC_PREFIX = "/__livedoc/static"


@dataclass(frozen=True, slots=True)
class PreviewServer:
    """Everything ``build_app()`` wires together.

    Attributes:
        app: The Chirp application.
        config: The configuration it was built from.
        sessions: Per-connection session registry.
        mounts: Side-asset directory registry shared by all sessions.
        collector: Observability sink (also Pounce's lifecycle collector).

    """

    app: App
    config: LivedocConfig
    sessions: SessionManager
    mounts: ResourceMount
    collector: StackCollector


def _check_source(config: LivedocConfig) -> None:
    """Raise ConfigError unless the source document is a readable file."""
    source = config.source
    if not source.is_file():
        msg = f"Source document not found: {source}"
        raise ConfigError(msg)
    if not os.access(source, os.R_OK):
        msg = f"Source document is not readable: {source}"
        raise ConfigError(msg)


def _create_chirp_app(config: LivedocConfig, *, debug: bool = False) -> App:
    """Create a Chirp App that renders the bundled shell template."""
    from chirp import App, AppConfig

    from livedoc.theme import template_dir

    app_config = AppConfig(
        template_dir=template_dir(),
        debug=debug,
        host=config.host,
        port=config.port,
    )
    return App(config=app_config)


def _wire_shell_route(app: App, config: LivedocConfig) -> None:
    """Register ``/``: the shell page with the empty output slot."""
    from chirp import Template

    async def shell_handler(request: Request) -> Any:
        return Template(
            "index.html",
            title=config.display_title,
            output_id=OUTPUT_ID,
            events_url=EVENTS_ENDPOINT,
            stylesheet_url=f"{STATIC_PREFIX}/livedoc.css",
        )

    shell_handler.__name__ = "livedoc_shell"
    app.route("/", name="livedoc:shell")(shell_handler)


async def session_stream(sessions: SessionManager) -> AsyncIterator[SSEEvent]:
    """Open a session on first iteration and close it when the stream ends.

    Nothing is opened for a stream that is never iterated.
    """
    session = sessions.open()
    try:
        async for event in session.events():
            yield event
    finally:
        await sessions.close(session.session_id)


def _wire_session_endpoint(app: App, sessions: SessionManager) -> None:
    """Register the SSE endpoint.  One connection is one session.

    The session is opened when the stream starts and closed in the
    generator's ``finally``, which runs on client disconnect and on server
    shutdown alike.
    """
    from chirp import EventStream

    async def events_handler(request: Request) -> Any:
        return EventStream(session_stream(sessions))

    events_handler.__name__ = "livedoc_events"
    app.route(EVENTS_ENDPOINT, name="livedoc:events")(events_handler)


def _wire_stats_endpoint(app: App, server: PreviewServer) -> None:
    """Register the ``/__livedoc/stats`` JSON endpoint."""
    import json

    async def stats_handler(request: Request) -> Any:
        from chirp.http.response import Response

        from livedoc.observability import compute_render_stats

        payload = json.dumps(
            {
                "renders": compute_render_stats(server.collector.log),
                "sessions": server.sessions.session_count,
                "mounts": sorted(server.mounts.names),
                "event_log": server.collector.log.stats(),
            },
            indent=2,
        )
        return Response(body=payload, status=200, content_type="application/json")

    stats_handler.__name__ = "livedoc_stats"
    app.route(STATS_ENDPOINT, name="livedoc:stats")(stats_handler)


def _mount_static_files(app: App, mounts: ResourceMount) -> None:
    """Serve the bundled theme assets and the per-render side assets."""
    from chirp.middleware import StaticFiles

    from livedoc.reactive.error_overlay import error_overlay_middleware
    from livedoc.theme import asset_dir

    app.add_middleware(error_overlay_middleware)
    app.add_middleware(StaticFiles(directory=asset_dir(), prefix=STATIC_PREFIX))
    app.add_middleware(mounts.middleware)


def _wire_lifecycle(app: App, config: LivedocConfig, sessions: SessionManager) -> None:
    """End every session on shutdown; optionally open a browser on startup."""

    @app.on_shutdown
    async def _close_sessions() -> None:
        await sessions.close_all()

    if not config.launch_browser:
        return

    @app.on_startup
    async def _launch_browser() -> None:
        import webbrowser

        try:
            await asyncio.to_thread(webbrowser.open, config.url)
        except webbrowser.Error as exc:
            print(f"  Browser launch failed: {exc}", file=sys.stderr)


def build_app(
    config: LivedocConfig,
    *,
    compiler: Compiler = render_markdown,
    debug: bool = False,
) -> PreviewServer:
    """Assemble the preview server for *config* without starting it.

    Args:
        config: Resolved LivedocConfig.
        compiler: Document compiler used by every session.
        debug: Enable Chirp debug mode.

    """
    from livedoc.observability import EventLog, StackCollector
    from livedoc.reactive.mount import ResourceMount
    from livedoc.reactive.session import SessionManager

    collector = StackCollector(EventLog())
    mounts = ResourceMount()
    sessions = SessionManager(config, mounts, compiler=compiler, collector=collector)

    app = _create_chirp_app(config, debug=debug)
    server = PreviewServer(
        app=app,
        config=config,
        sessions=sessions,
        mounts=mounts,
        collector=collector,
    )

    _wire_shell_route(app, config)
    _wire_session_endpoint(app, sessions)
    _wire_stats_endpoint(app, server)
    _mount_static_files(app, mounts)
    _wire_lifecycle(app, config, sessions)
    return server


def server_config(
    config: LivedocConfig, server_options: Mapping[str, Any] | None = None
) -> ServerConfig:
    """Build the Pounce ServerConfig from *config* plus pass-through options.

    Raises:
        ConfigError: If *server_options* names a key livedoc sets itself.

    """
    from pounce.config import ServerConfig

    options = dict(server_options or {})
    clashes = RESERVED_SERVER_KEYS & set(options)
    if clashes:
        msg = f"server options may not set {', '.join(sorted(clashes))}"
        raise ConfigError(msg)

    merged: dict[str, Any] = {
        "host": config.host,
        "port": config.port,
        "workers": config.workers,
        **options,
    }
    try:
        return ServerConfig(**merged)
    except TypeError as exc:
        msg = f"Invalid server options: {exc}"
        raise ConfigError(msg) from exc


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def run(
    source: str | Path,
    auto_reload: bool | None = None,
    server_options: Mapping[str, Any] | None = None,
    render_options: Mapping[str, Any] | None = None,
    **overrides: object,
) -> None:
    """Serve a live, re-rendering preview of *source* until interrupted.

    Every browser that opens the preview gets its own session: its own file
    watcher and render pipeline.  Edits to the source re-render it and push
    the new output to the browser.

    Args:
        source: Path to the document to preview.
        auto_reload: Re-render on every change.  When False each session
            renders once, at its start.  None defers to the config file,
            then to the default (on).
        server_options: Passed through to Pounce's ``ServerConfig``.
        render_options: Passed through to the compiler on every render.
        **overrides: Override LivedocConfig fields.

    Raises:
        ConfigError: The source is not a readable file, or an option is
            reserved.
        ServerStartFailure: The server could not be started.

    """
    from livedoc.banner import print_banner

    t0 = time.perf_counter()
    if render_options is not None:
        overrides["render"] = RenderOptions.from_mapping(render_options)
    if auto_reload is not None:
        overrides["auto_reload"] = auto_reload
    config = load_config(Path(source), **overrides)
    _check_source(config)
    pounce_config = server_config(config, server_options)

    server = build_app(config)
    load_ms = (time.perf_counter() - t0) * 1000
    print_banner(config, load_ms=load_ms)

    from pounce.server import Server

    try:
        Server(pounce_config, server.app, lifecycle_collector=server.collector).run()
    except OSError as exc:
        msg = f"Could not start server on {config.host}:{config.port}: {exc}"
        raise ServerStartFailure(msg) from exc
