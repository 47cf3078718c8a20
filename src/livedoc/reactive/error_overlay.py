"""Error surfaces: how failures reach the browser.

Three places a failure can show up:

1. ``render_error_fragment``: HTML placed in the output slot when a session
   has no successful render to show yet.
2. ``format_error_event``: JSON for the ``livedoc:error`` toast shown over
   stale output.
3. ``error_overlay_middleware``: turns an exception escaping a Chirp handler
   into a readable 500 page instead of a bare error.
"""

from __future__ import annotations

import html
import json
import traceback
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.http.response import Response, SSEResponse, StreamingResponse
    from chirp.middleware.protocol import Next

    type AnyResponse = Response | StreamingResponse | SSEResponse


# Inline styles only: the page must render even when static serving is broken.
_PAGE_STYLE = (
    "body{margin:0;padding:2rem;background:#1b1b1b;color:#ddd;"
    "font:14px/1.6 ui-monospace,Menlo,Consolas,monospace}"
    "main{max-width:860px;margin:0 auto}"
    ".livedoc-error{border:1px solid #d9534f;border-radius:6px;"
    "background:#2a1414;color:#f3b4b4;padding:1rem 1.25rem}"
    ".livedoc-error strong{color:#ff6b61}"
    "pre{background:#222;border:1px solid #383838;border-radius:6px;"
    "padding:1rem;overflow:auto;max-height:420px;color:#9a9a9a}"
)


def _cause_chain(exc: BaseException) -> list[BaseException]:
    """The exception followed by its explicit causes, outermost first."""
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        current = current.__cause__
    return chain


def _innermost_frame(exc: BaseException) -> tuple[str, int]:
    """Filename and line where the deepest cause was raised."""
    tb = _cause_chain(exc)[-1].__traceback__
    if tb is None:
        return "", 0
    while tb.tb_next is not None:
        tb = tb.tb_next
    return tb.tb_frame.f_code.co_filename, tb.tb_lineno


def render_error_fragment(exc: BaseException) -> str:
    """Render a failure as an HTML fragment for the document output slot."""
    lines = [
        f"<strong>{html.escape(type(e).__name__)}</strong>: {html.escape(str(e))}"
        for e in _cause_chain(exc)
    ]
    return '<div class="livedoc-error">' + "<br>\ncaused by ".join(lines) + "</div>\n"


def render_error_page(exc: BaseException) -> str:
    """A standalone HTML page: the fragment above plus the full traceback."""
    trace = "".join(traceback.format_exception(exc))
    return (
        "<!DOCTYPE html>\n<html lang=\"en\">\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>livedoc: {html.escape(type(exc).__qualname__)}</title>\n"
        f"<style>{_PAGE_STYLE}</style>\n</head>\n<body>\n<main>\n"
        f"{render_error_fragment(exc)}"
        f"<details open>\n<summary>Traceback</summary>\n<pre>{html.escape(trace)}</pre>\n"
        "</details>\n</main>\n</body>\n</html>\n"
    )


async def error_overlay_middleware(request: Request, next: Next) -> AnyResponse:
    """Chirp middleware that answers handler exceptions with an error page."""
    try:
        return await next(request)
    except Exception as exc:
        from chirp.http.response import Response

        return Response(
            body=render_error_page(exc),
            status=500,
            content_type="text/html; charset=utf-8",
        )


def format_error_event(exc: BaseException) -> str:
    """JSON payload for the ``livedoc:error`` SSE event."""
    filename, lineno = _innermost_frame(exc)
    return json.dumps({
        "type": type(exc).__qualname__,
        "message": str(exc),
        "file": filename,
        "line": lineno,
    })
