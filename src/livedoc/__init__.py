"""Livedoc — a live-reloading preview server for a single document.

Point it at a document, open the browser, edit the file: every change is
re-rendered and pushed to the page.  Each browser tab is its own session
with its own watcher and render pipeline.

Quick start::

    import livedoc

    livedoc.run("notes.md")

Options::

    livedoc.run("notes.md", auto_reload=False)            # render once per session
    livedoc.run("notes.md", server_options={"workers": 2}) # passed to Pounce
    livedoc.run("notes.md", render_options={"title": "Notes"})

Built on the Bengal ecosystem:

    pounce      ASGI server       (serves the preview)
    chirp       Web framework     (routes, SSE, static files)
    kida        Template engine   (renders the shell page)
    patitas     Markdown parser   (renders the document)

"""

# PEP 703: Declare this module as free-threading safe
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "LivedocConfig",
    "RenderOptions",
    "__version__",
    "build_app",
    "run",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the public API.

    Keeps ``import livedoc`` fast while providing a clean top-level API.
    """
    if name == "LivedocConfig":
        from livedoc.config import LivedocConfig

        return LivedocConfig

    if name == "RenderOptions":
        from livedoc.config import RenderOptions

        return RenderOptions

    if name == "run":
        from livedoc.app import run

        return run

    if name == "build_app":
        from livedoc.app import build_app

        return build_app

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
