"""Render layer — turning the source document into an HTML artifact.

The compiler is a plain callable (see ``livedoc._types.Compiler``); the
bundled one renders Markdown with Patitas.  ``RenderInvoker`` wraps any
compiler with request building and error mapping.
"""

from livedoc.render.invoker import InvokeResult, RenderInvoker, RenderRequest
from livedoc.render.markdown import render_markdown, supporting_files_dir

__all__ = [
    "InvokeResult",
    "RenderInvoker",
    "RenderRequest",
    "render_markdown",
    "supporting_files_dir",
]
