"""Reactive layer — per-session change propagation.

Connects source-file changes to browser updates through reactive signals,
the render pipeline, and one SSE stream per session.
"""

from livedoc.reactive.mount import ResourceMount
from livedoc.reactive.pipeline import PipelineState, RenderPipeline, RenderResult
from livedoc.reactive.session import Session, SessionManager
from livedoc.reactive.signal import ReactiveSignal

__all__ = [
    "PipelineState",
    "ReactiveSignal",
    "RenderPipeline",
    "RenderResult",
    "ResourceMount",
    "Session",
    "SessionManager",
]
