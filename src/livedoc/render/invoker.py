"""Render invoker — wraps the document compiler with path bookkeeping.

Builds an immutable RenderRequest for every recomputation and calls the
compiler with it.  The options livedoc depends on for correctness (output
path, non-self-contained output, reactive runtime) are always set here and
cannot be overridden by user options.
"""

from __future__ import annotations

import os
import shutil
import tempfile
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from livedoc._errors import RenderFailure, SourceUnavailable
from livedoc._types import Compiler, RuntimeMode
from livedoc.config import RenderOptions
from livedoc.render.markdown import render_markdown, supporting_files_dir

REACTIVE_RUNTIME: RuntimeMode = "reactive"


@dataclass(frozen=True, slots=True)
class RenderRequest:
    """A single compiler invocation.

    Attributes:
        source: The document to render.
        output_file: Where the compiler writes the rendered artifact.
        output_options: Merged compiler options (read-only).
        runtime: Runtime mode handed to the compiler.

    """

    source: Path
    output_file: Path
    output_options: Mapping[str, Any]
    runtime: RuntimeMode = REACTIVE_RUNTIME


@dataclass(frozen=True, slots=True)
class InvokeResult:
    """What a successful compiler invocation produced.

    Attributes:
        artifact: Path to the rendered artifact.
        assets_dir: Supporting-files directory, if the compiler wrote one.

    """

    artifact: Path
    assets_dir: Path | None = None


class RenderInvoker:
    """Call-through to the compiler for one session.

    Args:
        compiler: The document compiler.  Defaults to the Markdown compiler.
        options: User compiler options for every render.
        provided_dependencies: Dependencies the session shell already serves.
        temp_dir: Directory for rendered artifacts (system temp when None).

    """

    def __init__(
        self,
        compiler: Compiler = render_markdown,
        options: RenderOptions | None = None,
        *,
        provided_dependencies: frozenset[str] = frozenset(),
        temp_dir: Path | None = None,
    ) -> None:
        self._compiler = compiler
        self._options = options or RenderOptions()
        self._satisfied = frozenset(provided_dependencies) | self._options.satisfied_dependencies
        self._temp_dir = Path(temp_dir) if temp_dir is not None else Path(tempfile.gettempdir())

    @property
    def satisfied_dependencies(self) -> frozenset[str]:
        return self._satisfied

    def build_request(self, source: Path) -> RenderRequest:
        """Build a fresh request with a new, unused output path."""
        output_file = self._temp_dir / f"livedoc-{uuid.uuid4().hex[:16]}.html"
        options: dict[str, Any] = {
            **self._options.extra,
            "output_file": str(output_file),
            "self_contained": False,
            "satisfied_dependencies": sorted(self._satisfied),
            "runtime": REACTIVE_RUNTIME,
        }
        return RenderRequest(
            source=Path(source),
            output_file=output_file,
            output_options=MappingProxyType(options),
            runtime=REACTIVE_RUNTIME,
        )

    def invoke(self, request: RenderRequest) -> InvokeResult:
        """Run the compiler for *request*.

        Raises:
            SourceUnavailable: The source is missing or unreadable.
            RenderFailure: The compiler failed for any other reason.

        """
        if not _readable(request.source):
            msg = f"source not readable: {request.source}"
            raise SourceUnavailable(msg)

        try:
            result = self._compiler(
                request.source,
                request.output_file,
                dict(request.output_options),
                request.runtime,
            )
        except RenderFailure:
            _discard_partial(request)
            raise
        except Exception as exc:
            _discard_partial(request)
            if not _readable(request.source):
                msg = f"source became unreadable during render: {request.source}"
                raise SourceUnavailable(msg) from exc
            msg = f"{type(exc).__name__}: {exc}"
            raise RenderFailure(msg) from exc

        artifact = Path(result) if result is not None else request.output_file
        assets_dir = supporting_files_dir(request.output_file)
        return InvokeResult(
            artifact=artifact,
            assets_dir=assets_dir if assets_dir.is_dir() else None,
        )


def _readable(path: Path) -> bool:
    return path.is_file() and os.access(path, os.R_OK)


def _discard_partial(request: RenderRequest) -> None:
    """Remove whatever a failed compiler run left behind."""
    request.output_file.unlink(missing_ok=True)
    shutil.rmtree(supporting_files_dir(request.output_file), ignore_errors=True)
