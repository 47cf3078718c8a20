"""Shared test fixtures for livedoc."""

from __future__ import annotations

import os
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

from livedoc.config import LivedocConfig
from livedoc.render.markdown import supporting_files_dir


class FakeCompiler:
    """A compiler stand-in that records calls and can block or fail.

    Writes ``<p>{source text}</p>`` to the output file.  With ``with_assets``
    it also writes ``asset.txt`` into the supporting-files directory.
    Setting ``gate`` makes every call wait for the event first; ``started``
    is set as soon as a call begins.
    """

    def __init__(self) -> None:
        self.calls: list[Mapping[str, Any]] = []
        self.with_assets = False
        self.fail: BaseException | None = None
        self.gate: threading.Event | None = None
        self.started = threading.Event()
        self._lock = threading.Lock()

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)

    def __call__(
        self,
        input_path: Path,
        output_file: Path,
        output_options: Mapping[str, Any],
        runtime: str,
    ) -> Path:
        with self._lock:
            self.calls.append(dict(output_options))
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.fail is not None:
            raise self.fail

        text = Path(input_path).read_text(encoding="utf-8").strip()
        output_file = Path(output_file)
        output_file.write_text(f"<p>{text}</p>\n", encoding="utf-8")
        if self.with_assets:
            files = supporting_files_dir(output_file)
            files.mkdir(exist_ok=True)
            (files / "asset.txt").write_text(text, encoding="utf-8")
        return output_file


@pytest.fixture
def doc(tmp_path: Path) -> Path:
    """A small Markdown document to preview."""
    path = tmp_path / "doc.md"
    path.write_text("---\ntitle: Notes\n---\n\n# Notes\n\nFirst draft.\n", encoding="utf-8")
    return path


@pytest.fixture
def out_dir(tmp_path: Path) -> Path:
    """Directory rendered artifacts are written to."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def config(doc: Path, out_dir: Path) -> LivedocConfig:
    """A LivedocConfig for *doc* with auto-reload off and a private temp dir."""
    return LivedocConfig(source=doc, auto_reload=False, temp_dir=out_dir)


@pytest.fixture
def bump_mtime():
    """Return a function that moves a file's modification time forward."""

    def bump(path: Path, seconds: int = 5) -> None:
        st = path.stat()
        os.utime(path, ns=(st.st_atime_ns, st.st_mtime_ns + seconds * 1_000_000_000))

    return bump
