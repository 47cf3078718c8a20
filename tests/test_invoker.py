"""Tests for livedoc.render.invoker — request building and error mapping."""

from __future__ import annotations

from pathlib import Path

import pytest

from livedoc._errors import RenderFailure, SourceUnavailable
from livedoc.config import RenderOptions
from livedoc.render.invoker import RenderInvoker, RenderRequest
from livedoc.render.markdown import supporting_files_dir


class TestBuildRequest:
    """RenderInvoker.build_request()."""

    def test_fresh_output_path_each_time(self, doc: Path, out_dir: Path, compiler) -> None:
        invoker = RenderInvoker(compiler, temp_dir=out_dir)
        a = invoker.build_request(doc)
        b = invoker.build_request(doc)
        assert a.output_file != b.output_file
        assert a.output_file.parent == out_dir
        assert a.output_file.name.startswith("livedoc-")
        assert not a.output_file.exists()

    def test_reserved_options(self, doc: Path, out_dir: Path, compiler) -> None:
        request = RenderInvoker(compiler, temp_dir=out_dir).build_request(doc)
        assert request.runtime == "reactive"
        assert request.output_options["self_contained"] is False
        assert request.output_options["runtime"] == "reactive"
        assert request.output_options["output_file"] == str(request.output_file)

    def test_user_options_pass_through(self, doc: Path, out_dir: Path, compiler) -> None:
        options = RenderOptions.from_mapping({"title": "Notes", "toc": True})
        request = RenderInvoker(compiler, options, temp_dir=out_dir).build_request(doc)
        assert request.output_options["title"] == "Notes"
        assert request.output_options["toc"] is True

    def test_satisfied_dependencies_union(self, doc: Path, out_dir: Path, compiler) -> None:
        options = RenderOptions(satisfied_dependencies=frozenset({"mathjax"}))
        invoker = RenderInvoker(
            compiler,
            options,
            provided_dependencies=frozenset({"livedoc-base"}),
            temp_dir=out_dir,
        )
        request = invoker.build_request(doc)
        assert invoker.satisfied_dependencies == frozenset({"livedoc-base", "mathjax"})
        assert request.output_options["satisfied_dependencies"] == ["livedoc-base", "mathjax"]

    def test_request_is_immutable(self, doc: Path, out_dir: Path, compiler) -> None:
        request = RenderInvoker(compiler, temp_dir=out_dir).build_request(doc)
        with pytest.raises(AttributeError):
            request.runtime = "static"  # type: ignore[misc]
        with pytest.raises(TypeError):
            request.output_options["self_contained"] = True  # type: ignore[index]


class TestInvoke:
    """RenderInvoker.invoke()."""

    def _request(self, doc: Path, out_dir: Path, compiler) -> tuple[RenderInvoker, RenderRequest]:
        invoker = RenderInvoker(compiler, temp_dir=out_dir)
        return invoker, invoker.build_request(doc)

    def test_success(self, doc: Path, out_dir: Path, compiler) -> None:
        invoker, request = self._request(doc, out_dir, compiler)
        result = invoker.invoke(request)
        assert result.artifact == request.output_file
        assert result.artifact.is_file()
        assert result.assets_dir is None

    def test_assets_dir_reported_when_present(self, doc: Path, out_dir: Path, compiler) -> None:
        compiler.with_assets = True
        invoker, request = self._request(doc, out_dir, compiler)
        result = invoker.invoke(request)
        assert result.assets_dir == supporting_files_dir(request.output_file)

    def test_missing_source(self, tmp_path: Path, out_dir: Path, compiler) -> None:
        invoker, request = self._request(tmp_path / "gone.md", out_dir, compiler)
        with pytest.raises(SourceUnavailable):
            invoker.invoke(request)
        assert compiler.call_count == 0

    def test_compiler_error_wrapped(self, doc: Path, out_dir: Path, compiler) -> None:
        compiler.fail = KeyError("missing ref")
        invoker, request = self._request(doc, out_dir, compiler)
        with pytest.raises(RenderFailure, match="KeyError") as info:
            invoker.invoke(request)
        assert isinstance(info.value.__cause__, KeyError)
        assert not isinstance(info.value, SourceUnavailable)

    def test_render_failure_propagates_unchanged(self, doc: Path, out_dir: Path, compiler) -> None:
        error = RenderFailure("bad chunk")
        compiler.fail = error
        invoker, request = self._request(doc, out_dir, compiler)
        with pytest.raises(RenderFailure) as info:
            invoker.invoke(request)
        assert info.value is error

    def test_partial_output_discarded(self, doc: Path, out_dir: Path) -> None:
        def half_done(input_path, output_file, options, runtime):
            Path(output_file).write_text("partial")
            supporting_files_dir(Path(output_file)).mkdir()
            raise RuntimeError("crashed")

        invoker = RenderInvoker(half_done, temp_dir=out_dir)
        with pytest.raises(RenderFailure):
            invoker.invoke(invoker.build_request(doc))
        assert list(out_dir.iterdir()) == []

    def test_source_deleted_during_render(self, doc: Path, out_dir: Path) -> None:
        def deleting(input_path, output_file, options, runtime):
            Path(input_path).unlink()
            raise FileNotFoundError(input_path)

        invoker = RenderInvoker(deleting, temp_dir=out_dir)
        with pytest.raises(SourceUnavailable):
            invoker.invoke(invoker.build_request(doc))

    def test_compiler_returned_path_used(self, doc: Path, out_dir: Path) -> None:
        def elsewhere(input_path, output_file, options, runtime):
            target = Path(output_file).with_suffix(".htm")
            target.write_text("<p>x</p>")
            return str(target)

        invoker = RenderInvoker(elsewhere, temp_dir=out_dir)
        request = invoker.build_request(doc)
        assert invoker.invoke(request).artifact == request.output_file.with_suffix(".htm")
