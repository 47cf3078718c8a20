"""Tests for livedoc.reactive.mount — runtime side-asset mounts."""

from __future__ import annotations

from pathlib import Path

import pytest

from livedoc.reactive.mount import ResourceMount


@pytest.fixture
def assets(tmp_path: Path) -> Path:
    directory = tmp_path / "doc_files"
    directory.mkdir()
    (directory / "style.css").write_text("body {}")
    (tmp_path / "secret.txt").write_text("nope")
    return directory


class TestRegistry:
    """mount / unmount / resolve."""

    def test_mount_and_resolve(self, assets: Path) -> None:
        mounts = ResourceMount()
        assert mounts.mount("doc_files", assets) is True
        assert mounts.names == frozenset({"doc_files"})
        assert mounts.resolve("/doc_files/style.css") == assets.resolve()

    def test_missing_directory_skipped(self, tmp_path: Path) -> None:
        mounts = ResourceMount()
        assert mounts.mount("nothing", tmp_path / "nothing") is False
        assert mounts.names == frozenset()

    def test_remount_replaces(self, assets: Path, tmp_path: Path) -> None:
        other = tmp_path / "other"
        other.mkdir()
        mounts = ResourceMount()
        mounts.mount("doc_files", assets)
        mounts.mount("doc_files", other)
        assert mounts.get("doc_files") == other.resolve()
        assert len(mounts.names) == 1

    def test_unmount(self, assets: Path) -> None:
        mounts = ResourceMount()
        mounts.mount("doc_files", assets)
        assert mounts.unmount("doc_files") is True
        assert mounts.unmount("doc_files") is False
        assert mounts.resolve("/doc_files/style.css") is None

    def test_unknown_and_bare_paths(self, assets: Path) -> None:
        mounts = ResourceMount()
        mounts.mount("doc_files", assets)
        assert mounts.resolve("/other/style.css") is None
        assert mounts.resolve("/doc_files") is None
        assert mounts.owns("/doc_files/x") is True
        assert mounts.owns("/doc_files") is False


class TestMiddleware:
    """Serving mounted files through Chirp."""

    def _app(self, tmp_path: Path, mounts: ResourceMount):
        from chirp import App, AppConfig
        from chirp.http.response import Response

        app = App(config=AppConfig(template_dir=tmp_path))

        async def index(request):  # noqa: ARG001
            return Response(body=b"home")

        app.route("/", name="index")(index)

        app.add_middleware(mounts.middleware)
        return app

    @pytest.mark.asyncio
    async def test_serves_mounted_file(self, tmp_path: Path, assets: Path) -> None:
        from chirp.testing.client import TestClient

        mounts = ResourceMount()
        mounts.mount("doc_files", assets)

        async with TestClient(self._app(tmp_path, mounts)) as client:
            response = await client.get("/doc_files/style.css")
            assert response.status == 200
            body = response.body.decode() if isinstance(response.body, bytes) else response.body
            assert body == "body {}"

    @pytest.mark.asyncio
    async def test_missing_file_is_404(self, tmp_path: Path, assets: Path) -> None:
        from chirp.testing.client import TestClient

        mounts = ResourceMount()
        mounts.mount("doc_files", assets)

        async with TestClient(self._app(tmp_path, mounts)) as client:
            response = await client.get("/doc_files/missing.css")
            assert response.status == 404

    @pytest.mark.asyncio
    async def test_unmounted_passes_through(self, tmp_path: Path) -> None:
        from chirp.testing.client import TestClient

        async with TestClient(self._app(tmp_path, ResourceMount())) as client:
            response = await client.get("/")
            assert response.status == 200

    @pytest.mark.asyncio
    async def test_traversal_not_served(self, tmp_path: Path, assets: Path) -> None:
        from chirp.testing.client import TestClient

        mounts = ResourceMount()
        mounts.mount("doc_files", assets)

        async with TestClient(self._app(tmp_path, mounts)) as client:
            response = await client.get("/doc_files/../secret.txt")
            assert response.status != 200

    @pytest.mark.asyncio
    async def test_unmounted_name_no_longer_served(self, tmp_path: Path, assets: Path) -> None:
        from chirp.testing.client import TestClient

        mounts = ResourceMount()
        mounts.mount("doc_files", assets)
        mounts.unmount("doc_files")

        async with TestClient(self._app(tmp_path, mounts)) as client:
            response = await client.get("/doc_files/style.css")
            assert response.status == 404

