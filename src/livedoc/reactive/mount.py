"""Resource mounts: side-asset directories served under URL prefixes.

A rendered document written in non-self-contained mode references its
supporting files relatively (``doc_files/style.css``).  Mounting that
directory under ``/doc_files/`` makes those links resolve inside the
preview server.

Mounts are added and removed while the server runs, so they are kept in a
registry consulted by a Chirp middleware rather than registered as routes
(the Chirp route table is frozen after startup).  Each mount owns a Chirp
``StaticFiles`` instance; the registry only picks which one answers.

Thread Safety:
    The registry is protected by a ``threading.Lock``.  Requests are
    served outside the lock.

"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from chirp.middleware import StaticFiles

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.http.response import Response, SSEResponse, StreamingResponse
    from chirp.middleware.protocol import Next

    type AnyResponse = Response | StreamingResponse | SSEResponse

    from livedoc._types import MountName


class _Mounted(NamedTuple):
    directory: Path
    files: StaticFiles


class ResourceMount:
    """Registry of named directories served at ``/<name>/``."""

    def __init__(self) -> None:
        self._mounts: dict[MountName, _Mounted] = {}
        self._lock = threading.Lock()

    @property
    def names(self) -> frozenset[MountName]:
        """Names currently mounted (snapshot)."""
        with self._lock:
            return frozenset(self._mounts)

    def get(self, name: MountName) -> Path | None:
        with self._lock:
            entry = self._mounts.get(name)
        return entry.directory if entry is not None else None

    def mount(self, name: MountName, directory: Path) -> bool:
        """Serve *directory* under ``/<name>/``.

        Mounting an existing name replaces its directory.  A directory that
        does not exist is skipped (the render produced no side assets).

        Returns:
            True if the directory was mounted.

        """
        directory = Path(directory)
        if not directory.is_dir():
            return False
        directory = directory.resolve()
        files = StaticFiles(directory=directory, prefix=f"/{name}", cache_control="no-cache")
        with self._lock:
            self._mounts[name] = _Mounted(directory, files)
        return True

    def unmount(self, name: MountName) -> bool:
        """Stop serving *name*.  Returns False if it was not mounted."""
        with self._lock:
            return self._mounts.pop(name, None) is not None

    def _lookup(self, url_path: str) -> _Mounted | None:
        name, sep, _ = url_path.lstrip("/").partition("/")
        if not sep:
            return None
        with self._lock:
            return self._mounts.get(name)

    def resolve(self, url_path: str) -> Path | None:
        """The mounted directory that serves *url_path*, if any."""
        entry = self._lookup(url_path)
        return entry.directory if entry is not None else None

    def owns(self, url_path: str) -> bool:
        """Whether *url_path* falls under any mounted prefix."""
        return self._lookup(url_path) is not None

    async def middleware(self, request: Request, next: Next) -> AnyResponse:
        """Chirp middleware delegating to the matching mount's StaticFiles."""
        entry = self._lookup(request.path)
        if entry is None:
            return await next(request)
        return await entry.files(request, next)
