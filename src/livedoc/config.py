"""Livedoc configuration.

LivedocConfig is the central configuration object, frozen after creation.
RenderOptions separates the compiler options livedoc controls from the
pass-through bag a user may extend them with.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from livedoc._errors import ConfigError

# Compiler option keys livedoc always sets itself.
RESERVED_RENDER_KEYS: frozenset[str] = frozenset(
    {"output_file", "self_contained", "runtime"}
)

# Server option keys livedoc always injects itself.
RESERVED_SERVER_KEYS: frozenset[str] = frozenset({"app"})

DEFAULT_POLL_INTERVAL_MS = 500


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Compiler options for every render of a session.

    Attributes:
        satisfied_dependencies: Extra dependency identifiers the page already
            provides, on top of the ones the session shell provides.
        extra: User options passed through to the compiler.  May extend the
            reserved options but never override them.

    """

    satisfied_dependencies: frozenset[str] = frozenset()
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        clashes = RESERVED_RENDER_KEYS & set(self.extra)
        if clashes:
            msg = f"render options may not override {', '.join(sorted(clashes))}"
            raise ConfigError(msg)
        extra = dict(self.extra)
        deps = extra.pop("satisfied_dependencies", ())
        object.__setattr__(
            self,
            "satisfied_dependencies",
            frozenset(self.satisfied_dependencies) | frozenset(deps),
        )
        object.__setattr__(self, "extra", MappingProxyType(extra))

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> RenderOptions:
        """Build RenderOptions from a plain user-supplied mapping."""
        return cls(extra=dict(options or {}))


@dataclass(frozen=True, slots=True)
class LivedocConfig:
    """Configuration for a livedoc preview server.

    Attributes:
        source: Path to the document being previewed.
              Always resolved to an absolute path on construction.
        auto_reload: Re-render whenever the source file changes.
        poll_interval_ms: How often the source file is polled for changes.
        host: Bind address.
        port: Bind port.
        workers: Number of Pounce workers.
        launch_browser: Open a browser tab once the server is up.
        title: Page title for the preview shell (defaults to the file stem).
        temp_dir: Directory for rendered artifacts (system temp when unset).
        render: Compiler options for every render.

    """

    source: Path
    auto_reload: bool = True
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    host: str = "127.0.0.1"
    port: int = 3000
    workers: int = 1
    launch_browser: bool = False
    title: str = ""
    temp_dir: Path | None = None
    render: RenderOptions = field(default_factory=RenderOptions)

    def __post_init__(self) -> None:
        source = Path(self.source)
        if not source.is_absolute():
            source = source.resolve()
        object.__setattr__(self, "source", source)
        if self.poll_interval_ms <= 0:
            msg = f"poll_interval_ms must be positive, got {self.poll_interval_ms}"
            raise ConfigError(msg)
        if self.temp_dir is not None:
            object.__setattr__(self, "temp_dir", Path(self.temp_dir))

    @property
    def watch_interval_ms(self) -> int | None:
        """Poll interval for the file watcher, or None when auto-reload is off."""
        return self.poll_interval_ms if self.auto_reload else None

    @property
    def display_title(self) -> str:
        """Title shown in the browser tab."""
        return self.title or self.source.stem

    @property
    def url(self) -> str:
        """Base URL of the preview server."""
        return f"http://{self.host}:{self.port}"
