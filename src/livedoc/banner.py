"""Startup banner printed to stderr when the preview server starts.

Shows the watched document, how it is kept fresh, and where to open it.
Colour follows ``NO_COLOR`` (https://no-color.org) and ``TERM=dumb``.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from livedoc.config import LivedocConfig

_CODES = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
}


def color_enabled() -> bool:
    """Whether stderr should receive ANSI escapes."""
    if os.environ.get("NO_COLOR") or os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


class _Paint:
    """Wraps text in ANSI codes, or returns it unchanged when colour is off."""

    def __init__(self, enabled: bool) -> None:
        self.enabled = enabled

    def __call__(self, text: str, *styles: str) -> str:
        if not self.enabled or not styles:
            return text
        prefix = "".join(_CODES[s] for s in styles)
        return f"{prefix}{text}{_CODES['reset']}"

    def link(self, url: str) -> str:
        """OSC 8 hyperlink so terminals make *url* clickable."""
        if not self.enabled:
            return url
        return f"\033]8;;{url}\033\\{self(url, 'bold', 'cyan')}\033]8;;\033\\"


def format_banner(
    config: LivedocConfig,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
    color: bool | None = None,
) -> str:
    """Build the banner text without printing it."""
    from livedoc import __version__

    paint = _Paint(color_enabled() if color is None else color)
    if config.auto_reload:
        badge = paint("[live]", "green")
        refresh = f"polling every {config.poll_interval_ms}ms"
    else:
        badge = paint("[static]", "yellow")
        refresh = "auto-reload off: one render per session"

    ready = f"{config.source.name} ready"
    if load_ms > 0:
        ready += paint(f" in {load_ms:.0f}ms", "dim")

    rule = paint("─" * 43, "dim")
    lines = [
        "",
        f"  {paint('livedoc', 'bold')} {paint('v' + __version__, 'dim')}  {badge}",
        f"  {rule}",
        f"  {paint('├─', 'dim')} {ready}",
        f"  {paint('├─', 'dim')} source: {paint(str(config.source), 'dim')}",
        f"  {paint('└─', 'dim')} {refresh}",
        "",
        f"  {paint.link(config.url)}",
    ]
    for warning in warnings or ():
        lines.append(f"  {paint('!', 'yellow')} {warning}")
    lines.append("")
    return "\n".join(lines)


def print_banner(
    config: LivedocConfig,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the startup banner to stderr.

    Args:
        config: Resolved LivedocConfig.
        load_ms: Time spent preparing the server in milliseconds.
        warnings: Optional messages shown under the URL.

    """
    print(format_banner(config, load_ms=load_ms, warnings=warnings), file=sys.stderr)
