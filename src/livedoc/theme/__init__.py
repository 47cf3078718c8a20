"""Livedoc theme — the preview shell page and its bundled assets.

The shell page is a Kida template with a single output slot.  It links the
base stylesheet itself, so the compiler is told that dependency is already
satisfied and does not emit it again for every render.

Thread Safety:
    All returned values are read-only paths.  Safe for free-threading.

"""

from __future__ import annotations

from pathlib import Path

# Dependencies the shell page provides to every rendered document.
SHELL_DEPENDENCIES: frozenset[str] = frozenset({"livedoc-base"})


def _bundled_theme_path() -> Path:
    """Return the absolute path to the bundled default theme."""
    return Path(__file__).parent / "default"


def template_dir() -> Path:
    """Directory holding the shell page template."""
    return _bundled_theme_path() / "templates"


def asset_dir() -> Path:
    """Directory holding the bundled static assets."""
    return _bundled_theme_path() / "assets"


def bundled_asset(name: str) -> Path:
    """Absolute path of a bundled asset file."""
    return asset_dir() / name
