"""Tests for livedoc.banner — startup banner output."""

from __future__ import annotations

import io
import sys
from pathlib import Path
from unittest.mock import patch

from livedoc.banner import format_banner, print_banner
from livedoc.config import LivedocConfig


class TestPrintBanner:
    """Tests for the startup banner."""

    def _capture_banner(self, config: LivedocConfig, **kwargs: object) -> str:
        buf = io.StringIO()
        with patch.object(sys, "stderr", buf):
            print_banner(config, **kwargs)
        return buf.getvalue()

    def test_live_banner(self, doc: Path) -> None:
        output = self._capture_banner(LivedocConfig(source=doc), load_ms=42.5)

        assert "livedoc" in output
        assert "doc.md ready" in output
        assert "42ms" in output
        assert "polling every 500ms" in output
        assert "http://127.0.0.1:3000" in output

    def test_static_banner(self, doc: Path) -> None:
        output = self._capture_banner(LivedocConfig(source=doc, auto_reload=False))
        assert "auto-reload off" in output
        assert "polling" not in output

    def test_warnings(self, doc: Path) -> None:
        output = format_banner(LivedocConfig(source=doc), warnings=["port is public"])
        assert "port is public" in output


class TestColor:
    """ANSI output follows the environment."""

    def test_no_color_env(self, monkeypatch) -> None:
        from livedoc.banner import color_enabled

        monkeypatch.setenv("NO_COLOR", "1")
        assert color_enabled() is False

    def test_plain_output_has_no_escapes(self, doc: Path) -> None:
        assert "\033[" not in format_banner(LivedocConfig(source=doc), color=False)

    def test_colored_output_has_escapes(self, doc: Path) -> None:
        output = format_banner(LivedocConfig(source=doc), color=True)
        assert "\033[32m[live]" in output
        assert "\033]8;;http://127.0.0.1:3000" in output
