"""Tests for livedoc._errors."""

from livedoc._errors import (
    CleanupFailure,
    ConfigError,
    LivedocError,
    MountFailure,
    RenderFailure,
    ServerStartFailure,
    SourceUnavailable,
)


class TestErrorHierarchy:
    """All livedoc errors inherit from LivedocError."""

    def test_livedoc_error_is_exception(self) -> None:
        assert issubclass(LivedocError, Exception)

    def test_source_unavailable_is_render_failure(self) -> None:
        assert issubclass(SourceUnavailable, RenderFailure)

    def test_config_error_is_start_failure(self) -> None:
        assert issubclass(ConfigError, ServerStartFailure)

    def test_render_failure_is_not_fatal_kind(self) -> None:
        assert not issubclass(RenderFailure, ServerStartFailure)

    def test_catch_all_livedoc_errors(self) -> None:
        """All specific errors are catchable via LivedocError."""
        for error_cls in (
            RenderFailure,
            SourceUnavailable,
            MountFailure,
            CleanupFailure,
            ServerStartFailure,
            ConfigError,
        ):
            try:
                raise error_cls("test")
            except LivedocError:
                pass
