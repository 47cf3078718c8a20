"""Livedoc error hierarchy.

All livedoc-specific errors inherit from LivedocError for easy catching.
Only ServerStartFailure (and its ConfigError subclass) ever crosses the
``livedoc.run()`` boundary; everything else is contained per session.
"""


class LivedocError(Exception):
    """Base error for all livedoc operations."""


class RenderFailure(LivedocError):
    """The document compiler reported an error (syntax, missing resource)."""


class SourceUnavailable(RenderFailure):
    """The source document is missing or unreadable at recompute time."""


class MountFailure(LivedocError):
    """A side-asset directory could not be mounted."""


class CleanupFailure(LivedocError):
    """A temporary artifact or asset directory could not be deleted."""


class ServerStartFailure(LivedocError):
    """The session server could not be started (bind failure, bad config)."""


class ConfigError(ServerStartFailure):
    """Invalid or missing configuration."""
