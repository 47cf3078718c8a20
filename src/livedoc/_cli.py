"""Livedoc CLI — livedoc run.

Entry point for the ``livedoc`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys

from livedoc._errors import ServerStartFailure


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the livedoc CLI."""
    parser = argparse.ArgumentParser(
        prog="livedoc",
        description="Live-reloading preview server for a single document.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser(
        "run",
        help="Serve a live preview of a document",
    )
    run_parser.add_argument("source", help="Document to preview")
    run_parser.add_argument("--host", default=None, help="Bind address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port")
    run_parser.add_argument(
        "--no-reload", action="store_true", help="Render once per session, do not watch",
    )
    run_parser.add_argument(
        "--interval", type=int, default=None, metavar="MS", help="Poll interval in ms",
    )
    run_parser.add_argument(
        "--open", action="store_true", help="Open a browser tab once the server is up",
    )

    return parser


def _get_version() -> str:
    """Get the package version."""
    from livedoc import __version__

    return __version__


def _overrides(args: argparse.Namespace) -> dict[str, object]:
    """Config overrides for the options given on the command line."""
    overrides: dict[str, object] = {}
    if args.no_reload:
        overrides["auto_reload"] = False
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.interval is not None:
        overrides["poll_interval_ms"] = args.interval
    if args.open:
        overrides["launch_browser"] = True
    return overrides


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from livedoc.app import run

    if args.command == "run":
        try:
            run(args.source, **_overrides(args))
        except ServerStartFailure as exc:
            print(f"  Error: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
