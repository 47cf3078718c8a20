"""Shared type definitions for livedoc."""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, Literal

# Runtime mode handed to the compiler
type RuntimeMode = Literal["reactive", "static"]

# Per-connection session identifier
type SessionID = str

# Name under which a side-asset directory is served
type MountName = str

# Document compiler: (input_path, output_file, output_options, runtime) -> output path
type Compiler = Callable[[Path, Path, Mapping[str, Any], RuntimeMode], Path | str]
