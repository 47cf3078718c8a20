"""Load LivedocConfig from livedoc.yaml if present.

Merges file config with keyword overrides. Overrides take precedence.
The config file is looked up in the directory of the source document.
"""

from __future__ import annotations

from pathlib import Path

from livedoc.config import LivedocConfig, RenderOptions

_FILE_KEYS = frozenset({
    "auto_reload", "poll_interval_ms", "host", "port", "workers",
    "launch_browser", "title", "temp_dir",
})


def load_config(source: Path, **overrides: object) -> LivedocConfig:
    """Load LivedocConfig for *source*, optionally merging livedoc.yaml.

    Looks for livedoc.yaml, livedoc.yml, or livedoc.toml next to the source
    document.  A ``render`` table in the file becomes the compiler's
    pass-through options; an explicit ``render`` override replaces it.
    """
    source = Path(source)
    file_config = _read_livedoc_config(source.resolve().parent)
    file_render = file_config.pop("render", None)
    merged = {**file_config, **overrides}
    if "temp_dir" in merged and merged["temp_dir"] is not None:
        merged["temp_dir"] = Path(str(merged["temp_dir"]))
    if "render" not in merged:
        merged["render"] = RenderOptions.from_mapping(
            file_render if isinstance(file_render, dict) else None
        )
    elif not isinstance(merged["render"], RenderOptions):
        merged["render"] = RenderOptions.from_mapping(merged["render"])  # type: ignore[arg-type]
    return LivedocConfig(source=source, **merged)  # type: ignore[arg-type]


def _read_livedoc_config(directory: Path) -> dict[str, object]:
    """Read livedoc config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("livedoc.yaml", "livedoc.yml"):
        path = directory / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = directory / "livedoc.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    import yaml

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_livedoc_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return _flatten_livedoc_section(data)


def _flatten_livedoc_section(data: dict[str, object]) -> dict[str, object]:
    """Extract livedoc.* keys (and known top-level keys) into one dict."""
    result: dict[str, object] = {}
    section = data.get("livedoc")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _FILE_KEYS or k == "render":
                result[k] = v
    for k, v in data.items():
        if k != "livedoc" and (k in _FILE_KEYS or k == "render"):
            result[k] = v
    return result
