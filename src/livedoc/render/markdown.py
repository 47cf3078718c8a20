"""Default document compiler — Markdown to HTML via Patitas.

Implements the compiler contract the render invoker expects::

    render_markdown(input_path, output_file, output_options, runtime) -> Path

Supported output options:

- ``self_contained`` (bool): inline stylesheets instead of writing them to
  the supporting-files directory.
- ``satisfied_dependencies`` (iterable of str): dependency identifiers the
  hosting page already provides; those are not emitted again.
- ``stylesheets`` (list of paths): extra stylesheets, resolved relative to
  the source document.
- ``title`` (str): document title; falls back to frontmatter, then file stem.

In ``reactive`` runtime the artifact is an HTML fragment meant to be placed
inside the preview shell; in ``static`` runtime it is a full HTML document.
"""

from __future__ import annotations

import html
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from livedoc._types import RuntimeMode
from livedoc.theme import bundled_asset

# Dependency identifier for the bundled base stylesheet.
BASE_DEPENDENCY = "livedoc-base"

_FILES_SUFFIX = "_files"


def supporting_files_dir(output_file: Path) -> Path:
    """Return the deterministic supporting-files directory for an output file.

    ``/tmp/doc.html`` -> ``/tmp/doc_files``
    """
    output_file = Path(output_file)
    return output_file.with_name(f"{output_file.stem}{_FILES_SUFFIX}")


def split_frontmatter(source: str) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from markdown source.

    Frontmatter is delimited by ``---`` on its own line at the start of the
    file.  Returns ``({}, source)`` when there is none or it does not parse
    to a mapping.
    """
    if not source.startswith("---"):
        return {}, source
    end = source.find("\n---", 3)
    if end == -1:
        return {}, source
    try:
        meta = yaml.safe_load(source[3:end]) or {}
    except yaml.YAMLError:
        return {}, source
    if not isinstance(meta, dict):
        return {}, source
    # Skip past the closing "---" and strip leading blank lines
    return meta, source[end + 4:].lstrip("\n")


def render_markdown(
    input_path: Path,
    output_file: Path,
    output_options: Mapping[str, Any],
    runtime: RuntimeMode = "reactive",
) -> Path:
    """Render a Markdown document to HTML at *output_file*.

    Raises:
        OSError: If the source cannot be read or the output cannot be written.

    """
    from patitas import Markdown

    input_path = Path(input_path)
    output_file = Path(output_file)

    meta, body = split_frontmatter(input_path.read_text(encoding="utf-8"))
    md = Markdown(plugins=["table"])
    content = md(body)

    self_contained = bool(output_options.get("self_contained", False))
    satisfied = frozenset(output_options.get("satisfied_dependencies", ()))

    stylesheets: list[Path] = []
    if BASE_DEPENDENCY not in satisfied:
        stylesheets.append(bundled_asset("livedoc.css"))
    for entry in output_options.get("stylesheets", ()):
        path = Path(entry)
        if not path.is_absolute():
            path = input_path.parent / path
        stylesheets.append(path)

    head = _emit_stylesheets(stylesheets, output_file, self_contained=self_contained)
    title = str(output_options.get("title") or meta.get("title") or input_path.stem)

    article = f'<article class="livedoc-document">\n{content}</article>\n'
    if runtime == "reactive":
        document = head + article
    else:
        document = (
            "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
            f"<title>{html.escape(title)}</title>\n{head}</head>\n"
            f"<body>\n{article}</body>\n</html>\n"
        )

    output_file.parent.mkdir(parents=True, exist_ok=True)
    output_file.write_text(document, encoding="utf-8")
    return output_file


def _emit_stylesheets(
    stylesheets: list[Path],
    output_file: Path,
    *,
    self_contained: bool,
) -> str:
    """Inline or copy stylesheets and return the markup that references them."""
    if not stylesheets:
        return ""

    if self_contained:
        return "".join(
            f"<style>\n{sheet.read_text(encoding='utf-8')}</style>\n"
            for sheet in stylesheets
        )

    files_dir = supporting_files_dir(output_file)
    files_dir.mkdir(parents=True, exist_ok=True)
    links: list[str] = []
    for sheet in stylesheets:
        shutil.copyfile(sheet, files_dir / sheet.name)
        href = html.escape(f"{files_dir.name}/{sheet.name}")
        links.append(f'<link rel="stylesheet" href="{href}">\n')
    return "".join(links)
