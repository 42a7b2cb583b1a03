"""Report formatting for validation results.

Three formats are supported:
- text: one block per problem, for people
- github: GitHub Actions workflow commands, shown as annotations on a PR
- json: machine-readable list of files and their diagnostics
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

from keep_a_changelog.validation.runner import FileResult

FORMATS = ("text", "github", "json")


def _display_path(path: Path, base: Optional[Path]) -> str:
    if base is not None:
        try:
            return str(path.relative_to(base))
        except ValueError:
            pass
    return str(path)


def format_text(results: list[FileResult], base: Optional[Path] = None) -> str:
    lines = []
    for result in results:
        name = _display_path(result.path, base)
        if result.error:
            lines.append(f"❌ ERROR {name}")
            lines.append(f"   {result.error}")
            continue
        for diagnostic in result.diagnostics:
            lines.append(f"❌ ERROR {name}:{diagnostic.position.start}")
            lines.append(f"   {diagnostic.message}")
    return "\n".join(lines)


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def format_github(results: list[FileResult], base: Optional[Path] = None) -> str:
    """Format as ``::error`` workflow commands."""
    lines = []
    for result in results:
        name = _escape_property(_display_path(result.path, base))
        if result.error:
            lines.append(f"::error file={name}::{_escape_data(result.error)}")
            continue
        for diagnostic in result.diagnostics:
            start, end = diagnostic.position.start, diagnostic.position.end
            lines.append(
                f"::error file={name},line={start.line},col={start.column},"
                f"endLine={end.line},endColumn={end.column}::{_escape_data(diagnostic.message)}"
            )
    return "\n".join(lines)


def format_json(results: list[FileResult], base: Optional[Path] = None) -> str:
    data = []
    for result in results:
        data.append(
            {
                "file": _display_path(result.path, base),
                "error": result.error,
                "diagnostics": [
                    {
                        "message": d.message,
                        "start": {
                            "line": d.position.start.line,
                            "column": d.position.start.column,
                            "offset": d.position.start.offset,
                        },
                        "end": {
                            "line": d.position.end.line,
                            "column": d.position.end.column,
                            "offset": d.position.end.offset,
                        },
                    }
                    for d in result.diagnostics
                ],
            }
        )
    return json.dumps(data, indent=2, ensure_ascii=False)


_FORMATTERS: dict[str, Callable[[list[FileResult], Optional[Path]], str]] = {
    "text": format_text,
    "github": format_github,
    "json": format_json,
}


def format_results(
    results: list[FileResult], output_format: str = "text", base: Optional[Path] = None
) -> str:
    """Render results in one of ``FORMATS``.

    Raises:
        ValueError: If the format is unknown
    """
    try:
        formatter = _FORMATTERS[output_format]
    except KeyError:
        raise ValueError(
            f"Unknown output format '{output_format}', expected one of: {', '.join(FORMATS)}"
        ) from None
    return formatter(results, base)
