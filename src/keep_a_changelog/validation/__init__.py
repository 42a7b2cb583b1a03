"""Validation module - Check changelog files and report problems.

Runs the parser over a set of files and renders the diagnostics as text,
GitHub Actions annotations or JSON.
"""

from keep_a_changelog.validation.report import FORMATS, format_results
from keep_a_changelog.validation.runner import (
    FileResult,
    resolve_paths,
    validate_file,
    validate_files,
)

__all__ = [
    "FORMATS",
    "FileResult",
    "format_results",
    "resolve_paths",
    "validate_file",
    "validate_files",
]
