"""Validation runner - Check many changelog files at once.

Paths may be plain files or glob patterns (``docs/**/CHANGELOG.md``). Files
are read and parsed on a thread pool; results come back in the order the
files were resolved.
"""

from __future__ import annotations

import glob
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from keep_a_changelog.core.diagnostics import Diagnostic, get_diagnostics
from keep_a_changelog.core.parser import parse


@dataclass
class FileResult:
    """Outcome of validating one file.

    Attributes:
        path: The changelog file
        diagnostics: Problems found in the file
        error: Set when the file could not be read
    """

    path: Path
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.diagnostics


def resolve_paths(patterns: Iterable[str], base: Optional[Path] = None) -> list[Path]:
    """Expand glob patterns into a de-duplicated list of paths.

    A pattern without glob characters is kept as-is even if the file does not
    exist, so that a missing file is reported rather than silently skipped.
    """
    base = base or Path.cwd()
    resolved: list[Path] = []
    seen: set[Path] = set()
    for pattern in patterns:
        if any(c in pattern for c in "*?["):
            root = Path(pattern) if Path(pattern).is_absolute() else base / pattern
            matches = sorted(Path(m) for m in glob.glob(str(root), recursive=True))
        else:
            path = Path(pattern)
            matches = [path if path.is_absolute() else base / path]
        for path in matches:
            if path not in seen:
                seen.add(path)
                resolved.append(path)
    return resolved


def validate_file(path: Path) -> FileResult:
    """Parse one file and collect its diagnostics."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        return FileResult(path=path, error=f"Cannot read {path}: {e}")
    return FileResult(path=path, diagnostics=get_diagnostics(parse(text)))


def validate_files(paths: list[Path], jobs: int = 4) -> list[FileResult]:
    """Validate files concurrently.

    Args:
        paths: Files to validate
        jobs: Maximum number of worker threads

    Returns:
        One FileResult per path, in input order
    """
    if not paths:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(jobs, len(paths)))) as executor:
        return list(executor.map(validate_file, paths))
