"""
keep_a_changelog - Parse, validate and edit Keep a Changelog files

Changelogs are parsed with an error-resilient parser: every problem in the
document is reported with its position instead of stopping at the first one.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("keep-a-changelog")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed

from keep_a_changelog.core import (
    ChangeGroup,
    Changelog,
    Changes,
    Diagnostic,
    ParseChangelogError,
    Point,
    Position,
    PromoteOptions,
    PromoteUnreleasedError,
    Release,
    ReleaseDate,
    ReleaseLink,
    Releases,
    ReleaseTag,
    ReleaseVersion,
    Tree,
    TreeKind,
    Unreleased,
    get_diagnostics,
    parse,
)

__all__ = [
    "__version__",
    "ChangeGroup",
    "Changelog",
    "Changes",
    "Diagnostic",
    "ParseChangelogError",
    "Point",
    "Position",
    "PromoteOptions",
    "PromoteUnreleasedError",
    "Release",
    "ReleaseDate",
    "ReleaseLink",
    "ReleaseTag",
    "ReleaseVersion",
    "Releases",
    "Tree",
    "TreeKind",
    "Unreleased",
    "get_diagnostics",
    "parse",
]
