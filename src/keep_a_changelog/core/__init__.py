"""
keep_a_changelog.core - Changelog parsing, diagnostics and the typed model
"""

from keep_a_changelog.core.changelog import (
    Changelog,
    ParseChangelogError,
    PromoteOptions,
    PromoteUnreleasedError,
)
from keep_a_changelog.core.diagnostics import Diagnostic, get_diagnostics
from keep_a_changelog.core.markdown import Point, Position
from keep_a_changelog.core.models import (
    ChangeGroup,
    Changes,
    Release,
    ReleaseDate,
    ReleaseLink,
    Releases,
    ReleaseTag,
    ReleaseVersion,
    Unreleased,
)
from keep_a_changelog.core.parser import Tree, TreeKind, parse

__all__ = [
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
