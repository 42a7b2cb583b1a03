"""
keep_a_changelog.core.diagnostics - Collect problems from a changelog CST.

Walks a tree produced by ``parse`` and reports:

- every ERROR subtree embedded by the parser
- duplicate change groups within one release or the unreleased section
- releases without change groups that are not tagged NO CHANGES
- duplicate release versions, duplicate release links, and links that do not
  match any listed release
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from keep_a_changelog.core.markdown import Position
from keep_a_changelog.core.models import ChangeGroup, ReleaseTag, ReleaseVersion
from keep_a_changelog.core.parser import Tree, TreeKind


@dataclass(frozen=True)
class Diagnostic:
    """
    A positioned, human-readable problem found in a changelog.

    Attributes:
        message: Description of the problem
        position: Where in the document the problem is
    """

    message: str
    position: Position

    @property
    def line(self) -> int:
        return self.position.start.line

    @property
    def column(self) -> int:
        return self.position.start.column

    def __str__(self) -> str:
        return f"{self.position.start}: {self.message}"


@dataclass
class _VersionEntry:
    header: Optional[Tree] = None
    link: Optional[Tree] = None


def get_diagnostics(tree: Tree) -> List[Diagnostic]:
    """
    Collect every diagnostic for a parsed changelog.

    Args:
        tree: Tree returned by ``parse`` (must be rooted at CHANGELOG_FILE)

    Returns:
        Diagnostics ordered by their position in the document

    Raises:
        ValueError: If ``tree`` is not a CHANGELOG_FILE tree
    """
    if tree.kind != TreeKind.CHANGELOG_FILE:
        raise ValueError(f"Expected a {TreeKind.CHANGELOG_FILE.value} tree, got {tree.kind.value}")

    diagnostics: List[Diagnostic] = []

    for subtree in tree.walk():
        if subtree.kind == TreeKind.ERROR:
            diagnostics.append(Diagnostic(subtree.message or "", subtree.position()))
        elif subtree.kind in (TreeKind.RELEASE, TreeKind.UNRELEASED):
            diagnostics.extend(_check_change_groups(subtree))

    diagnostics.extend(_check_release_versions(tree))

    # stable: diagnostics sharing a start keep discovery order
    return sorted(diagnostics, key=lambda d: d.position.start.offset)


def _check_change_groups(section: Tree) -> List[Diagnostic]:
    """Duplicate groups in a release/unreleased section, and empty releases."""
    diagnostics: List[Diagnostic] = []
    seen: Set[ChangeGroup] = set()
    group_count = 0

    for group in section.subtrees(TreeKind.CHANGE_GROUP):
        group_count += 1
        for header in group.subtrees(TreeKind.CHANGE_GROUP_HEADER):
            if header.change_group in seen:
                diagnostics.append(Diagnostic("Duplicate change group found", header.position()))
            elif header.change_group is not None:
                seen.add(header.change_group)

    if section.kind == TreeKind.RELEASE and group_count == 0:
        header = next(section.subtrees(TreeKind.RELEASE_HEADER), None)
        # an invalid header is already reported; its tag is unknown
        if header is not None and header.release_header is not None:
            if header.release_header.tag != ReleaseTag.NO_CHANGES:
                diagnostics.append(
                    Diagnostic(
                        f"Release '{header.release_header.version}' has no change groups, "
                        f"add changes or tag it as [{ReleaseTag.NO_CHANGES}]",
                        header.position(),
                    )
                )

    return diagnostics


def _check_release_versions(tree: Tree) -> List[Diagnostic]:
    """Cross-check release headers against release link definitions."""
    diagnostics: List[Diagnostic] = []
    versions: Dict[ReleaseVersion, _VersionEntry] = {}
    unreleased_link: Optional[Tree] = None

    for subtree in tree.walk():
        if subtree.kind == TreeKind.RELEASE_HEADER and subtree.release_header:
            version = subtree.release_header.version
            entry = versions.setdefault(version, _VersionEntry())
            if entry.header is not None:
                diagnostics.append(
                    Diagnostic(f"Duplicate release version '{version}' found", subtree.position())
                )
            else:
                entry.header = subtree
        elif subtree.kind == TreeKind.RELEASE_LINK and subtree.release_link:
            target = subtree.release_link
            if target.version is None:
                if unreleased_link is not None:
                    diagnostics.append(
                        Diagnostic("Duplicate unreleased link found", subtree.position())
                    )
                else:
                    unreleased_link = subtree
                continue
            entry = versions.setdefault(target.version, _VersionEntry())
            if entry.link is not None:
                diagnostics.append(
                    Diagnostic(
                        f"Duplicate release version link '{target.version}' found",
                        subtree.position(),
                    )
                )
            else:
                entry.link = subtree

    for entry in versions.values():
        if entry.link is not None and entry.header is None:
            diagnostics.append(
                Diagnostic(
                    "Release link version does not match any listed releases",
                    entry.link.position(),
                )
            )

    return diagnostics
