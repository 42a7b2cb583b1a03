"""
keep_a_changelog.core.changelog - The typed changelog model.

A ``Changelog`` is only built from text that produces no diagnostics, so every
value reachable from it has already been validated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from keep_a_changelog.core.diagnostics import Diagnostic, get_diagnostics
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

CHANGELOG_HEADER = """\
# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.1.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html)."""


class ParseChangelogError(ValueError):
    """
    Raised when changelog text has diagnostics.

    Attributes:
        diagnostics: Every problem found, in document order
    """

    def __init__(self, diagnostics: List[Diagnostic]):
        self.diagnostics = diagnostics
        lines = [f"Could not parse changelog, found {len(diagnostics)} problem(s):"]
        lines.extend(f"  {diagnostic}" for diagnostic in diagnostics)
        super().__init__("\n".join(lines))


class PromoteUnreleasedError(ValueError):
    """Raised when promoting to a version that is already in the changelog."""

    def __init__(self, version: ReleaseVersion):
        self.version = version
        super().__init__(
            f"Could not promote unreleased to release version {version} "
            "because that version already exists in the changelog"
        )


@dataclass
class PromoteOptions:
    """
    Details of the release created by ``Changelog.promote_unreleased``.

    Attributes:
        version: Version of the new release
        date: Release date, defaults to today (UTC)
        tag: Optional release tag
        link: Optional release link
    """

    version: ReleaseVersion
    date: Optional[ReleaseDate] = None
    tag: Optional[ReleaseTag] = None
    link: Optional[ReleaseLink] = None


@dataclass
class Changelog:
    """
    A changelog in Keep a Changelog format.

    Attributes:
        unreleased: Upcoming changes, always present
        releases: Released versions, newest first as written in the document
    """

    unreleased: Unreleased = field(default_factory=Unreleased)
    releases: Releases = field(default_factory=Releases)

    @classmethod
    def from_text(cls, text: str) -> "Changelog":
        """
        Parse and validate changelog text.

        Args:
            text: Changelog markdown

        Returns:
            The changelog

        Raises:
            ParseChangelogError: If any diagnostic was found
        """
        tree = parse(text)
        diagnostics = get_diagnostics(tree)
        if diagnostics:
            raise ParseChangelogError(diagnostics)
        return _from_tree(tree)

    def promote_unreleased(self, options: PromoteOptions) -> None:
        """
        Move all unreleased changes into a new release at the top.

        Raises:
            PromoteUnreleasedError: If the version already exists; the
                changelog is left unchanged
        """
        if self.releases.contains_version(options.version):
            raise PromoteUnreleasedError(options.version)

        release = Release(
            version=options.version,
            date=options.date or ReleaseDate.today(),
            tag=options.tag,
            link=options.link,
            changes=self.unreleased.changes,
        )
        self.unreleased.changes = Changes()
        self.releases.prepend(release)

    def to_text(self) -> str:
        """Serialize to Keep a Changelog markdown."""
        parts = [CHANGELOG_HEADER, "\n\n## [Unreleased]", _format_changes(self.unreleased.changes)]

        has_release_link = False
        for release in self.releases:
            heading = f"\n\n## [{release.version}] - {release.date}"
            if release.tag is not None:
                heading += f" [{release.tag}]"
            parts.append(heading)
            parts.append(_format_changes(release.changes))
            if release.link is not None:
                has_release_link = True

        if self.unreleased.link is not None or has_release_link:
            parts.append("\n")
        if self.unreleased.link is not None:
            parts.append(f"\n[unreleased]: {self.unreleased.link}")
        for release in self.releases:
            if release.link is not None:
                parts.append(f"\n[{release.version}]: {release.link}")

        parts.append("\n")
        return "".join(parts)

    def __str__(self) -> str:
        return self.to_text()


def _format_changes(changes: Changes) -> str:
    text = ""
    for group, items in changes.items():
        bullets = "\n".join(f"- {item}" for item in items)
        text += f"\n\n### {group}\n\n{bullets}"
    return text


def _from_tree(tree: Tree) -> Changelog:
    """Assemble a changelog from a tree that produced no diagnostics."""
    unreleased_links: List[ReleaseLink] = []
    version_links: Dict[ReleaseVersion, ReleaseLink] = {}
    for subtree in tree.subtrees(TreeKind.RELEASE_LINK):
        target = subtree.release_link
        assert target is not None
        if target.version is None:
            unreleased_links.append(target.link)
        else:
            version_links[target.version] = target.link

    unreleased = Unreleased(link=unreleased_links[0] if unreleased_links else None)
    for section in tree.subtrees(TreeKind.UNRELEASED):
        unreleased.changes = _changes(section)

    releases = []
    for section in tree.subtrees(TreeKind.RELEASE):
        header = next(section.subtrees(TreeKind.RELEASE_HEADER)).release_header
        assert header is not None
        releases.append(
            Release(
                version=header.version,
                date=header.date,
                tag=header.tag,
                link=version_links.get(header.version),
                changes=_changes(section),
            )
        )

    return Changelog(unreleased=unreleased, releases=Releases(releases))


def _changes(section: Tree) -> Changes:
    changes = Changes()
    for group_tree in section.subtrees(TreeKind.CHANGE_GROUP):
        group: Optional[ChangeGroup] = None
        for header in group_tree.subtrees(TreeKind.CHANGE_GROUP_HEADER):
            group = header.change_group
        assert group is not None
        for list_tree in group_tree.subtrees(TreeKind.CHANGE_GROUP_LIST):
            for node in list_tree.markdown_nodes():
                changes.extend(group, [item.item_text for item in node.items])
    return changes
