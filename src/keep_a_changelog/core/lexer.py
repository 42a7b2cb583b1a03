"""
keep_a_changelog.core.lexer - Classify markdown blocks into changelog tokens.

Turns the flat list of top-level markdown blocks into ``ClassifiedNode``
values tagged with the changelog construct they look like. Classification
only checks shape (a depth-2 heading that looks like ``[x] - y`` is a release
header even if ``x`` is not a valid version); the parser validates content.
Unrecognized blocks are kept so the parser can report them in place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from keep_a_changelog.core.markdown import MarkdownNode, parse_markdown, render
from keep_a_changelog.core.models import ChangeGroup, ParseChangeGroupError

CHANGELOG_TITLE = "Changelog"

NOTABLE_CHANGES_TEXT = "All notable changes to this project will be documented in this file."

ABOUT_FORMAT_TEXT = (
    "The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.1.0/),\n"
    "and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html)."
)

UNRELEASED_HEADER_REGEX = re.compile(r"^\[?unreleased\]?$", re.IGNORECASE)

RELEASE_HEADER_REGEX = re.compile(
    r"^\[?(?P<version>[^\s\[\]]+)\]?"
    r"\s+-\s+"
    r"(?P<release_date>[^\s\[\]]+)"
    r"(?:\s+\[(?P<tag>[^\]]+)\])?$"
)


class NodeKind(Enum):
    """Changelog constructs a top-level markdown block can represent."""

    TITLE = "title"
    NOTABLE_CHANGES = "notable_changes"
    ABOUT_FORMAT = "about_format"
    UNRELEASED_HEADER = "unreleased_header"
    RELEASE_HEADER = "release_header"
    CHANGE_GROUP_HEADER = "change_group_header"
    CHANGE_GROUP_LIST = "change_group_list"
    RELEASE_LINK = "release_link"
    UNRECOGNIZED = "unrecognized"


@dataclass
class ClassifiedNode:
    """A markdown block tagged with the changelog construct it looks like."""

    kind: NodeKind
    markdown: MarkdownNode

    def __str__(self) -> str:
        return render(self.markdown)


def lex(text: str) -> List[ClassifiedNode]:
    """
    Classify every top-level block of a changelog document.

    Args:
        text: Changelog markdown

    Returns:
        One ClassifiedNode per top-level block, in document order
    """
    return [ClassifiedNode(classify(node), node) for node in parse_markdown(text)]


def classify(node: MarkdownNode) -> NodeKind:
    """Determine which changelog construct a block looks like."""
    if is_title(node):
        return NodeKind.TITLE
    if is_unreleased_header(node):
        return NodeKind.UNRELEASED_HEADER
    if is_release_header(node):
        return NodeKind.RELEASE_HEADER
    if is_change_group_header(node):
        return NodeKind.CHANGE_GROUP_HEADER
    if node.type == "list":
        return NodeKind.CHANGE_GROUP_LIST
    if is_notable_changes(node):
        return NodeKind.NOTABLE_CHANGES
    if is_about_format(node):
        return NodeKind.ABOUT_FORMAT
    if node.type == "definition":
        return NodeKind.RELEASE_LINK
    return NodeKind.UNRECOGNIZED


def is_title(node: MarkdownNode) -> bool:
    return node.is_heading(1) and node.plain_text == CHANGELOG_TITLE


def is_unreleased_header(node: MarkdownNode) -> bool:
    return node.is_heading(2) and bool(UNRELEASED_HEADER_REGEX.match(node.plain_text.strip()))


def is_release_header(node: MarkdownNode) -> bool:
    return node.is_heading(2) and bool(RELEASE_HEADER_REGEX.match(node.plain_text.strip()))


def is_change_group_header(node: MarkdownNode) -> bool:
    if not node.is_heading(3):
        return False
    try:
        ChangeGroup.parse(node.plain_text)
    except ParseChangeGroupError:
        return False
    return True


def is_notable_changes(node: MarkdownNode) -> bool:
    return node.type == "paragraph" and node.text == NOTABLE_CHANGES_TEXT


def is_about_format(node: MarkdownNode) -> bool:
    return node.type == "paragraph" and matches_ignoring_whitespace(node.text, ABOUT_FORMAT_TEXT)


def matches_ignoring_whitespace(a: str, b: str) -> bool:
    return a.split() == b.split()
