"""
keep_a_changelog.core.parser - Error-resilient changelog parser.

Hand-written recursive-descent parser over the classified block sequence
produced by the lexer. Parsing never fails: every deviation from the grammar
becomes an ERROR subtree inside a concrete syntax tree rooted at
CHANGELOG_FILE.

The parser records an append-only event log (open/close/advance/missing).
``open()`` reserves a slot whose kind is decided later by ``close()``, so a
production can turn into an ERROR subtree after its children were emitted.
``build_tree()`` replays the log into a ``Tree``.

Grammar::

    ChangelogFile     := Title? NotableChanges? AboutFormat? Unreleased (Release | ReleaseLink)*
    Unreleased        := UnreleasedHeader ChangeGroup*
    Release           := ReleaseHeader ChangeGroup*
    ChangeGroup       := ChangeGroupHeader ChangeGroupList+
    ReleaseLink       := [unreleased | <version>]: <uri>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Iterator, List, Optional, Union

from keep_a_changelog.core.lexer import (
    ABOUT_FORMAT_TEXT,
    CHANGELOG_TITLE,
    NOTABLE_CHANGES_TEXT,
    RELEASE_HEADER_REGEX,
    UNRELEASED_HEADER_REGEX,
    ClassifiedNode,
    is_about_format,
    is_notable_changes,
    is_release_header,
    is_title,
    is_unreleased_header,
    lex,
)
from keep_a_changelog.core.markdown import (
    DOCUMENT_START,
    MarkdownNode,
    Point,
    Position,
    render,
    strip_byte_order_mark,
)
from keep_a_changelog.core.models import (
    ChangeGroup,
    ParseChangeGroupError,
    ParseReleaseDateError,
    ParseReleaseLinkError,
    ParseReleaseTagError,
    ParseVersionError,
    ReleaseDate,
    ReleaseLink,
    ReleaseTag,
    ReleaseVersion,
)

# Lookups allowed at one position before the parser is considered stuck
FUEL = 256

_PREVIEW_LENGTH = 80


class ParserStuckError(RuntimeError):
    """Internal error: the grammar stopped making progress."""


class TreeKind(Enum):
    """Kinds of CST nodes."""

    ERROR = "Error"
    CHANGELOG_FILE = "ChangelogFile"
    TITLE = "Title"
    NOTABLE_CHANGES = "NotableChanges"
    ABOUT_FORMAT = "AboutFormat"
    UNRELEASED = "Unreleased"
    UNRELEASED_HEADER = "UnreleasedHeader"
    RELEASE = "Release"
    RELEASE_HEADER = "ReleaseHeader"
    CHANGE_GROUP = "ChangeGroup"
    CHANGE_GROUP_HEADER = "ChangeGroupHeader"
    CHANGE_GROUP_LIST = "ChangeGroupList"
    RELEASE_LINK = "ReleaseLink"


@dataclass(frozen=True)
class ReleaseHeaderInfo:
    """Validated content of a release heading."""

    version: ReleaseVersion
    date: ReleaseDate
    tag: Optional[ReleaseTag] = None


@dataclass(frozen=True)
class ReleaseLinkTarget:
    """Validated link definition; ``version`` is None for the unreleased link."""

    link: ReleaseLink
    version: Optional[ReleaseVersion] = None

    @property
    def is_unreleased(self) -> bool:
        return self.version is None


@dataclass(frozen=True)
class Dummy:
    """Zero-width placeholder for a section that is missing entirely."""

    position: Position


Child = Union[ClassifiedNode, "Tree", Dummy]


@dataclass
class Tree:
    """
    A node of the concrete syntax tree.

    The ``kind`` field determines which payload field is populated:

    Attributes:
        kind: The CST node kind
        children: Markdown nodes, nested trees and missing placeholders
        message: Populated when kind is ERROR
        release_header: Populated when kind is RELEASE_HEADER
        change_group: Populated when kind is CHANGE_GROUP_HEADER
        release_link: Populated when kind is RELEASE_LINK
    """

    kind: TreeKind
    children: List[Child] = field(default_factory=list)
    message: Optional[str] = None
    release_header: Optional[ReleaseHeaderInfo] = None
    change_group: Optional[ChangeGroup] = None
    release_link: Optional[ReleaseLinkTarget] = None

    def subtrees(self, kind: Optional[TreeKind] = None) -> Iterator[Tree]:
        """Direct child trees, optionally filtered by kind."""
        for child in self.children:
            if isinstance(child, Tree) and (kind is None or child.kind == kind):
                yield child

    def walk(self) -> Iterator[Tree]:
        """This tree and all nested trees, depth-first pre-order."""
        yield self
        for child in self.subtrees():
            yield from child.walk()

    def markdown_nodes(self) -> Iterator[MarkdownNode]:
        """Markdown nodes directly attached to this tree."""
        for child in self.children:
            if isinstance(child, ClassifiedNode):
                yield child.markdown

    def positions(self) -> Iterator[Position]:
        """Positions of all markdown and placeholder descendants, in order."""
        for child in self.children:
            if isinstance(child, Tree):
                yield from child.positions()
            elif isinstance(child, Dummy):
                yield child.position
            else:
                yield child.markdown.position

    def position(self) -> Position:
        """Span from the first to the last positioned descendant.

        A tree without any falls back to the start of the document.
        """
        first: Optional[Position] = None
        last: Optional[Position] = None
        for position in self.positions():
            if first is None:
                first = position
            last = position
        if first is None or last is None:
            return Position.at(DOCUMENT_START)
        return Position(start=first.start, end=last.end)

    def label(self) -> str:
        """Kind name with its payload, e.g. ``ReleaseHeader(1.0.0, 2024-01-01)``."""
        if self.kind == TreeKind.ERROR:
            return f"Error({self.message!r})"
        if self.kind == TreeKind.RELEASE_HEADER and self.release_header:
            header = self.release_header
            parts = [str(header.version), str(header.date)]
            if header.tag:
                parts.append(str(header.tag))
            return f"ReleaseHeader({', '.join(parts)})"
        if self.kind == TreeKind.CHANGE_GROUP_HEADER and self.change_group:
            return f"ChangeGroupHeader({self.change_group})"
        if self.kind == TreeKind.RELEASE_LINK and self.release_link:
            target = self.release_link
            name = "unreleased" if target.is_unreleased else str(target.version)
            return f"ReleaseLink({name}, {target.link})"
        return self.kind.value

    def pretty(self) -> str:
        """Indented dump of the tree, one node per line."""
        lines: List[str] = []
        self._pretty(lines, 0)
        return "\n".join(lines) + "\n"

    def _pretty(self, lines: List[str], level: int) -> None:
        indent = "  " * level
        lines.append(f"{indent}{self.label()}")
        for child in self.children:
            if isinstance(child, Tree):
                child._pretty(lines, level + 1)
            elif isinstance(child, Dummy):
                lines.append(f"{indent}  Missing @ {child.position.start}")
            else:
                lines.append(f"{indent}  {child.kind.name} '{_preview(child.markdown)}'")

    def __str__(self) -> str:
        return self.pretty()


def parse(text: str) -> Tree:
    """
    Parse changelog text into a concrete syntax tree.

    Never raises for user input; problems are recorded as ERROR subtrees.

    Args:
        text: Changelog markdown

    Returns:
        Tree rooted at CHANGELOG_FILE
    """
    text = strip_byte_order_mark(text)
    parser = Parser(lex(text), len(text.encode("utf-8")))
    changelog_file(parser)
    return parser.build_tree()


# ---------------------------------------------------------------------------
# Event log


@dataclass
class _Open:
    kind: TreeKind
    payload: dict = field(default_factory=dict)


class _Close:
    pass


class _Advance:
    pass


class _Missing:
    pass


_Event = Union[_Open, _Close, _Advance, _Missing]


@dataclass(frozen=True)
class MarkOpened:
    """Index of an open event whose kind is decided on close."""

    index: int


Predicate = Callable[[MarkdownNode], bool]


class Parser:
    """
    Cursor over classified nodes that records parse events.
    """

    def __init__(self, nodes: List[ClassifiedNode], text_length: int):
        """
        Args:
            nodes: Classified top-level blocks
            text_length: UTF-8 length of the source document, bounds synthesized positions
        """
        self.nodes = nodes
        self.text_length = text_length
        self.pos = 0
        self.fuel = FUEL
        self.events: List[_Event] = []

    def build_tree(self) -> Tree:
        """Replay the event log into a Tree."""
        events = list(self.events)
        if not events or not isinstance(events.pop(), _Close):
            raise ParserStuckError("event log must end with a close event")

        nodes = iter(self.nodes)
        stack: List[Tree] = []
        last_end: Optional[Point] = None

        for event in events:
            if isinstance(event, _Open):
                stack.append(Tree(kind=event.kind, **event.payload))
            elif isinstance(event, _Close):
                tree = stack.pop()
                stack[-1].children.append(tree)
            elif isinstance(event, _Advance):
                node = next(nodes)
                stack[-1].children.append(node)
                last_end = node.markdown.position.end
            else:
                stack[-1].children.append(Dummy(Position.at(self._missing_point(last_end))))

        tree = stack.pop()
        if stack or next(nodes, None) is not None:
            raise ParserStuckError("unbalanced event log")
        return tree

    def _missing_point(self, last_end: Optional[Point]) -> Point:
        # One past the end of the previous node, clamped to the document
        if last_end is None:
            return DOCUMENT_START
        return Point(
            line=last_end.line,
            column=last_end.column + 1,
            offset=min(last_end.offset + 1, self.text_length),
        )

    def open(self) -> MarkOpened:
        mark = MarkOpened(len(self.events))
        self.events.append(_Open(TreeKind.ERROR))
        return mark

    def close(self, mark: MarkOpened, kind: TreeKind, **payload) -> None:
        self.events[mark.index] = _Open(kind, payload)
        self.events.append(_Close())

    def advance(self) -> None:
        if self.eof():
            raise ParserStuckError("cannot advance past the end of input")
        self.fuel = FUEL
        self.events.append(_Advance())
        self.pos += 1

    def advance_with_error(self, message: str) -> None:
        """Consume exactly one node inside an ERROR subtree."""
        mark = self.open()
        self.advance()
        self.close(mark, TreeKind.ERROR, message=message)

    def missing(self) -> None:
        """Record a placeholder for something absent, consuming nothing."""
        self.events.append(_Missing())

    def expect(
        self,
        expected: Predicate,
        kind: TreeKind,
        message: str,
        malformed: Optional[Predicate] = None,
    ) -> bool:
        """
        Wrap the current node in ``kind`` if it matches ``expected``.

        Otherwise an ERROR subtree is recorded: around the current node when
        it matches ``malformed`` (a wrong attempt at the same construct), or
        around a missing placeholder, leaving the node for the caller.

        Returns:
            True if the expected node was consumed
        """
        m = self.open()
        if self.eat(expected):
            self.close(m, kind)
            return True
        if malformed is not None and self.at(malformed):
            message = f"{message} but found '{self.preview()}'"
            self.advance()
        else:
            self.missing()
        self.close(m, TreeKind.ERROR, message=message)
        return False

    def find(self, predicate: Predicate, stop: Predicate) -> Optional[int]:
        """
        Lookahead distance to the first node matching ``predicate``.

        The scan gives up at the first node matching ``stop``. It is bounded by
        the input, so it does not spend fuel.
        """
        for index in range(self.pos, len(self.nodes)):
            node = self.nodes[index].markdown
            if predicate(node):
                return index - self.pos
            if stop(node):
                return None
        return None

    def eof(self) -> bool:
        return self.pos >= len(self.nodes)

    def nth(self, lookahead: int) -> Optional[ClassifiedNode]:
        if self.fuel == 0:
            raise ParserStuckError(f"parser is stuck at node {self.pos}")
        self.fuel -= 1
        index = self.pos + lookahead
        return self.nodes[index] if index < len(self.nodes) else None

    def current(self) -> Optional[ClassifiedNode]:
        return self.nth(0)

    def at(self, predicate: Predicate) -> bool:
        node = self.nth(0)
        return node is not None and predicate(node.markdown)

    def eat(self, predicate: Predicate) -> bool:
        if self.at(predicate):
            self.advance()
            return True
        return False

    def preview(self) -> str:
        node = self.current()
        return _preview(node.markdown) if node else ""


def _preview(node: MarkdownNode) -> str:
    text = render(node)
    first_line, _, rest = text.partition("\n")
    if rest or len(first_line) > _PREVIEW_LENGTH:
        return first_line[:_PREVIEW_LENGTH].rstrip() + "..."
    return first_line


# ---------------------------------------------------------------------------
# Predicates


def heading(depth: int) -> Predicate:
    def predicate(node: MarkdownNode) -> bool:
        return node.is_heading(depth)

    return predicate


def is_paragraph(node: MarkdownNode) -> bool:
    return node.type == "paragraph"


def is_list(node: MarkdownNode) -> bool:
    return node.type == "list"


def is_definition(node: MarkdownNode) -> bool:
    return node.type == "definition"


def is_section_boundary(node: MarkdownNode) -> bool:
    """Depth-2 headings and link definitions end a change group region."""
    return node.is_heading(2) or is_definition(node)


# ---------------------------------------------------------------------------
# Grammar


def changelog_file(p: Parser) -> None:
    m = p.open()
    title(p)
    notable_changes(p)
    about_format(p)
    unreleased(p)
    while not p.eof():
        if p.at(heading(2)):
            release(p)
        elif p.at(is_definition):
            release_link(p)
        else:
            p.advance_with_error(f"Expected a release or release link but found '{p.preview()}'")
    p.close(m, TreeKind.CHANGELOG_FILE)


# Leading sections. Stray blocks in front of a section are reported one by
# one before the section itself. A block that is a wrong attempt at the
# section is consumed into the ERROR subtree, unless it is another leading
# section; anything else is left for what follows.

LEADING_SECTIONS = (is_title, is_notable_changes, is_about_format, is_unreleased_header)


def leading_section(
    p: Parser, expected: Predicate, kind: TreeKind, message: str, malformed: Predicate
) -> bool:
    def is_other_section(node: MarkdownNode) -> bool:
        return any(section(node) for section in LEADING_SECTIONS if section is not expected)

    def stop(node: MarkdownNode) -> bool:
        return node.is_heading() or is_definition(node) or is_other_section(node)

    for _ in range(p.find(expected, stop) or 0):
        p.advance_with_error(f"{message} but found '{p.preview()}'")

    return p.expect(
        expected,
        kind,
        message,
        malformed=lambda node: malformed(node) and not is_other_section(node),
    )


def title(p: Parser) -> None:
    leading_section(
        p,
        is_title,
        TreeKind.TITLE,
        f"Expected changelog title '# {CHANGELOG_TITLE}'",
        malformed=heading(1),
    )


def notable_changes(p: Parser) -> None:
    leading_section(
        p,
        is_notable_changes,
        TreeKind.NOTABLE_CHANGES,
        f"Expected notable changes description '{NOTABLE_CHANGES_TEXT}'",
        malformed=is_paragraph,
    )


def about_format(p: Parser) -> None:
    leading_section(
        p,
        is_about_format,
        TreeKind.ABOUT_FORMAT,
        "Expected format description '{}'".format(" ".join(ABOUT_FORMAT_TEXT.split())),
        malformed=is_paragraph,
    )


def unreleased(p: Parser) -> None:
    m = p.open()
    leading_section(
        p,
        is_unreleased_header,
        TreeKind.UNRELEASED_HEADER,
        "Expected unreleased section header '## [Unreleased]'",
        malformed=lambda node: node.is_heading(2) and not is_release_header(node),
    )
    change_groups(p, "unreleased")
    p.close(m, TreeKind.UNRELEASED)


def release(p: Parser) -> None:
    m = p.open()
    release_header(p)
    change_groups(p, "release")
    p.close(m, TreeKind.RELEASE)


def release_header(p: Parser) -> None:
    node = p.current()
    assert node is not None
    text = node.markdown.plain_text.strip()
    heading_text = render(node.markdown)

    m = p.open()
    p.advance()

    if UNRELEASED_HEADER_REGEX.match(text):
        p.close(
            m,
            TreeKind.ERROR,
            message=f"Duplicate unreleased section found '{heading_text}'",
        )
        return

    match = RELEASE_HEADER_REGEX.match(text)
    if not match:
        p.close(
            m,
            TreeKind.ERROR,
            message=(
                "Release header did not match the expected format "
                "'[<version>] - <yyyy>-<mm>-<dd>' or '[<version>] - <yyyy>-<mm>-<dd> [<tag>]' "
                f"but found '{heading_text}'"
            ),
        )
        return

    try:
        version = ReleaseVersion.parse(match.group("version"))
    except ParseVersionError as e:
        p.close(
            m,
            TreeKind.ERROR,
            message=f"Invalid release version '{e.value}' in release header '{heading_text}': {e.reason}",
        )
        return

    try:
        date = ReleaseDate.parse(match.group("release_date"))
    except ParseReleaseDateError as e:
        p.close(
            m,
            TreeKind.ERROR,
            message=f"Invalid release date '{e.value}' in release header '{heading_text}': {e.reason}",
        )
        return

    tag = None
    if match.group("tag") is not None:
        try:
            tag = ReleaseTag.parse(match.group("tag"))
        except ParseReleaseTagError as e:
            p.close(
                m,
                TreeKind.ERROR,
                message=f"Invalid release tag '{e.value}' in release header '{heading_text}': {e.reason}",
            )
            return

    p.close(
        m,
        TreeKind.RELEASE_HEADER,
        release_header=ReleaseHeaderInfo(version=version, date=date, tag=tag),
    )


def change_groups(p: Parser, section: str) -> None:
    while not p.eof() and not p.at(is_section_boundary):
        if p.at(heading(3)):
            change_group(p)
        else:
            p.advance_with_error(
                f"Unexpected content in {section} section '{p.preview()}', "
                "expected a change group heading such as '### Added'"
            )


def change_group(p: Parser) -> None:
    m = p.open()
    header_text = p.preview()
    change_group_header(p)
    p.expect(
        is_list,
        TreeKind.CHANGE_GROUP_LIST,
        f"Expected a list of changes for change group '{header_text}'",
    )
    while p.at(is_list):
        lm = p.open()
        p.advance()
        p.close(lm, TreeKind.CHANGE_GROUP_LIST)
    p.close(m, TreeKind.CHANGE_GROUP)


def change_group_header(p: Parser) -> None:
    node = p.current()
    assert node is not None
    m = p.open()
    p.advance()
    try:
        group = ChangeGroup.parse(node.markdown.plain_text)
    except ParseChangeGroupError as e:
        p.close(
            m,
            TreeKind.ERROR,
            message=f"Invalid change group '{render(node.markdown)}'. {e.reason}",
        )
        return
    p.close(m, TreeKind.CHANGE_GROUP_HEADER, change_group=group)


def release_link(p: Parser) -> None:
    node = p.current()
    assert node is not None
    identifier = (node.markdown.identifier or "").strip()
    url = node.markdown.url or ""

    m = p.open()
    p.advance()

    version = None
    if identifier.lower() != "unreleased":
        try:
            version = ReleaseVersion.parse(identifier)
        except ParseVersionError as e:
            p.close(
                m,
                TreeKind.ERROR,
                message=(
                    f"Invalid release link identifier '{identifier}', "
                    f"expected 'unreleased' or a release version: {e.reason}"
                ),
            )
            return

    try:
        link = ReleaseLink.parse(url)
    except ParseReleaseLinkError as e:
        p.close(
            m,
            TreeKind.ERROR,
            message=f"Invalid release link '{url}' for '{identifier}': {e.reason}",
        )
        return

    p.close(m, TreeKind.RELEASE_LINK, release_link=ReleaseLinkTarget(link=link, version=version))
