"""
keep_a_changelog.core.markdown - Block-level markdown tree with source positions.

Thin adapter over markdown-it-py. The changelog grammar only looks at the
top-level blocks of a document (headings, paragraphs, lists and link
reference definitions), so this module flattens the markdown-it syntax tree
into a list of ``MarkdownNode`` values, each carrying the exact source slice
it was parsed from and a line/column/offset span.

Offsets are UTF-8 byte offsets into the document after any leading byte order
mark; columns count characters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode

# markdown-it splits lines on exactly these sequences
_NEWLINE = re.compile(r"\r\n?|\n")
_DEFINITION_LABEL = re.compile(r"^\s*\[(?P<label>(?:[^\]\\]|\\.)*)\]:")
_BULLET_MARKER = re.compile(r"^[-*+]\s+")

_LIST_TYPES = {"bullet_list", "ordered_list"}

BYTE_ORDER_MARK = "\ufeff"


@dataclass(frozen=True, order=True)
class Point:
    """A single location in a document.

    Attributes:
        line: 1-based line number
        column: 1-based column number
        offset: 0-based UTF-8 byte offset into the document
    """

    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Position:
    """A start/end span; ``end`` points just past the last character."""

    start: Point
    end: Point

    @classmethod
    def at(cls, point: Point) -> "Position":
        """Zero-width position at ``point``."""
        return cls(start=point, end=point)

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


DOCUMENT_START = Point(line=1, column=1, offset=0)


@dataclass
class MarkdownNode:
    """A block-level markdown node.

    Attributes:
        type: Block type ("heading", "paragraph", "list", "list_item",
            "definition", or the markdown-it name of any other block)
        position: Span of the node in the source document
        source: Exact source text covered by ``position``
        text: Inline markdown source for headings and paragraphs
        plain_text: Inline content with markup such as link syntax removed
        depth: Heading level (1-6) for headings
        items: List items for lists
        identifier: Raw label of a link reference definition
        url: Destination of a link reference definition
    """

    type: str
    position: Position
    source: str
    text: str = ""
    plain_text: str = ""
    depth: int | None = None
    items: list[MarkdownNode] = field(default_factory=list)
    identifier: str | None = None
    url: str | None = None

    def is_heading(self, depth: int | None = None) -> bool:
        """Check if this is a heading, optionally of a given depth."""
        return self.type == "heading" and (depth is None or self.depth == depth)

    @property
    def item_text(self) -> str:
        """List item content without its bullet marker."""
        return _BULLET_MARKER.sub("", self.source, count=1).rstrip()


class _SourceLines:
    """Line table used to turn markdown-it line maps into positions."""

    def __init__(self, text: str):
        self.text = text
        self.lines: list[str] = []
        self.starts: list[int] = [0]
        self.byte_starts: list[int] = [0]
        pos = 0
        for match in _NEWLINE.finditer(text):
            self.lines.append(text[pos : match.start()])
            self.byte_starts.append(self.byte_starts[-1] + _utf8_length(text[pos : match.end()]))
            pos = match.end()
            self.starts.append(pos)
        self.lines.append(text[pos:])

    def span(self, line_map: list[int] | None) -> Position:
        """Convert a markdown-it ``[start, end)`` line map into a Position.

        The span starts at the first non-blank character of the first line and
        ends after the last non-blank character of the last non-blank line.
        """
        if not line_map:
            return Position.at(DOCUMENT_START)

        first = min(line_map[0], len(self.lines) - 1)
        last = min(max(line_map[1] - 1, first), len(self.lines) - 1)
        while last > first and not self.lines[last].strip():
            last -= 1

        first_line = self.lines[first]
        start_column = len(first_line) - len(first_line.lstrip()) + 1
        end_column = len(self.lines[last].rstrip()) + 1
        if last == first:
            end_column = max(end_column, start_column)

        return Position(
            start=self.point(first, start_column),
            end=self.point(last, end_column),
        )

    def point(self, index: int, column: int) -> Point:
        prefix = self.lines[index][: column - 1]
        return Point(index + 1, column, self.byte_starts[index] + _utf8_length(prefix))

    def slice(self, position: Position) -> str:
        return self.text[self._index(position.start) : self._index(position.end)]

    def _index(self, point: Point) -> int:
        return self.starts[point.line - 1] + point.column - 1


def _utf8_length(text: str) -> int:
    return len(text.encode("utf-8"))


@lru_cache(maxsize=1)
def _markdown_parser() -> MarkdownIt:
    # inline_definitions keeps link reference definitions in the token stream
    return MarkdownIt("commonmark", options_update={"inline_definitions": True})


def parse_markdown(text: str) -> list[MarkdownNode]:
    """Parse a document into its top-level block nodes.

    Args:
        text: Markdown document

    Returns:
        Top-level blocks in document order
    """
    text = strip_byte_order_mark(text)
    source = _SourceLines(text)
    root = SyntaxTreeNode(_markdown_parser().parse(text))
    return [_convert(node, source) for node in root.children]


def strip_byte_order_mark(text: str) -> str:
    """Drop a leading byte order mark, as left by some editors."""
    return text[1:] if text.startswith(BYTE_ORDER_MARK) else text


def _inline(node: SyntaxTreeNode) -> SyntaxTreeNode | None:
    for child in node.children:
        if child.type == "inline":
            return child
    return None


def _inline_text(node: SyntaxTreeNode) -> str:
    inline = _inline(node)
    return inline.content if inline else ""


def _plain_text(node: SyntaxTreeNode | None) -> str:
    if node is None:
        return ""
    parts = []
    for child in node.children:
        if child.type in ("text", "code_inline", "html_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
        else:
            parts.append(_plain_text(child))
    return "".join(parts)


def _convert(node: SyntaxTreeNode, source: _SourceLines) -> MarkdownNode:
    position = source.span(node.map)
    raw = source.slice(position)

    if node.type == "heading":
        return MarkdownNode(
            type="heading",
            position=position,
            source=raw,
            text=_inline_text(node),
            plain_text=_plain_text(_inline(node)),
            depth=int(node.tag[1:]),
        )

    if node.type == "paragraph":
        return MarkdownNode(
            type="paragraph",
            position=position,
            source=raw,
            text=_inline_text(node),
            plain_text=_plain_text(_inline(node)),
        )

    if node.type in _LIST_TYPES:
        items = []
        for child in node.children:
            item_position = source.span(child.map)
            items.append(
                MarkdownNode(
                    type="list_item",
                    position=item_position,
                    source=source.slice(item_position),
                )
            )
        return MarkdownNode(type="list", position=position, source=raw, items=items)

    if node.type == "definition":
        meta = node.meta or {}
        match = _DEFINITION_LABEL.match(raw)
        identifier = match.group("label") if match else meta.get("label", meta.get("id", ""))
        return MarkdownNode(
            type="definition",
            position=position,
            source=raw,
            identifier=identifier,
            url=meta.get("url", ""),
        )

    return MarkdownNode(type=node.type, position=position, source=raw)


def render(node: MarkdownNode) -> str:
    """Render a node back to its markdown source text."""
    return node.source.strip()
