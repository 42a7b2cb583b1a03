"""Tests for keep_a_changelog.core.parser."""

import pytest

from keep_a_changelog.core.lexer import lex
from keep_a_changelog.core.markdown import DOCUMENT_START, Position
from keep_a_changelog.core.models import ChangeGroup, ReleaseTag, ReleaseVersion
from keep_a_changelog.core.parser import (
    FUEL,
    Dummy,
    Parser,
    ParserStuckError,
    Tree,
    TreeKind,
    heading,
    parse,
)
from tests.helpers import HEADER, VALID_CHANGELOG, changelog_with


def errors(tree):
    return [t.message for t in tree.walk() if t.kind == TreeKind.ERROR]


class TestTotality:
    """parse() never raises and always yields a ChangelogFile root."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "\n\n\n",
            "random text",
            "# Changelog",
            "## [1.0.0] - 2024-01-01\n",
            "### Added\n\n- orphan group\n",
            "- just\n- a list\n",
            "[1.0.0]: https://example.com\n",
            "```\ncode\n```\n" * 3,
            "## [Unreleased]\n" * 5,
            "\r\n".join(["# Changelog", "", "## Unreleased", "### Fixed", "- a"]),
        ],
    )
    def test_root_is_changelog_file(self, text):
        assert parse(text).kind == TreeKind.CHANGELOG_FILE

    def test_every_node_is_kept(self):
        text = "Intro\n\n## [1.0.0] - bad\n\n> quote\n\n- list\n\n[x]: y\n"
        tree = parse(text)
        nodes = [n for t in tree.walk() for n in t.markdown_nodes()]
        assert len(nodes) == len(lex(text))


class TestValidChangelog:
    def test_no_errors(self):
        assert errors(parse(VALID_CHANGELOG)) == []

    def test_top_level_structure(self):
        tree = parse(VALID_CHANGELOG)

        assert [t.kind for t in tree.subtrees()] == [
            TreeKind.TITLE,
            TreeKind.NOTABLE_CHANGES,
            TreeKind.ABOUT_FORMAT,
            TreeKind.UNRELEASED,
            TreeKind.RELEASE,
            TreeKind.RELEASE,
            TreeKind.RELEASE_LINK,
            TreeKind.RELEASE_LINK,
            TreeKind.RELEASE_LINK,
        ]

    def test_release_header_payload(self):
        tree = parse(VALID_CHANGELOG)
        headers = [t.release_header for t in tree.walk() if t.kind == TreeKind.RELEASE_HEADER]

        assert [str(h.version) for h in headers] == ["1.1.0", "1.0.0"]
        assert headers[0].tag is None
        assert headers[1].tag is ReleaseTag.YANKED

    def test_change_groups(self):
        tree = parse(VALID_CHANGELOG)
        release = next(tree.subtrees(TreeKind.RELEASE))
        groups = list(release.subtrees(TreeKind.CHANGE_GROUP))

        assert [next(g.subtrees(TreeKind.CHANGE_GROUP_HEADER)).change_group for g in groups] == [
            ChangeGroup.FIXED,
            ChangeGroup.CHANGED,
        ]
        assert [t.kind for t in groups[0].subtrees()] == [
            TreeKind.CHANGE_GROUP_HEADER,
            TreeKind.CHANGE_GROUP_LIST,
        ]

    def test_release_links(self):
        tree = parse(VALID_CHANGELOG)
        targets = [t.release_link for t in tree.subtrees(TreeKind.RELEASE_LINK)]

        assert targets[0].is_unreleased
        assert targets[1].version == ReleaseVersion("1.1.0")
        assert str(targets[2].link) == "https://github.com/o/r/releases/tag/v1.0.0"

    def test_several_lists_in_one_group(self):
        tree = parse(changelog_with("## [Unreleased]\n\n### Added\n\n- a\n\n* b\n"))
        group = next(next(tree.subtrees(TreeKind.UNRELEASED)).subtrees(TreeKind.CHANGE_GROUP))

        assert errors(tree) == []
        assert len(list(group.subtrees(TreeKind.CHANGE_GROUP_LIST))) == 2

    def test_linked_release_header(self):
        tree = parse(
            changelog_with("## [Unreleased]\n\n## [1.1.1](https://x.y/z) - 2023-03-05\n\n### Fixed\n\n- a\n")
        )

        assert errors(tree) == []
        header = next(t for t in tree.walk() if t.kind == TreeKind.RELEASE_HEADER).release_header
        assert header.version == ReleaseVersion("1.1.1")

    def test_byte_order_mark(self):
        assert errors(parse("\ufeff" + VALID_CHANGELOG)) == []


class TestLeadingSections:
    def test_empty_document_reports_missing_sections(self):
        tree = parse("")

        assert [t.kind for t in tree.subtrees()] == [
            TreeKind.ERROR,
            TreeKind.ERROR,
            TreeKind.ERROR,
            TreeKind.UNRELEASED,
        ]
        assert errors(tree) == [
            "Expected changelog title '# Changelog'",
            "Expected notable changes description "
            "'All notable changes to this project will be documented in this file.'",
            "Expected format description 'The format is based on "
            "[Keep a Changelog](https://keepachangelog.com/en/1.1.0/), and this project adheres to "
            "[Semantic Versioning](https://semver.org/spec/v2.0.0.html).'",
            "Expected unreleased section header '## [Unreleased]'",
        ]

    def test_missing_placeholders_at_document_start(self):
        tree = parse("")
        dummies = [c for t in tree.walk() for c in t.children if isinstance(c, Dummy)]

        assert len(dummies) == 4
        assert all(d.position == Position.at(DOCUMENT_START) for d in dummies)

    def test_wrong_title_is_consumed(self):
        tree = parse("# My Project\n\n" + HEADER.split("\n", 2)[2] + "\n\n## [Unreleased]\n")

        assert errors(tree) == ["Expected changelog title '# Changelog' but found '# My Project'"]
        (title_error,) = [t for t in tree.subtrees() if t.kind == TreeKind.ERROR]
        assert [n.text for n in title_error.markdown_nodes()] == ["My Project"]

    def test_missing_unreleased_is_placed_after_previous_node(self):
        text = changelog_with("## [1.0.0] - 2024-01-01\n\n### Added\n\n- a\n")
        tree = parse(text)

        assert errors(tree) == ["Expected unreleased section header '## [Unreleased]'"]
        unreleased = next(tree.subtrees(TreeKind.UNRELEASED))
        position = unreleased.position()
        assert position.start.line == 6
        assert position.start.offset == len(HEADER) + 1
        assert position.start.column == len(HEADER.splitlines()[-1]) + 2

    def test_other_paragraph_replaces_notable_changes(self):
        tree = parse("# Changelog\n\nOur own intro.\n")
        found = errors(tree)

        assert found[0] == (
            "Expected notable changes description "
            "'All notable changes to this project will be documented in this file.' "
            "but found 'Our own intro.'"
        )
        assert found[1].startswith("Expected format description")
        assert found[2] == "Expected unreleased section header '## [Unreleased]'"
        assert len(found) == 3

    def test_extra_paragraph_before_notable_changes(self):
        boilerplate = HEADER.split("\n", 2)[2]
        tree = parse(
            "# Changelog\n\nOur project changelog.\n\n"
            + boilerplate
            + "\n\n## [Unreleased]\n\n### Added\n\n- a\n"
        )

        assert errors(tree) == [
            "Expected notable changes description "
            "'All notable changes to this project will be documented in this file.' "
            "but found 'Our project changelog.'"
        ]
        assert [t.kind for t in tree.subtrees()] == [
            TreeKind.TITLE,
            TreeKind.ERROR,
            TreeKind.NOTABLE_CHANGES,
            TreeKind.ABOUT_FORMAT,
            TreeKind.UNRELEASED,
        ]
        unreleased = next(tree.subtrees(TreeKind.UNRELEASED))
        assert next(unreleased.subtrees(TreeKind.UNRELEASED_HEADER))
        assert len(list(unreleased.subtrees(TreeKind.CHANGE_GROUP))) == 1

    def test_stray_blocks_before_unreleased_header(self):
        tree = parse(changelog_with("Some notes.\n\n- a stray list\n\n## [Unreleased]\n\n### Fixed\n\n- a\n"))

        assert errors(tree) == [
            "Expected unreleased section header '## [Unreleased]' but found 'Some notes.'",
            "Expected unreleased section header '## [Unreleased]' but found '- a stray list'",
        ]
        assert not list(tree.subtrees(TreeKind.RELEASE))
        unreleased = next(tree.subtrees(TreeKind.UNRELEASED))
        assert next(unreleased.subtrees(TreeKind.UNRELEASED_HEADER))

    def test_later_section_is_not_taken_as_malformed(self):
        boilerplate = HEADER.split("\n", 2)[2]
        about = boilerplate.split("\n\n", 1)[1]
        tree = parse("# Changelog\n\n" + about + "\n\n## [Unreleased]\n")

        assert [t.kind for t in tree.subtrees()] == [
            TreeKind.TITLE,
            TreeKind.ERROR,
            TreeKind.ABOUT_FORMAT,
            TreeKind.UNRELEASED,
        ]
        assert errors(tree) == [
            "Expected notable changes description "
            "'All notable changes to this project will be documented in this file.'"
        ]

    def test_stray_paragraph_before_title(self):
        tree = parse("Draft\n\n" + VALID_CHANGELOG)

        assert errors(tree) == ["Expected changelog title '# Changelog' but found 'Draft'"]
        assert next(tree.subtrees(TreeKind.TITLE))


class TestSectionErrors:
    def test_duplicate_unreleased(self):
        tree = parse(changelog_with("## [Unreleased]\n\n## Unreleased\n"))

        assert errors(tree) == ["Duplicate unreleased section found '## Unreleased'"]

    def test_release_header_format(self):
        tree = parse(changelog_with("## [Unreleased]\n\n## Version 1.0\n\n### Added\n\n- a\n"))

        (message,) = errors(tree)
        assert message.startswith("Release header did not match the expected format")
        assert message.endswith("but found '## Version 1.0'")

    def test_invalid_release_version(self):
        tree = parse(changelog_with("## [Unreleased]\n\n## [a.b.c] - 2000-01-01\n\n### Fixed\n\n- a\n"))

        (message,) = errors(tree)
        assert message.startswith(
            "Invalid release version 'a.b.c' in release header '## [a.b.c] - 2000-01-01'"
        )
        release = next(tree.subtrees(TreeKind.RELEASE))
        group = next(release.subtrees(TreeKind.CHANGE_GROUP))
        assert next(group.subtrees(TreeKind.CHANGE_GROUP_HEADER)).change_group is ChangeGroup.FIXED

    def test_invalid_release_date(self):
        tree = parse(changelog_with("## [Unreleased]\n\n## [1.0.0] - 2024-13-01\n\n### Fixed\n\n- a\n"))

        (message,) = errors(tree)
        assert message.startswith("Invalid release date '2024-13-01'")

    def test_invalid_release_tag(self):
        tree = parse(
            changelog_with("## [Unreleased]\n\n## [1.0.0] - 2024-01-01 [BROKEN]\n\n### Fixed\n\n- a\n")
        )

        (message,) = errors(tree)
        assert message.startswith("Invalid release tag 'BROKEN'")

    def test_invalid_change_group(self):
        tree = parse(changelog_with("## [Unreleased]\n\n### Improved\n\n- a\n"))

        (message,) = errors(tree)
        assert message.startswith("Invalid change group '### Improved'. Expected one of:")

    def test_change_group_without_list(self):
        tree = parse(changelog_with("## [Unreleased]\n\n### Fixed\n\n### Added\n\n- a\n"))

        assert errors(tree) == ["Expected a list of changes for change group '### Fixed'"]

    def test_unexpected_content_in_section(self):
        tree = parse(changelog_with("## [Unreleased]\n\nSome paragraph\n\n### Added\n\n- a\n"))

        assert errors(tree) == [
            "Unexpected content in unreleased section 'Some paragraph', "
            "expected a change group heading such as '### Added'"
        ]

    def test_unexpected_content_after_links(self):
        tree = parse(changelog_with("## [Unreleased]\n\n[unreleased]: https://example.com\n\nTrailing\n"))

        assert errors(tree) == ["Expected a release or release link but found 'Trailing'"]

    def test_invalid_link_identifier(self):
        tree = parse(changelog_with("## [Unreleased]\n\n[next]: https://example.com\n"))

        (message,) = errors(tree)
        assert message.startswith("Invalid release link identifier 'next'")

    def test_invalid_link(self):
        tree = parse(changelog_with("## [Unreleased]\n\n[unreleased]: not-a-uri\n"))

        (message,) = errors(tree)
        assert message.startswith("Invalid release link 'not-a-uri' for 'unreleased'")

    def test_long_preview_is_truncated(self):
        paragraph = "x" * 120
        tree = parse(changelog_with(f"## [Unreleased]\n\n{paragraph}\n"))

        (message,) = errors(tree)
        assert f"'{'x' * 80}...'" in message


class TestParserMachinery:
    def test_fuel_runs_out_without_progress(self):
        parser = Parser(lex("# Changelog\n"), len("# Changelog\n"))
        for _ in range(FUEL):
            parser.at(heading(1))

        with pytest.raises(ParserStuckError):
            parser.at(heading(1))

    def test_advance_restores_fuel(self):
        parser = Parser(lex("# A\n\n# B\n"), 9)
        for _ in range(FUEL):
            parser.at(heading(1))
        parser.advance()

        assert parser.at(heading(1))

    def test_advance_past_end(self):
        parser = Parser([], 0)
        with pytest.raises(ParserStuckError):
            parser.advance()

    def test_expect_records_missing_without_consuming(self):
        parser = Parser(lex("Some text\n"), 10)
        root = parser.open()
        assert not parser.expect(heading(1), TreeKind.TITLE, "Expected a title")
        parser.advance()
        parser.close(root, TreeKind.CHANGELOG_FILE)

        error, = parser.build_tree().subtrees()
        assert error.kind == TreeKind.ERROR
        assert error.message == "Expected a title"
        assert isinstance(error.children[0], Dummy)

    def test_expect_consumes_malformed_node(self):
        parser = Parser(lex("# Other\n"), 8)
        root = parser.open()
        parser.expect(lambda node: False, TreeKind.TITLE, "Expected a title", malformed=heading(1))
        parser.close(root, TreeKind.CHANGELOG_FILE)

        error, = parser.build_tree().subtrees()
        assert error.message == "Expected a title but found '# Other'"
        assert parser.eof()

    def test_retroactive_kind(self):
        parser = Parser(lex("# Changelog\n"), 12)
        root = parser.open()
        mark = parser.open()
        parser.advance()
        parser.close(mark, TreeKind.TITLE)
        parser.close(root, TreeKind.CHANGELOG_FILE)

        tree = parser.build_tree()
        assert tree.kind == TreeKind.CHANGELOG_FILE
        assert [t.kind for t in tree.subtrees()] == [TreeKind.TITLE]


class TestTree:
    def test_position_of_empty_tree(self):
        assert Tree(kind=TreeKind.ERROR).position() == Position.at(DOCUMENT_START)

    def test_position_spans_descendants(self):
        tree = parse(VALID_CHANGELOG)
        release = next(tree.subtrees(TreeKind.RELEASE))
        position = release.position()

        assert position.start.line == VALID_CHANGELOG.splitlines().index("## [1.1.0] - 2024-02-01") + 1
        assert VALID_CHANGELOG[position.end.offset - len("- Something") : position.end.offset] == "- Something"

    def test_pretty(self):
        output = parse("").pretty()

        assert output.splitlines()[0] == "ChangelogFile"
        assert "Missing @ 1:1" in output
        assert output.endswith("\n")
