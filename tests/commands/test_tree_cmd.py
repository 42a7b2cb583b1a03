"""Tests for the tree command."""

from keep_a_changelog.cli import main


class TestTreeCommand:
    def test_prints_tree(self, changelog_file, isolated_env, capsys):
        assert main(["tree", "--file", str(changelog_file)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "ChangelogFile"
        assert "    ReleaseHeader(1.0.0, 2024-01-01, YANKED)" in lines
        assert "  ReleaseLink(unreleased, https://github.com/o/r/compare/v1.1.0...HEAD)" in lines

    def test_invalid_changelog_with_diagnostics(self, isolated_env, capsys):
        (isolated_env / "CHANGELOG.md").write_text("")

        assert main(["-v", "tree"]) == 0
        out = capsys.readouterr().out
        assert "Missing @ 1:1" in out
        assert "4 diagnostic(s)" in out
