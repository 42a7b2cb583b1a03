"""
keep_a_changelog.cli - Command-line interface.

Main entry point for the keep-a-changelog CLI tool.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from keep_a_changelog import __version__
from keep_a_changelog.commands import add, completion, promote, tree, validate
from keep_a_changelog.core.models import ChangeGroup, ReleaseTag
from keep_a_changelog.validation import FORMATS


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="keep-a-changelog",
        description="Parse, validate and edit changelogs in Keep a Changelog format",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  keep-a-changelog validate                       # Validate configured changelog files
  keep-a-changelog validate 'packages/*/CHANGELOG.md'
  keep-a-changelog validate --format github       # Annotations for GitHub Actions
  keep-a-changelog add fixed "Crash on empty input"
  keep-a-changelog promote 1.2.0                  # Release unreleased changes
  keep-a-changelog tree                           # Show how the file was parsed

Configuration:
  .keep-a-changelog.toml in the current directory or any parent

For detailed command help: keep-a-changelog <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"keep-a-changelog {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Report every problem in changelog files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  keep-a-changelog validate                       # Files from [changelog] files
  keep-a-changelog validate CHANGELOG.md docs/CHANGELOG.md
  keep-a-changelog validate '**/CHANGELOG.md' -j 8
  keep-a-changelog validate --format json         # Output JSON for tooling
""",
    )
    validate_parser.add_argument(
        "paths",
        nargs="*",
        help="Changelog files or glob patterns (default: from config)",
        metavar="PATH",
    )
    validate_parser.add_argument(
        "--format",
        choices=FORMATS,
        help="Output format (default: from config, else text)",
    )
    validate_parser.add_argument(
        "-j",
        "--jobs",
        type=_positive_int,
        help="Number of files to check in parallel (default: from config, else 4)",
        metavar="N",
    )

    # promote command
    promote_parser = subparsers.add_parser(
        "promote",
        help="Move unreleased changes into a new release",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  keep-a-changelog promote 1.2.0
  keep-a-changelog promote 1.2.0 --date 2024-05-01
  keep-a-changelog promote 2.0.0 --link https://github.com/o/r/releases/tag/v2.0.0

With [promote] link_template = "https://github.com/o/r/releases/tag/v{version}"
the link is filled in automatically.
""",
    )
    promote_parser.add_argument("version", help="Version of the new release", metavar="VERSION")
    promote_parser.add_argument("--date", help="Release date YYYY-MM-DD (default: today, UTC)")
    promote_parser.add_argument(
        "--tag",
        choices=[tag.value for tag in ReleaseTag],
        type=str.upper,
        help="Release tag",
    )
    promote_parser.add_argument("--link", help="Link to the release")
    promote_parser.add_argument("--file", type=Path, help="Changelog file", metavar="PATH")

    # add command
    add_parser = subparsers.add_parser(
        "add",
        help="Add a change to the unreleased section",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Change groups: {}
""".format(", ".join(group.value for group in ChangeGroup)),
    )
    add_parser.add_argument("group", help="Change group (case-insensitive)", metavar="GROUP")
    add_parser.add_argument("item", help="Description of the change", metavar="ITEM")
    add_parser.add_argument("--file", type=Path, help="Changelog file", metavar="PATH")

    # tree command
    tree_parser = subparsers.add_parser(
        "tree",
        help="Print the syntax tree of a changelog (debugging)",
    )
    tree_parser.add_argument("--file", type=Path, help="Changelog file", metavar="PATH")

    # completion command
    completion_parser = subparsers.add_parser(
        "completion",
        help="Shell tab-completion setup",
    )
    completion_parser.add_argument(
        "--shell",
        choices=sorted(completion.SHELLS),
        help="Target shell (default: detected from $SHELL)",
    )
    completion_group = completion_parser.add_mutually_exclusive_group()
    completion_group.add_argument(
        "--install",
        action="store_true",
        help="Add the completion hook to your shell rc file",
    )
    completion_group.add_argument(
        "--uninstall",
        action="store_true",
        help="Remove the completion hook from your shell rc file",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Shell tab-completion when the optional argcomplete extra is installed
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "validate": validate.run,
        "promote": promote.run,
        "add": add.run,
        "tree": tree.run,
        "completion": completion.run,
    }

    try:
        return commands[args.command](args)
    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except Exception as e:
        if args.verbose:
            raise
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
