"""
keep_a_changelog.commands.tree - Print the syntax tree of a changelog.

Useful to see how the parser understood a document, including the error
nodes it inserted. Works on invalid changelogs too.
"""

import argparse
import sys

from keep_a_changelog.commands.validate import changelog_path, load_configuration
from keep_a_changelog.core.diagnostics import get_diagnostics
from keep_a_changelog.core.parser import parse


def run(args: argparse.Namespace) -> int:
    config = load_configuration(args)
    if config is None:
        return 1
    path = changelog_path(args, config)

    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
        return 1

    tree = parse(text)
    print(tree.pretty(), end="")

    if args.verbose:
        diagnostics = get_diagnostics(tree)
        print()
        print(f"{len(diagnostics)} diagnostic(s)")
        for diagnostic in diagnostics:
            print(f"  {diagnostic}")
    return 0
