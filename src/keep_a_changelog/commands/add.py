"""
keep_a_changelog.commands.add - Add an unreleased change.
"""

import argparse
import sys

from keep_a_changelog.commands.promote import read_changelog
from keep_a_changelog.commands.validate import changelog_path, load_configuration
from keep_a_changelog.core.models import ChangeGroup, ParseChangeGroupError


def run(args: argparse.Namespace) -> int:
    """Append ``args.item`` to the ``args.group`` list of the unreleased section."""
    config = load_configuration(args)
    if config is None:
        return 1
    path = changelog_path(args, config)

    try:
        group = ChangeGroup.parse(args.group)
    except ParseChangeGroupError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    item = " ".join(args.item.split())
    if not item:
        print("Error: Change description is empty", file=sys.stderr)
        return 1

    changelog = read_changelog(path)
    if changelog is None:
        return 1

    changelog.unreleased.add(group, item)
    path.write_text(changelog.to_text(), encoding="utf-8")
    if not args.quiet:
        print(f"Added to {group} in {path}: {item}")
    return 0
