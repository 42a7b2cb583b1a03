"""
keep_a_changelog.commands.promote - Turn unreleased changes into a release.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from keep_a_changelog.commands.validate import changelog_path, load_configuration
from keep_a_changelog.core.changelog import (
    Changelog,
    ParseChangelogError,
    PromoteOptions,
    PromoteUnreleasedError,
)
from keep_a_changelog.core.models import (
    ParseValueError,
    ReleaseDate,
    ReleaseLink,
    ReleaseTag,
    ReleaseVersion,
)


def run(args: argparse.Namespace) -> int:
    """
    Run the promote command.

    Returns:
        Exit code (0 on success, 1 if the changelog or arguments are invalid)
    """
    config = load_configuration(args)
    if config is None:
        return 1
    path = changelog_path(args, config)

    try:
        options = build_options(
            version=args.version,
            date=args.date,
            tag=args.tag,
            link=args.link,
            link_template=config["promote"]["link_template"],
        )
    except ParseValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    changelog = read_changelog(path)
    if changelog is None:
        return 1

    try:
        changelog.promote_unreleased(options)
    except PromoteUnreleasedError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    path.write_text(changelog.to_text(), encoding="utf-8")
    if not args.quiet:
        release = next(iter(changelog.releases))
        print(f"Promoted unreleased changes to {release.version} - {release.date} in {path}")
    return 0


def build_options(
    version: str,
    date: Optional[str] = None,
    tag: Optional[str] = None,
    link: Optional[str] = None,
    link_template: str = "",
) -> PromoteOptions:
    """
    Validate command line values into PromoteOptions.

    If no link is given and ``link_template`` is set, the link is the
    template with ``{version}`` replaced by the new version.

    Raises:
        ParseValueError: If any value is invalid
    """
    release_version = ReleaseVersion.parse(version)
    if link is None and link_template:
        link = link_template.replace("{version}", str(release_version))
    return PromoteOptions(
        version=release_version,
        date=ReleaseDate.parse(date) if date else None,
        tag=ReleaseTag.parse(tag) if tag else None,
        link=ReleaseLink.parse(link) if link else None,
    )


def read_changelog(path: Path) -> Optional[Changelog]:
    """Load a changelog, printing its problems to stderr if it is invalid."""
    try:
        text = path.read_text(encoding="utf-8-sig")
    except OSError as e:
        print(f"Error: Cannot read {path}: {e}", file=sys.stderr)
        return None

    try:
        return Changelog.from_text(text)
    except ParseChangelogError as e:
        print(f"Error: {path} is not a valid changelog:", file=sys.stderr)
        for diagnostic in e.diagnostics:
            print(f"  {path}:{diagnostic}", file=sys.stderr)
        return None
