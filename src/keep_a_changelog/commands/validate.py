"""
keep_a_changelog.commands.validate - Validate changelog files command.

Reports every diagnostic in every changelog file.
"""

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from keep_a_changelog.config import ConfigError, default_config, find_config_file, load_config
from keep_a_changelog.validation import format_results, resolve_paths, validate_files


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 if all files are valid, 1 otherwise)
    """
    config = load_configuration(args)
    if config is None:
        return 1

    patterns: List[str] = args.paths or config["changelog"]["files"]
    output_format = args.format or config["validate"]["format"]
    jobs = args.jobs or config["validate"]["jobs"]

    base = Path.cwd()
    paths = resolve_paths(patterns, base)
    if not paths:
        print(f"Error: No changelog files matched: {', '.join(patterns)}", file=sys.stderr)
        return 1

    if args.verbose and output_format == "text":
        print(f"Validating {len(paths)} file(s) with {jobs} worker(s)")

    results = validate_files(paths, jobs=jobs)
    failed = [r for r in results if not r.ok]

    report = format_results(results, output_format, base)
    if report or output_format == "json":
        print(report)

    if output_format == "text" and not args.quiet:
        problems = sum(len(r.diagnostics) for r in results) + sum(1 for r in results if r.error)
        if report:
            print()
        print("─" * 60)
        print(f"✓ {len(results) - len(failed)}/{len(results)} changelog files valid")
        if problems:
            print(f"❌ {problems} errors")

    return 1 if failed else 0


def load_configuration(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    """Load configuration from file or use defaults."""
    if args.config:
        config_path = args.config
    else:
        config_path = find_config_file(Path.cwd())

    if args.config and not config_path.exists():
        print(f"Error: Config file not found: {config_path}", file=sys.stderr)
        return None

    try:
        if config_path and config_path.exists():
            return load_config(config_path)
        return default_config()
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None


def changelog_path(args: argparse.Namespace, config: Dict[str, Any]) -> Path:
    """The file a single-file command works on: ``--file`` or the first configured file."""
    if getattr(args, "file", None):
        return args.file
    files = config["changelog"]["files"]
    return Path(files[0]) if files else Path("CHANGELOG.md")
