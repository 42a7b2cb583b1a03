"""
keep_a_changelog.commands.completion - Shell tab-completion setup.

Prints, installs or removes the argcomplete hook for the user's shell.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

PROG = "keep-a-changelog"
MARKER = f"# {PROG} shell completion"


@dataclass(frozen=True)
class ShellSetup:
    """Where a shell keeps its startup file and the line that enables completion."""

    rc_path: tuple[str, ...]
    hook: str

    @property
    def rc_file(self) -> Path:
        return Path.home().joinpath(*self.rc_path)

    @property
    def snippet(self) -> str:
        return f"{MARKER}\n{self.hook}\n"


SHELLS: dict[str, ShellSetup] = {
    "bash": ShellSetup((".bashrc",), f'eval "$(register-python-argcomplete {PROG})"'),
    "zsh": ShellSetup((".zshrc",), f'eval "$(register-python-argcomplete {PROG})"'),
    "fish": ShellSetup(
        (".config", "fish", "config.fish"),
        f"register-python-argcomplete --shell fish {PROG} | source",
    ),
    "tcsh": ShellSetup((".tcshrc",), f"eval `register-python-argcomplete --shell tcsh {PROG}`"),
}


def detect_shell() -> str:
    """Shell name from ``$SHELL``; bash when unknown."""
    name = Path(os.environ.get("SHELL", "")).name
    return name if name in SHELLS else "bash"


def argcomplete_available() -> bool:
    try:
        import argcomplete  # noqa: F401
    except ImportError:
        return False
    return True


def run(args) -> int:
    """Handle ``keep-a-changelog completion``."""
    if not argcomplete_available():
        print("Error: argcomplete is not installed.", file=sys.stderr)
        print(f"Install with: pip install {PROG}[completion]", file=sys.stderr)
        return 1

    shell = args.shell or detect_shell()
    setup = SHELLS[shell]

    if args.uninstall:
        return uninstall(setup)
    if args.install:
        return install(setup)

    print(f"Shell completion for {shell}:")
    print()
    print(f"Add the following to {setup.rc_file}:")
    print()
    print(f"  {setup.hook}")
    print()
    print(f"Or install it with: {PROG} completion --install --shell {shell}")
    return 0


def install(setup: ShellSetup) -> int:
    rc_file = setup.rc_file
    if rc_file.exists() and MARKER in rc_file.read_text():
        print(f"Completion already installed in {rc_file}")
        return 0
    try:
        rc_file.parent.mkdir(parents=True, exist_ok=True)
        with open(rc_file, "a") as f:
            f.write("\n" + setup.snippet)
    except OSError as e:
        print(f"Error writing to {rc_file}: {e}", file=sys.stderr)
        return 1
    print(f"Installed completion in {rc_file}")
    print(f"Restart your shell or run: source {rc_file}")
    return 0


def uninstall(setup: ShellSetup) -> int:
    """Remove the marker line and the hook line that follows it."""
    rc_file = setup.rc_file
    if not rc_file.exists() or MARKER not in rc_file.read_text():
        print(f"No {PROG} completion found in {rc_file}")
        return 0

    kept = []
    lines = iter(rc_file.read_text().splitlines(keepends=True))
    for line in lines:
        if MARKER in line:
            next(lines, None)
            continue
        kept.append(line)

    try:
        rc_file.write_text("".join(kept))
    except OSError as e:
        print(f"Error writing to {rc_file}: {e}", file=sys.stderr)
        return 1
    print(f"Removed completion from {rc_file}")
    return 0
