"""Changelog texts shared by the tests."""

HEADER = """\
# Changelog

All notable changes to this project will be documented in this file.

The format is based on [Keep a Changelog](https://keepachangelog.com/en/1.1.0/),
and this project adheres to [Semantic Versioning](https://semver.org/spec/v2.0.0.html)."""

# Written exactly the way Changelog.to_text() serializes it
VALID_CHANGELOG = (
    HEADER
    + """

## [Unreleased]

### Added

- New thing

## [1.1.0] - 2024-02-01

### Fixed

- Bug one
- Bug two

### Changed

- Something

## [1.0.0] - 2024-01-01 [YANKED]

### Added

- Initial release

[unreleased]: https://github.com/o/r/compare/v1.1.0...HEAD
[1.1.0]: https://github.com/o/r/compare/v1.0.0...v1.1.0
[1.0.0]: https://github.com/o/r/releases/tag/v1.0.0
"""
)


def changelog_with(body: str) -> str:
    """The standard header followed by ``body``."""
    return HEADER + "\n\n" + body


def line_of(text: str, line: str) -> int:
    """1-based number of the first line equal to ``line``."""
    return text.splitlines().index(line) + 1
