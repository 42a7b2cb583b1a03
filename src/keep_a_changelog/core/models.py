"""
keep_a_changelog.core.models - Core data models for changelogs.

Provides validated value types (versions, dates, tags, links, change groups)
and the containers that make up a changelog: Changes, Release, Releases and
Unreleased.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

import semver
from rfc3986 import exceptions as uri_exceptions
from rfc3986 import uri_reference
from rfc3986.validators import Validator

_DATE_FORMAT = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ParseValueError(ValueError):
    """
    Base class for values that cannot be parsed.

    Attributes:
        value: The offending input
        reason: Why it was rejected
    """

    template = "Could not parse '{value}'.\nReason: {reason}"

    def __init__(self, value: str, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(self.template.format(value=value, reason=reason))


class ParseVersionError(ParseValueError):
    template = "Could not parse version '{value}' as semver.\nReason: {reason}"


class ParseReleaseDateError(ParseValueError):
    template = "Could not parse release date '{value}' as YYYY-MM-DD.\nReason: {reason}"


class ParseReleaseTagError(ParseValueError):
    template = "Could not parse release tag '{value}'.\nReason: {reason}"


class ParseReleaseLinkError(ParseValueError):
    template = "Could not parse release link '{value}' as a URI.\nReason: {reason}"


class ParseChangeGroupError(ParseValueError):
    template = "Could not parse change group '{value}'.\nReason: {reason}"


class ChangeGroup(Enum):
    """Changes in a release are grouped into one of several types."""

    ADDED = "Added"  # new features
    CHANGED = "Changed"  # changes in existing functionality
    DEPRECATED = "Deprecated"  # soon-to-be removed features
    FIXED = "Fixed"  # bug fixes
    REMOVED = "Removed"  # now removed features
    SECURITY = "Security"  # vulnerabilities

    @classmethod
    def parse(cls, value: str) -> "ChangeGroup":
        """Parse a change group name (case-insensitive)."""
        candidate = value.strip().lower()
        for group in cls:
            if group.value.lower() == candidate:
                return group
        expected = ", ".join(group.value for group in cls)
        raise ParseChangeGroupError(value, f"Expected one of: {expected}")

    def __str__(self) -> str:
        return self.value


class ReleaseTag(Enum):
    """
    Marks a release as yanked, or as a version bump without changes
    (common in projects releasing a fixed set of artifacts together).
    """

    YANKED = "YANKED"
    NO_CHANGES = "NO CHANGES"

    @classmethod
    def parse(cls, value: str) -> "ReleaseTag":
        """Parse a release tag (case-insensitive)."""
        candidate = " ".join(value.split()).upper()
        for tag in cls:
            if tag.value == candidate:
                return tag
        expected = ", ".join(tag.value for tag in cls)
        raise ParseReleaseTagError(value, f"Expected one of: {expected}")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReleaseVersion:
    """The version of a release in Semantic Versioning format."""

    value: str

    @classmethod
    def parse(cls, value: str) -> "ReleaseVersion":
        try:
            semver.Version.parse(value)
        except (ValueError, TypeError) as e:
            raise ParseVersionError(value, str(e)) from e
        return cls(value)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReleaseDate:
    """Release dates are ISO 8601 calendar dates (YYYY-MM-DD)."""

    value: str

    @classmethod
    def parse(cls, value: str) -> "ReleaseDate":
        if not _DATE_FORMAT.match(value):
            raise ParseReleaseDateError(value, "Expected format YYYY-MM-DD")
        try:
            datetime.strptime(value, "%Y-%m-%d")
        except ValueError as e:
            raise ParseReleaseDateError(value, str(e)) from e
        return cls(value)

    @classmethod
    def today(cls) -> "ReleaseDate":
        """Release date for the current day (UTC)."""
        return cls(datetime.now(timezone.utc).strftime("%Y-%m-%d"))

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReleaseLink:
    """URI pointing at the set of changes in a release."""

    value: str

    _validator = (
        Validator()
        .require_presence_of("scheme")
        .check_validity_of("scheme", "userinfo", "host", "port", "path", "query", "fragment")
    )

    @classmethod
    def parse(cls, value: str) -> "ReleaseLink":
        if not value or any(c.isspace() for c in value):
            raise ParseReleaseLinkError(value, "URI must be non-empty and contain no whitespace")
        try:
            cls._validator.validate(uri_reference(value))
        except uri_exceptions.RFC3986Exception as e:
            raise ParseReleaseLinkError(value, str(e) or type(e).__name__) from e
        return cls(value)

    def __str__(self) -> str:
        return self.value


class Changes:
    """
    The changes that went into a release, grouped by change type.

    Groups keep the order in which they were first added.
    """

    def __init__(self, groups: Optional[Dict[ChangeGroup, List[str]]] = None):
        self._groups: Dict[ChangeGroup, List[str]] = {}
        for group, items in (groups or {}).items():
            self._groups[group] = list(items)

    def add(self, group: ChangeGroup, item: str) -> None:
        self._groups.setdefault(group, []).append(item)

    def extend(self, group: ChangeGroup, items: List[str]) -> None:
        self._groups.setdefault(group, []).extend(items)

    def get(self, group: ChangeGroup) -> List[str]:
        return self._groups.get(group, [])

    def is_empty(self) -> bool:
        """True if no group holds any item."""
        return all(not items for items in self._groups.values())

    def items(self) -> Iterator[Tuple[ChangeGroup, List[str]]]:
        return iter(self._groups.items())

    def __iter__(self) -> Iterator[ChangeGroup]:
        return iter(self._groups)

    def __contains__(self, group: object) -> bool:
        return group in self._groups

    def __len__(self) -> int:
        return len(self._groups)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Changes):
            return NotImplemented
        return list(self._groups.items()) == list(other._groups.items())

    def __repr__(self) -> str:
        return f"Changes({self._groups!r})"


@dataclass
class Release:
    """
    A versioned, dated entry in the changelog.

    Attributes:
        version: Semantic version of the release
        date: Date the release was created
        tag: Optional YANKED / NO CHANGES marker
        link: Optional link to the release
        changes: Changes grouped by change type
    """

    version: ReleaseVersion
    date: ReleaseDate
    tag: Optional[ReleaseTag] = None
    link: Optional[ReleaseLink] = None
    changes: Changes = field(default_factory=Changes)


@dataclass
class Unreleased:
    """
    Upcoming changes, not yet assigned to a release.

    Move them into a new release with ``Changelog.promote_unreleased``.
    """

    link: Optional[ReleaseLink] = None
    changes: Changes = field(default_factory=Changes)

    def add(self, group: ChangeGroup, item: str) -> None:
        """Add ``item`` under the ``group`` heading."""
        self.changes.add(group, item)


class Releases:
    """Releases of a changelog keyed by version, in document order."""

    def __init__(self, releases: Optional[List[Release]] = None):
        self._releases: Dict[ReleaseVersion, Release] = {}
        for release in releases or []:
            self._releases[release.version] = release

    def get_version(self, version: ReleaseVersion) -> Optional[Release]:
        return self._releases.get(version)

    def contains_version(self, version: ReleaseVersion) -> bool:
        return version in self._releases

    def prepend(self, release: Release) -> None:
        """Insert ``release`` as the first entry, keeping the others in order."""
        self._releases = {release.version: release, **self._releases}

    def versions(self) -> List[ReleaseVersion]:
        return list(self._releases)

    def __iter__(self) -> Iterator[Release]:
        return iter(self._releases.values())

    def __len__(self) -> int:
        return len(self._releases)

    def __contains__(self, version: object) -> bool:
        return version in self._releases

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Releases):
            return NotImplemented
        return list(self._releases.items()) == list(other._releases.items())

    def __repr__(self) -> str:
        return f"Releases({list(self._releases.values())!r})"
