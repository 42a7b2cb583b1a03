"""Shared pytest fixtures."""

import pytest

from tests.helpers import VALID_CHANGELOG


@pytest.fixture
def valid_changelog_text():
    """A complete, valid changelog."""
    return VALID_CHANGELOG


@pytest.fixture
def changelog_file(tmp_path):
    """A valid CHANGELOG.md inside a temporary project directory."""
    path = tmp_path / "CHANGELOG.md"
    path.write_text(VALID_CHANGELOG, encoding="utf-8")
    return path


@pytest.fixture
def isolated_env(monkeypatch, tmp_path):
    """Run from ``tmp_path`` with no KEEP_A_CHANGELOG_* variables set."""
    import os

    for name in list(os.environ):
        if name.startswith("KEEP_A_CHANGELOG_"):
            monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)
    return tmp_path
