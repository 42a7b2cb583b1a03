"""Pytest fixtures for core tests."""

import pytest


@pytest.fixture
def parse_with_diagnostics():
    """Parse text and return ``(tree, diagnostics)``."""
    from keep_a_changelog.core.diagnostics import get_diagnostics
    from keep_a_changelog.core.parser import parse

    def _parse(text):
        tree = parse(text)
        return tree, get_diagnostics(tree)

    return _parse


@pytest.fixture
def messages(parse_with_diagnostics):
    """Diagnostic messages for a text, in report order."""

    def _messages(text):
        _, diagnostics = parse_with_diagnostics(text)
        return [d.message for d in diagnostics]

    return _messages
