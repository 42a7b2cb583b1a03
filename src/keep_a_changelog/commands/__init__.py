"""
keep_a_changelog.commands - CLI command implementations
"""

__all__ = [
    "add",
    "completion",
    "promote",
    "tree",
    "validate",
]
