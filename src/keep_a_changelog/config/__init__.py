"""
keep_a_changelog.config - Configuration loading and defaults

Configuration lives in ``.keep-a-changelog.toml``, found by walking up from the
working directory. Values are merged over ``DEFAULT_CONFIG`` and can be
overridden with ``KEEP_A_CHANGELOG_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import tomlkit
from tomlkit.exceptions import TOMLKitError

CONFIG_FILE_NAME = ".keep-a-changelog.toml"
ENV_PREFIX = "KEEP_A_CHANGELOG_"

DEFAULT_CONFIG: Dict[str, Any] = {
    "changelog": {
        "files": ["CHANGELOG.md"],
    },
    "validate": {
        "format": "text",
        "jobs": 4,
    },
    "promote": {
        "link_template": "",
    },
}


class ConfigError(Exception):
    """Configuration file could not be read or has invalid values."""


def find_config_file(start: Path) -> Optional[Path]:
    """
    Find the nearest configuration file.

    Args:
        start: Directory to start searching from

    Returns:
        Path to the config file, or None if no parent directory has one
    """
    current = start.resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
    return None


def load_config(config_path: Path) -> Dict[str, Any]:
    """
    Load configuration from a TOML file, merged over the defaults.

    Args:
        config_path: Path to the configuration file

    Returns:
        Merged configuration dictionary

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}") from e

    try:
        user_config = tomlkit.parse(content).unwrap()
    except TOMLKitError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    config = merge_configs(DEFAULT_CONFIG, user_config)
    config = _apply_env_overrides(config)
    _check_config(config, config_path)
    return config


def default_config() -> Dict[str, Any]:
    """
    Defaults with environment overrides applied.

    Raises:
        ConfigError: If an environment override has the wrong type
    """
    config = _apply_env_overrides(copy.deepcopy(DEFAULT_CONFIG))
    _check_config(config, "environment")
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep-merge two configuration dictionaries.

    Nested dictionaries are merged key by key; any other value in
    ``override`` replaces the one in ``base``. Neither input is modified.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Parse JSON lists/objects, booleans and integers; anything else stays a string."""
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if value.startswith(("[", "{")):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value
    if value.lstrip("-").isdigit():
        return int(value)
    return value


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply ``KEEP_A_CHANGELOG_<SECTION>_<KEY>`` environment variables.

    e.g. ``KEEP_A_CHANGELOG_VALIDATE_JOBS=8`` sets ``config["validate"]["jobs"]``.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX):].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(raw)
    return config


def _check_config(config: Dict[str, Any], source: Union[Path, str]) -> None:
    files = config["changelog"].get("files")
    if not isinstance(files, list) or not all(isinstance(f, str) for f in files):
        raise ConfigError(f"{source}: changelog.files must be a list of paths")

    jobs = config["validate"].get("jobs")
    if not isinstance(jobs, int) or isinstance(jobs, bool) or jobs < 1:
        raise ConfigError(f"{source}: validate.jobs must be a positive integer")

    if config["validate"].get("format") not in ("text", "github", "json"):
        raise ConfigError(f"{source}: validate.format must be one of text, github, json")

    if not isinstance(config["promote"].get("link_template", ""), str):
        raise ConfigError(f"{source}: promote.link_template must be a string")


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DEFAULT_CONFIG",
    "default_config",
    "find_config_file",
    "load_config",
    "merge_configs",
]
