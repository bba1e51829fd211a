"""
testlink.config.loader - Configuration loading.

Loads .testlink.toml, merges it over DEFAULT_CONFIG and applies
TESTLINK_<SECTION>_<KEY> environment variable overrides.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from testlink.config.defaults import DEFAULT_CONFIG
from testlink.exceptions import ConfigError

CONFIG_FILE_NAME = ".testlink.toml"
ENV_PREFIX = "TESTLINK_"


def find_config_file(start_path: Path) -> Path | None:
    """
    Find .testlink.toml by searching up the directory tree.

    Args:
        start_path: Directory to start searching from

    Returns:
        Path to the config file, or None if not found
    """
    current = Path(start_path).resolve()
    if current.is_file():
        current = current.parent

    while True:
        candidate = current / CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate
        # Stop at a repository root
        if (current / ".git").exists() or current.parent == current:
            return None
        current = current.parent


def parse_toml_document(content: str) -> tomlkit.TOMLDocument:
    """Parse TOML keeping comments and layout, for round-trip edits."""
    return tomlkit.parse(content)


def parse_toml(content: str) -> dict[str, Any]:
    """Parse TOML into plain Python dicts and lists."""
    return parse_toml_document(content).unwrap()


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge override into a copy of base.

    Nested dicts are merged key by key; any other value in override
    replaces the value in base.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """
    Convert an environment variable string to a typed value.

    JSON arrays and objects are decoded, "true"/"false" become booleans.
    Anything else, including malformed JSON, stays a string.
    """
    stripped = value.strip()
    if stripped.lower() == "true":
        return True
    if stripped.lower() == "false":
        return False
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """
    Apply TESTLINK_<SECTION>_<KEY> environment variables to config.

    TESTLINK_SYNC_LINK_ONLY=true sets config["sync"]["link_only"] = True.
    Sections are created when missing.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(raw)
    return config


def validate_config(config: dict[str, Any]) -> list[str]:
    """
    Check value types of the known sections.

    Returns:
        Error messages (empty when the config is valid)
    """
    errors: list[str] = []
    list_keys = [
        ("tests", "patterns"),
        ("tests", "exclude"),
        ("production", "dirs"),
        ("production", "patterns"),
        ("production", "exclude"),
    ]
    for section, key in list_keys:
        value = config.get(section, {}).get(key)
        if value is not None and not isinstance(value, list):
            errors.append(f"[{section}] {key} must be a list")
    mappings = config.get("namespaces", {}).get("mappings")
    if mappings is not None and not isinstance(mappings, dict):
        errors.append("[namespaces] mappings must be a table")
    enabled = config.get("frameworks", {}).get("enabled")
    if enabled is not None and not isinstance(enabled, (str, list)):
        errors.append("[frameworks] enabled must be \"auto\" or a list of names")
    for key in ("link_only", "prune", "see_tags"):
        value = config.get("sync", {}).get(key)
        if value is not None and not isinstance(value, bool):
            errors.append(f"[sync] {key} must be true or false")
    return errors


def load_config(config_path: Path | None = None, start_path: Path | None = None) -> dict[str, Any]:
    """
    Load configuration.

    Args:
        config_path: Explicit config file; when None, .testlink.toml is
            searched for from start_path (default: current directory)
        start_path: Directory to start the search from

    Returns:
        Merged configuration; config["project"]["root"] is resolved to an
        absolute path string

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML, or has
            values of the wrong type
    """
    if config_path is None:
        config_path = find_config_file(start_path or Path.cwd())

    user_config: dict[str, Any] = {}
    base_dir = Path(start_path or Path.cwd()).resolve()
    if config_path is not None:
        config_path = Path(config_path)
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read config: {e}", config_path) from e
        try:
            user_config = parse_toml(content)
        except TOMLKitError as e:
            raise ConfigError(f"invalid TOML: {e}", config_path) from e
        base_dir = config_path.resolve().parent

    config = _apply_env_overrides(merge_configs(DEFAULT_CONFIG, user_config))
    errors = validate_config(config)
    if errors:
        raise ConfigError("; ".join(errors), config_path)

    root = config["project"].get("root") or ""
    config["project"]["root"] = str((base_dir / root).resolve())
    config["_config_path"] = str(config_path) if config_path else None
    return config
