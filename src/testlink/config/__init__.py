"""
testlink.config - Configuration loading and defaults
"""

from testlink.config.autoload import (
    AutoloadMapping,
    NamespaceResolver,
    composer_mappings,
    load_autoload_mappings,
    read_composer,
)
from testlink.config.defaults import DEFAULT_CONFIG
from testlink.config.loader import (
    CONFIG_FILE_NAME,
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    load_config,
    merge_configs,
    parse_toml,
    parse_toml_document,
    validate_config,
)

__all__ = [
    "AutoloadMapping",
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "NamespaceResolver",
    "_apply_env_overrides",
    "_try_parse_env_value",
    "composer_mappings",
    "find_config_file",
    "load_autoload_mappings",
    "load_config",
    "merge_configs",
    "parse_toml",
    "parse_toml_document",
    "read_composer",
    "validate_config",
]
