"""
techtree.config - Configuration loading and defaults
"""

from techtree.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG
from techtree.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    load_config,
    merge_configs,
    render_default_config,
)

__all__ = [
    "load_config",
    "get_config",
    "find_config_file",
    "merge_configs",
    "render_default_config",
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
]
