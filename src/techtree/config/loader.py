"""Configuration loading: .techtree.toml discovery, merging, env overrides."""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from techtree.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX


def find_config_file(start: Path | None = None) -> Path | None:
    """Find .techtree.toml in ``start`` or any parent directory.

    Args:
        start: Directory to start searching from (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def merge_configs(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge ``override`` into a copy of ``base``.

    Nested tables are merged key by key; any other value in ``override``
    replaces the one in ``base``.
    """
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _try_parse_env_value(value: str) -> Any:
    """Interpret an environment variable value.

    JSON arrays and objects are decoded, ``true``/``false`` become booleans
    (any case) and integers become ints. Anything else, including
    malformed JSON, is returned unchanged.
    """
    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    if value[:1] in ("[", "{"):
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    try:
        return int(value)
    except ValueError:
        return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply TECHTREE_<SECTION>_<KEY> environment variables to ``config``.

    The first segment after the prefix names the table, the rest (joined
    with underscores) names the key: ``TECHTREE_VALIDATION_REJECT_CYCLES``
    sets ``validation.reject_cycles``.
    """
    for name, raw_value in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        parts = name[len(ENV_PREFIX) :].lower().split("_", 1)
        if len(parts) != 2 or not all(parts):
            continue
        section, key = parts
        table = config.setdefault(section, {})
        if isinstance(table, dict):
            table[key] = _try_parse_env_value(raw_value)
    return config


def parse_config_text(content: str) -> dict[str, Any]:
    """Parse TOML text into plain dicts.

    Raises:
        ValueError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(content).unwrap()
    except TOMLKitError as e:
        raise ValueError(f"Invalid configuration: {e}") from e


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load configuration merged over DEFAULT_CONFIG.

    Args:
        path: Config file to read. Missing or None means defaults only.

    Returns:
        The merged configuration, with environment overrides applied.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path is not None and Path(path).is_file():
        user_config = parse_config_text(Path(path).read_text(encoding="utf-8"))
        config = merge_configs(config, user_config)
    return _apply_env_overrides(config)


def get_config(start: Path | None = None, config_path: Path | None = None) -> dict[str, Any]:
    """Load the explicit ``config_path``, or the nearest .techtree.toml."""
    return load_config(config_path or find_config_file(start))


def render_default_config() -> str:
    """Default configuration as commented TOML, for ``techtree init``."""
    doc = tomlkit.document()
    doc.add(tomlkit.comment("techtree configuration"))
    doc.add(tomlkit.nl())
    for section, values in DEFAULT_CONFIG.items():
        table = tomlkit.table()
        for key, value in values.items():
            table.add(key, value)
        doc.add(section, table)
    return tomlkit.dumps(doc)
