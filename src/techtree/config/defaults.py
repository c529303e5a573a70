"""Default configuration values for techtree."""

from __future__ import annotations

from typing import Any

CONFIG_FILENAME = ".techtree.toml"

ENV_PREFIX = "TECHTREE_"

DEFAULT_CONFIG: dict[str, Any] = {
    "ids": {
        # Replaces each run of non-alphanumerics in a title; also precedes
        # the numeric suffix of a disambiguated id
        "separator": "-",
        # Id base for titles with no alphanumeric characters
        "fallback": "node",
    },
    "titles": {
        "default": "New Node",
    },
    "validation": {
        # Loaded trees may contain cycles unless this is set; interactive
        # edits reject cycles either way
        "reject_cycles": False,
    },
    "export": {
        "indent": 2,
        "include_reverse": False,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 5055,
    },
}
