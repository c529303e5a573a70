"""
techtree.commands.config_cmd - Inspect configuration.

- config path: where the active .techtree.toml lives
- config show: the merged configuration (defaults, file, environment)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from techtree.commands.validate import load_configuration
from techtree.config import find_config_file


def run(args: argparse.Namespace) -> int:
    """Run the config command."""
    action = getattr(args, "config_action", None)

    if action == "path":
        config_path = getattr(args, "config", None) or find_config_file(Path.cwd())
        if config_path is None:
            print("No configuration file found (using defaults)")
            return 1
        print(config_path)
        return 0

    if action == "show":
        config = load_configuration(args)
        if config is None:
            return 1
        print(json.dumps(config, indent=2))
        return 0

    print("Usage: techtree config {show,path}", file=sys.stderr)
    return 1
