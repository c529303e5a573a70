"""
techtree.commands.init - Create a .techtree.toml configuration file.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from techtree.config import CONFIG_FILENAME, render_default_config


def run(args: argparse.Namespace) -> int:
    """Write the default configuration into the current directory."""
    config_path = Path.cwd() / CONFIG_FILENAME

    if config_path.exists() and not args.force:
        print(f"Error: {config_path} already exists (use --force to overwrite)", file=sys.stderr)
        return 1

    config_path.write_text(render_default_config(), encoding="utf-8")
    if not args.quiet:
        print(f"Created {config_path}")
    return 0
