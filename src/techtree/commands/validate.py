"""
techtree.commands.validate - Validate a tech tree file.

Checks the file's shape, duplicate ids and dependency references, and
reports cycles (as errors with --strict or validation.reject_cycles).
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from techtree.config import find_config_file, load_config
from techtree.graph.errors import TechTreeError
from techtree.graph.serialize import read_tree
from techtree.graph.tree import find_cycle, root_nodes


def run(args: argparse.Namespace) -> int:
    """
    Run the validate command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for a valid tree, 1 for validation errors)
    """
    config = load_configuration(args)
    if config is None:
        return 1

    strict = args.strict or bool(config["validation"]["reject_cycles"])

    try:
        tree = read_tree(args.file, reject_cycles=strict)
    except OSError as e:
        print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
        return 1
    except TechTreeError as e:
        if args.json:
            print(
                json.dumps(
                    {"valid": False, "error": str(e), "error_type": type(e).__name__},
                    indent=2,
                )
            )
        else:
            print(f"❌ {args.file}: {e}", file=sys.stderr)
        return 1

    roots = root_nodes(tree)
    cycle = find_cycle(tree)

    if args.json:
        result: Dict[str, Any] = {
            "valid": True,
            "node_count": tree.node_count(),
            "root_count": len(roots),
            "roots": [root.id for root in roots],
            "cycle": cycle,
        }
        print(json.dumps(result, indent=2))
        return 0

    if not args.quiet:
        print(f"✓ {tree.node_count()} nodes valid ({len(roots)} roots)")
        if cycle:
            print(f"⚠️  dependency cycle: {' -> '.join(cycle)}")

    return 0


def load_configuration(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    """Load configuration from --config, the nearest .techtree.toml, or defaults."""
    config_path = getattr(args, "config", None) or find_config_file(Path.cwd())

    if config_path is not None and not Path(config_path).exists():
        print(f"Error: config file not found: {config_path}", file=sys.stderr)
        return None

    try:
        return load_config(config_path)
    except ValueError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return None
