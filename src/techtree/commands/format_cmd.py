"""
techtree.commands.format_cmd - Write a tree in canonical form.

Nodes and dependency lists are sorted by id, so the output is stable
across edits that only reorder things.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from techtree.commands.validate import load_configuration
from techtree.graph.errors import TechTreeError
from techtree.graph.serialize import read_tree, to_json


def run(args: argparse.Namespace) -> int:
    """Run the format command."""
    config = load_configuration(args)
    if config is None:
        return 1

    try:
        tree = read_tree(args.file)
    except (OSError, TechTreeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    export = config["export"]
    include_reverse = args.with_reverse or bool(export["include_reverse"])
    text = to_json(tree, indent=export["indent"], include_reverse=include_reverse)

    target: Path | None = args.file if args.in_place else args.output
    if target is None:
        sys.stdout.write(text)
        return 0

    Path(target).write_text(text, encoding="utf-8")
    if not args.quiet:
        print(f"Wrote {tree.node_count()} nodes to {target}")
    return 0
