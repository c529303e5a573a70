"""
techtree.commands.serve - Serve a tree over the REST API for a local editor.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from techtree.commands.validate import load_configuration
from techtree.graph.editor import TreeEditor
from techtree.graph.errors import TechTreeError
from techtree.graph.serialize import read_tree
from techtree.graph.tree import TechTree


def run(args: argparse.Namespace) -> int:
    """Load the tree (or start an empty one) and run the Flask server."""
    try:
        from techtree.server import create_app
    except ImportError:
        print("Error: server dependencies not installed.", file=sys.stderr)
        print("Install with: pip install techtree[server]", file=sys.stderr)
        return 1

    config = load_configuration(args)
    if config is None:
        return 1

    tree_path = Path(args.file)
    if tree_path.exists():
        try:
            tree = read_tree(tree_path, reject_cycles=bool(config["validation"]["reject_cycles"]))
        except (OSError, TechTreeError) as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        tree = TechTree()

    host = args.host or config["server"]["host"]
    port = args.port or int(config["server"]["port"])

    app = create_app(TreeEditor(tree, config), config, tree_path=tree_path)

    print(f"Serving {tree_path} ({tree.node_count()} nodes)")
    print(f"Listening on http://{host}:{port}")
    try:
        app.run(host=host, port=port)
    except KeyboardInterrupt:
        print("\nServer stopped.")
    return 0
