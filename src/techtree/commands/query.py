"""
techtree.commands.query - Read-only views of a tree.

- roots:   nodes nothing depends on
- show:    every node (or one root's subgraph) with its dependencies
- root-of: the root a node is reachable from
"""

from __future__ import annotations

import argparse
import json
import sys

from techtree.graph.errors import TechTreeError
from techtree.graph.serialize import read_tree, serialize_tree
from techtree.graph.tree import (
    TechTree,
    external_dependents,
    find_root_node_of,
    root_nodes,
    search_nodes,
    subgraph,
)


def run(args: argparse.Namespace) -> int:
    """Dispatch on the query command name."""
    try:
        tree = read_tree(args.file)
        if args.command == "roots":
            return _roots(args, tree)
        elif args.command == "show":
            return _show(args, tree)
        elif args.command == "root-of":
            return _root_of(args, tree)
    except (OSError, TechTreeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Unknown query: {args.command}", file=sys.stderr)
    return 1


def _roots(args: argparse.Namespace, tree: TechTree) -> int:
    roots = root_nodes(tree)
    if args.json:
        print(json.dumps([{"id": r.id, "title": r.title} for r in roots], indent=2))
        return 0
    for root in roots:
        print(f"{root.id}\t{root.title}")
    return 0


def _show(args: argparse.Namespace, tree: TechTree) -> int:
    view = subgraph(tree, args.root) if args.root else tree
    outside = external_dependents(tree, view) if args.root else {}

    nodes = search_nodes(view, args.search) if args.search else list(view.nodes)
    if args.json:
        data = serialize_tree(TechTree(nodes=tuple(nodes)), include_reverse=True)
        print(json.dumps(data, indent=2))
        return 0

    if not nodes:
        print("No nodes match." if args.search else "Tree is empty.")
        return 0

    for node in sorted(nodes, key=lambda n: n.id):
        print(f"{node.id}: {node.title}")
        if node.depends_on:
            print(f"    depends on: {', '.join(node.iter_dependencies())}")
        if node.id in outside:
            print(f"    also needed by: {', '.join(outside[node.id])}")
    return 0


def _root_of(args: argparse.Namespace, tree: TechTree) -> int:
    root_id = find_root_node_of(tree, args.node_id)
    if root_id is None:
        print(f"Error: no root found for {args.node_id}", file=sys.stderr)
        return 1
    print(root_id)
    return 0
