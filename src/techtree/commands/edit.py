"""
techtree.commands.edit - Apply one edit to a tree file.

The file is read, the edit is applied through a TreeEditor, and the result
is written back in canonical form. A rejected edit leaves the file as it
was.
"""

from __future__ import annotations

import argparse
import sys

from techtree.commands.validate import load_configuration
from techtree.graph.editor import TreeEditor
from techtree.graph.errors import TechTreeError
from techtree.graph.mutations import MutationEntry
from techtree.graph.serialize import read_tree, write_tree


def run(args: argparse.Namespace) -> int:
    """Run the edit command."""
    config = load_configuration(args)
    if config is None:
        return 1

    action = getattr(args, "edit_action", None)
    if not action:
        print("Usage: techtree edit FILE {add,retitle,rename,describe,depend,undepend,delete}")
        return 1

    try:
        editor = TreeEditor(read_tree(args.file), config)
        entry = _apply(editor, args)
    except (OSError, TechTreeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.dry_run:
        print(f"Would apply {entry.kind.value} to {entry.target_id}")
        return 0

    export = config["export"]
    write_tree(
        args.file,
        editor.current,
        indent=export["indent"],
        include_reverse=bool(export["include_reverse"]),
    )
    if not args.quiet:
        print(_describe(entry))
    return 0


def _apply(editor: TreeEditor, args: argparse.Namespace) -> MutationEntry:
    action = args.edit_action
    if action == "add":
        if args.under:
            editor.select(args.under)
        return editor.add_node(args.title)
    elif action == "retitle":
        return editor.retitle(args.node_id, args.title)
    elif action == "rename":
        return editor.rename(args.node_id, args.new_id)
    elif action == "describe":
        return editor.describe(args.node_id, args.text)
    elif action == "depend":
        return editor.add_dependency(args.node_id, args.dependency_id)
    elif action == "undepend":
        return editor.remove_dependency(args.node_id, args.dependency_id)
    elif action == "delete":
        return editor.delete(args.node_id)
    raise ValueError(f"Unknown edit action: {action}")


def _describe(entry: MutationEntry) -> str:
    if entry.previous_id and entry.previous_id != entry.target_id:
        return f"{entry.kind.value}: {entry.previous_id} -> {entry.target_id}"
    return f"{entry.kind.value}: {entry.target_id}"
