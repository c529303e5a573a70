"""Tree Serialization - Convert tech trees to and from the JSON wire format.

Wire format::

    {"nodes": [{"id": ..., "title": ..., "description": ..., "dependsOn": [...]}]}

``dependedOnBy`` may be emitted for convenience but is ignored on input.
"""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from techtree.graph.errors import MalformedInputError
from techtree.graph.tree import canonicalize, validate

if TYPE_CHECKING:
    from techtree.graph.TechNode import TechNode
    from techtree.graph.tree import TechTree


def serialize_node(node: TechNode, include_reverse: bool = False) -> dict[str, Any]:
    """Serialize a TechNode to a JSON-compatible dict.

    Args:
        node: The node to serialize.
        include_reverse: Also emit the derived ``dependedOnBy`` list.

    Returns:
        Dict suitable for JSON serialization.
    """
    result: dict[str, Any] = {
        "id": node.id,
        "title": node.title,
        "description": node.description,
        "dependsOn": list(node.depends_on),
    }
    if include_reverse:
        result["dependedOnBy"] = list(node.depended_on_by)
    return result


def serialize_tree(
    tree: TechTree,
    canonical: bool = True,
    include_reverse: bool = False,
) -> dict[str, Any]:
    """Serialize a TechTree to a JSON-compatible dict.

    Args:
        tree: The tree to serialize.
        canonical: Sort nodes and dependency lists by id first.
        include_reverse: Also emit each node's ``dependedOnBy``.
    """
    if canonical:
        tree = canonicalize(tree)
    return {"nodes": [serialize_node(node, include_reverse) for node in tree.nodes]}


def to_json(
    tree: TechTree,
    indent: int | None = 2,
    canonical: bool = True,
    include_reverse: bool = False,
) -> str:
    """Render a tree as JSON text, ending with a newline."""
    data = serialize_tree(tree, canonical=canonical, include_reverse=include_reverse)
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


def loads(text: str, reject_cycles: bool = False) -> TechTree:
    """Parse and validate JSON text.

    Raises:
        MalformedInputError: If the text is not valid JSON or not a tree.
        TechTreeError: Any other validation failure (see tree.validate).
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"Invalid JSON: {e}") from e
    return validate(data, reject_cycles=reject_cycles)


def read_tree(path: Path, reject_cycles: bool = False) -> TechTree:
    """Read and validate a tree from a JSON file."""
    return loads(Path(path).read_text(encoding="utf-8"), reject_cycles=reject_cycles)


def write_tree(
    path: Path,
    tree: TechTree,
    indent: int | None = 2,
    include_reverse: bool = False,
) -> Path:
    """Write ``tree`` to ``path`` as canonical JSON.

    Returns:
        The path written.
    """
    path = Path(path)
    path.write_text(
        to_json(tree, indent=indent, canonical=True, include_reverse=include_reverse),
        encoding="utf-8",
    )
    return path


def export_filename(now: datetime | None = None) -> str:
    """Download name for an exported tree, e.g. ``tech-tree-2024-05-01T12-30-00.json``."""
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"tech-tree-{stamp}.json"


__all__ = [
    "serialize_node",
    "serialize_tree",
    "to_json",
    "loads",
    "read_tree",
    "write_tree",
    "export_filename",
]
