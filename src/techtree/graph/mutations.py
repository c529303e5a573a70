"""Edit operations for tech trees.

Each function takes the current TechTree and the edit parameters and
returns a MutationEntry carrying the new tree. The input tree is never
modified: an edit builds a candidate, checks its integrity, and only then
returns it. A rejected edit raises a TechTreeError subclass.

Example:
    >>> entry = add_node(tree, blocking_id="a", title="B")
    >>> entry.target_id
    'b'
    >>> entry.tree.find_by_id("a").depends_on
    ('b',)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import uuid4

from techtree.graph.errors import (
    CycleRejectedError,
    DuplicateDependencyError,
    DuplicateIdentifierError,
    MalformedInputError,
    NotFoundError,
)
from techtree.graph.identifiers import (
    DEFAULT_FALLBACK_ID,
    DEFAULT_SEPARATOR,
    DEFAULT_TITLE,
    generate_id,
    generate_title,
)
from techtree.graph.TechNode import TechNode
from techtree.graph.tree import (
    TechTree,
    check_integrity,
    delete_refs_to_id,
    is_reachable,
    update_refs_to_id,
)


class EditKind(Enum):
    """Kinds of edits, used by the history to decide on coalescing."""

    ADD_NODE = "add-node"
    RENAME = "rename"
    SET_TITLE = "set-title"
    SET_DESCRIPTION = "set-description"
    ADD_DEPENDENCY = "add-dependency"
    REMOVE_DEPENDENCY = "remove-dependency"
    DELETE_NODE = "delete-node"


@dataclass(frozen=True)
class MutationEntry:
    """Result of one accepted edit.

    Attributes:
        kind: The kind of edit.
        target_id: Id of the edited node after the edit.
        tree: The new tree.
        previous_id: Id of the edited node before the edit, when it changed.
        id: Unique mutation ID (UUID4).
        timestamp: When the edit was made.
    """

    kind: EditKind
    target_id: str
    tree: TechTree
    previous_id: str | None = None
    id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=datetime.now, compare=False)

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.previous_id and self.previous_id != self.target_id:
            return f"[{self.id[:8]}] {self.kind.value}({self.previous_id} -> {self.target_id})"
        return f"[{self.id[:8]}] {self.kind.value}({self.target_id})"


def _replace_node(tree: TechTree, previous_id: str, new_node: TechNode) -> TechTree:
    """Swap the node ``previous_id`` for ``new_node`` and fix references."""
    if new_node.id != previous_id and tree.has_node(new_node.id):
        raise DuplicateIdentifierError(
            new_node.id,
            f'A node with the ID "{new_node.id}" already exists. '
            "Please choose a different title.",
        )

    candidate = TechTree(
        nodes=tuple(new_node if node.id == previous_id else node for node in tree.nodes)
    )
    if new_node.id != previous_id:
        candidate = update_refs_to_id(candidate, previous_id, new_node.id)
    return check_integrity(candidate)


def add_node(
    tree: TechTree,
    blocking_id: str | None = None,
    title: str | None = None,
    separator: str = DEFAULT_SEPARATOR,
    fallback: str = DEFAULT_FALLBACK_ID,
    default_title: str = DEFAULT_TITLE,
) -> MutationEntry:
    """Add a new node with no dependencies.

    Args:
        tree: Current tree.
        blocking_id: If given, the new node is appended to this node's
            ``depends_on``.
        title: Title for the new node; generated when omitted.
        separator: Id slug separator.
        fallback: Id used when the title yields an empty slug.
        default_title: Base for generated titles.

    Returns:
        MutationEntry whose target_id is the new node's id.

    Raises:
        NotFoundError: If blocking_id is given but not in the tree.
        DuplicateIdentifierError: If the generated id already exists.
    """
    if blocking_id is not None and not tree.has_node(blocking_id):
        raise NotFoundError(blocking_id, f"Blocking node '{blocking_id}' not found")

    if title is None:
        title = generate_title(tree, blocking_id, base=default_title)
    node_id = generate_id(tree, title, separator=separator, fallback=fallback)
    if tree.has_node(node_id):
        raise DuplicateIdentifierError(
            node_id,
            f'A node with the ID "{node_id}" already exists. Please choose a different title.',
        )

    nodes = [
        node.evolve(depends_on=node.depends_on + (node_id,)) if node.id == blocking_id else node
        for node in tree.nodes
    ]
    nodes.append(TechNode(id=node_id, title=title))

    new_tree = check_integrity(TechTree(nodes=tuple(nodes)))
    return MutationEntry(kind=EditKind.ADD_NODE, target_id=node_id, tree=new_tree)


def rename_node(tree: TechTree, node_id: str, new_id: str) -> MutationEntry:
    """Change a node's id and rewrite every reference to it.

    Raises:
        NotFoundError: If node_id is not in the tree.
        MalformedInputError: If new_id is blank.
        DuplicateIdentifierError: If new_id belongs to another node.
    """
    node = tree.get(node_id)
    if not new_id.strip():
        raise MalformedInputError("Node id must be a non-empty string")

    new_tree = _replace_node(tree, node_id, node.evolve(id=new_id))
    return MutationEntry(
        kind=EditKind.RENAME, target_id=new_id, tree=new_tree, previous_id=node_id
    )


def retitle_node(
    tree: TechTree,
    node_id: str,
    title: str,
    separator: str = DEFAULT_SEPARATOR,
    fallback: str = DEFAULT_FALLBACK_ID,
) -> MutationEntry:
    """Set a node's title and derive a fresh id from it.

    The id is regenerated against the whole tree, so retitling ``a`` to
    ``"A"`` yields ``a-2``.

    Raises:
        NotFoundError: If node_id is not in the tree.
    """
    node = tree.get(node_id)
    new_id = generate_id(tree, title, separator=separator, fallback=fallback)

    new_tree = _replace_node(tree, node_id, node.evolve(id=new_id, title=title))
    return MutationEntry(
        kind=EditKind.SET_TITLE, target_id=new_id, tree=new_tree, previous_id=node_id
    )


def set_description(tree: TechTree, node_id: str, description: str) -> MutationEntry:
    """Replace a node's description.

    Raises:
        NotFoundError: If node_id is not in the tree.
    """
    node = tree.get(node_id)
    new_tree = _replace_node(tree, node_id, node.evolve(description=description))
    return MutationEntry(kind=EditKind.SET_DESCRIPTION, target_id=node_id, tree=new_tree)


def add_dependency(tree: TechTree, node_id: str, dependency_id: str) -> MutationEntry:
    """Make ``node_id`` depend on ``dependency_id``.

    Raises:
        NotFoundError: If either node is not in the tree.
        CycleRejectedError: If the nodes are the same, or ``dependency_id``
            already (transitively) depends on ``node_id``.
        DuplicateDependencyError: If the edge already exists.
    """
    node = tree.get(node_id)
    tree.get(dependency_id)

    if node_id == dependency_id:
        raise CycleRejectedError(
            node_id, dependency_id, f"Node {node_id} cannot depend on itself"
        )
    if node.depends_on_id(dependency_id):
        raise DuplicateDependencyError(node_id, dependency_id)
    if is_reachable(tree, dependency_id, node_id):
        raise CycleRejectedError(node_id, dependency_id)

    new_tree = _replace_node(
        tree, node_id, node.evolve(depends_on=node.depends_on + (dependency_id,))
    )
    return MutationEntry(kind=EditKind.ADD_DEPENDENCY, target_id=node_id, tree=new_tree)


def remove_dependency(tree: TechTree, node_id: str, dependency_id: str) -> MutationEntry:
    """Remove the edge ``node_id`` -> ``dependency_id``.

    Raises:
        NotFoundError: If the node or the edge does not exist.
    """
    node = tree.get(node_id)
    if not node.depends_on_id(dependency_id):
        raise NotFoundError(
            dependency_id, f"Node {node_id} does not depend on {dependency_id}"
        )

    new_tree = _replace_node(
        tree,
        node_id,
        node.evolve(depends_on=tuple(dep for dep in node.depends_on if dep != dependency_id)),
    )
    return MutationEntry(kind=EditKind.REMOVE_DEPENDENCY, target_id=node_id, tree=new_tree)


def delete_node(tree: TechTree, node_id: str) -> MutationEntry:
    """Remove a node and every reference to it.

    Raises:
        NotFoundError: If node_id is not in the tree.
    """
    tree.get(node_id)
    remaining = TechTree(nodes=tuple(node for node in tree.nodes if node.id != node_id))
    new_tree = check_integrity(delete_refs_to_id(remaining, node_id))
    return MutationEntry(kind=EditKind.DELETE_NODE, target_id=node_id, tree=new_tree)


__all__ = [
    "EditKind",
    "MutationEntry",
    "add_node",
    "rename_node",
    "retitle_node",
    "set_description",
    "add_dependency",
    "remove_dependency",
    "delete_node",
]
