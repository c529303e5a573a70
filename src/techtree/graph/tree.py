"""Tech Tree - The node/edge model and its pure query/transform operations.

A TechTree is an immutable value. Every transform here returns a new tree;
nothing mutates its argument. Building a TechTree recomputes each node's
``depended_on_by`` from the ``depends_on`` edges, so the two views of the
edge set cannot disagree.
"""

from __future__ import annotations

import copy
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from techtree.graph.errors import (
    CycleRejectedError,
    DanglingReferenceError,
    DuplicateIdentifierError,
    MalformedInputError,
    NotFoundError,
)
from techtree.graph.TechNode import TechNode, _with_dependents


@dataclass(frozen=True)
class TechTree:
    """An unordered set of TechNodes, stored as a tuple.

    Node order only matters for canonical serialization (see canonicalize).

    Attributes:
        nodes: The nodes of the tree.
    """

    nodes: tuple[TechNode, ...] = ()

    # Internal storage (prefixed) - excluded from constructor
    _index: dict[str, TechNode] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        nodes = tuple(self.nodes)
        dependents: dict[str, list[str]] = {node.id: [] for node in nodes}
        for node in nodes:
            for dep in node.depends_on:
                if dep in dependents:
                    dependents[dep].append(node.id)

        indexed = tuple(_with_dependents(node, dependents[node.id]) for node in nodes)
        object.__setattr__(self, "nodes", indexed)

        index: dict[str, TechNode] = {}
        for node in indexed:
            index.setdefault(node.id, node)
        object.__setattr__(self, "_index", index)

    def find_by_id(self, node_id: str) -> TechNode | None:
        """Find node by ID.

        Args:
            node_id: The node ID to find.

        Returns:
            The matching TechNode, or None if not found.
        """
        return self._index.get(node_id)

    def get(self, node_id: str) -> TechNode:
        """Like find_by_id, but raise NotFoundError for a missing node."""
        node = self._index.get(node_id)
        if node is None:
            raise NotFoundError(node_id)
        return node

    def has_node(self, node_id: str) -> bool:
        """Check if a node ID exists in the tree."""
        return node_id in self._index

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def all_nodes(self) -> Iterator[TechNode]:
        """Iterate all nodes in stored order."""
        yield from self.nodes

    def node_ids(self) -> list[str]:
        """Return node ids in stored order."""
        return [node.id for node in self.nodes]

    def node_count(self) -> int:
        """Return total number of nodes in the tree."""
        return len(self.nodes)

    def iter_roots(self) -> Iterator[TechNode]:
        """Iterate root nodes (nodes nothing depends on)."""
        yield from root_nodes(self)

    def clone(self) -> TechTree:
        """Create a deep, independent copy of this tree."""
        return clone(self)


# ─────────────────────────────────────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────────────────────────────────────


def validate(raw: Any, reject_cycles: bool = False) -> TechTree:
    """Validate that ``raw`` matches the tech tree schema.

    Checks the overall shape, then the fields of every node, then duplicate
    ids, then dependency references. Back-references in the input
    (``dependedOnBy``) are never trusted; they are recomputed.

    Cycles are accepted unless ``reject_cycles`` is set; interactive edits
    reject cycles on their own (see mutations.add_dependency).

    Args:
        raw: Untrusted data, typically decoded JSON.
        reject_cycles: Also reject dependency cycles.

    Returns:
        The validated TechTree.

    Raises:
        MalformedInputError: The data does not have the expected shape.
        DuplicateIdentifierError: Two nodes share an id.
        DanglingReferenceError: A dependency names a missing node.
        CycleRejectedError: A cycle exists and ``reject_cycles`` is set.
    """
    if not isinstance(raw, Mapping):
        raise MalformedInputError("TechTree must be an object")

    raw_nodes = raw.get("nodes")
    if not isinstance(raw_nodes, (list, tuple)):
        raise MalformedInputError("TechTree.nodes must be an array")

    nodes = [_parse_node(i, raw_node) for i, raw_node in enumerate(raw_nodes)]
    return check_integrity(TechTree(nodes=tuple(nodes)), reject_cycles=reject_cycles)


def _parse_node(index: int, raw_node: Any) -> TechNode:
    if not isinstance(raw_node, Mapping):
        raise MalformedInputError(f"Node at index {index} must be an object")

    node_id = raw_node.get("id")
    if not isinstance(node_id, str) or node_id.strip() == "":
        raise MalformedInputError(f"Node at index {index} must have a non-empty string id")

    title = raw_node.get("title")
    if not isinstance(title, str):
        raise MalformedInputError(f"Node {node_id} must have a string title")

    description = raw_node.get("description")
    if not isinstance(description, str):
        raise MalformedInputError(f"Node {node_id} must have a string description")

    depends_on = raw_node.get("dependsOn")
    if not isinstance(depends_on, (list, tuple)):
        raise MalformedInputError(f"Node {node_id} dependsOn must be an array")
    for dep in depends_on:
        if not isinstance(dep, str):
            raise MalformedInputError(f"Node {node_id} dependsOn must contain only strings")

    return TechNode(
        id=node_id,
        title=title,
        description=description,
        depends_on=tuple(depends_on),
    )


def check_integrity(tree: TechTree, reject_cycles: bool = False) -> TechTree:
    """Check referential integrity of an already-typed tree.

    Args:
        tree: The tree to check.
        reject_cycles: Also reject dependency cycles.

    Returns:
        ``tree`` unchanged, so the call can be chained.
    """
    seen: set[str] = set()
    for node in tree.nodes:
        if node.id in seen:
            raise DuplicateIdentifierError(node.id)
        seen.add(node.id)

    for node in tree.nodes:
        for dep in node.depends_on:
            if dep not in seen:
                raise DanglingReferenceError(node.id, dep)

    if reject_cycles:
        cycle = find_cycle(tree)
        if cycle is not None:
            raise CycleRejectedError(
                cycle[0],
                cycle[1],
                f"Dependency cycle: {' -> '.join(cycle)}",
            )

    return tree


# ─────────────────────────────────────────────────────────────────────────────
# Queries
# ─────────────────────────────────────────────────────────────────────────────


def root_nodes(tree: TechTree) -> list[TechNode]:
    """All nodes which are not depended on by another node."""
    depended_on_ids: set[str] = set()
    for node in tree.all_nodes():
        depended_on_ids.update(node.iter_dependencies())
    return [node for node in tree.all_nodes() if node.id not in depended_on_ids]


def find_root_node_of(tree: TechTree, node_id: str) -> str | None:
    """Find a root that (transitively) depends on ``node_id``.

    Walks ``depended_on_by`` edges breadth-first and returns the first node
    nothing depends on. Missing intermediate nodes are skipped.

    Returns:
        The root id, or None if ``node_id`` is not in the tree (or every
        path upward ends in a cycle).
    """
    if not tree.has_node(node_id):
        return None

    visited: set[str] = {node_id}
    queue: deque[str] = deque([node_id])
    while queue:
        current_id = queue.popleft()
        node = tree.find_by_id(current_id)
        if node is None:
            continue
        if not node.depended_on_by:
            return current_id
        for parent_id in node.depended_on_by:
            if parent_id not in visited:
                visited.add(parent_id)
                queue.append(parent_id)
    return None


def _collect(tree: TechTree, start: str) -> set[str]:
    """Ids reachable from ``start`` along ``depends_on``, including ``start``."""
    included: set[str] = set()
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id in included:
            continue
        node = tree.find_by_id(node_id)
        if node is None:
            continue
        included.add(node_id)
        stack.extend(dep for dep in node.depends_on if dep not in included)
    return included


def dependencies_of(tree: TechTree, node_id: str) -> set[str]:
    """Ids ``node_id`` depends on, directly or indirectly.

    Raises:
        NotFoundError: If ``node_id`` is not in the tree.
    """
    node = tree.get(node_id)
    closure: set[str] = set()
    for dep in node.depends_on:
        closure |= _collect(tree, dep)
    closure.discard(node_id)
    return closure


def is_reachable(tree: TechTree, start: str, goal: str) -> bool:
    """True if ``goal`` can be reached from ``start`` along ``depends_on``."""
    if not tree.has_node(start):
        return False
    return goal in _collect(tree, start)


def find_cycle(tree: TechTree) -> list[str] | None:
    """Find one dependency cycle.

    Returns:
        The cycle as a path that starts and ends with the same id
        (e.g. ``["a", "b", "a"]``), or None if the tree is acyclic.
    """
    visiting, done = 1, 2
    state: dict[str, int] = {}

    for start in tree.node_ids():
        if start in state:
            continue
        state[start] = visiting
        path = [start]
        stack = [iter(tree.get(start).depends_on)]
        while stack:
            for dep in stack[-1]:
                if not tree.has_node(dep):
                    continue
                dep_state = state.get(dep)
                if dep_state == visiting:
                    return path[path.index(dep) :] + [dep]
                if dep_state is None:
                    state[dep] = visiting
                    path.append(dep)
                    stack.append(iter(tree.get(dep).depends_on))
                    break
            else:
                state[path.pop()] = done
                stack.pop()
    return None


def search_nodes(tree: TechTree, term: str) -> list[TechNode]:
    """Nodes whose title or description contains ``term`` (case-insensitive).

    A blank term matches every node.
    """
    if not term.strip():
        return list(tree.nodes)
    needle = term.lower()
    return [
        node
        for node in tree.nodes
        if needle in node.title.lower() or needle in node.description.lower()
    ]


def external_dependents(tree: TechTree, subtree: TechTree) -> dict[str, list[str]]:
    """Map each node of ``subtree`` to its dependents that lie outside it.

    Only nodes with at least one outside dependent are included.
    """
    result: dict[str, list[str]] = {}
    for node in subtree.nodes:
        full = tree.find_by_id(node.id)
        if full is None:
            continue
        outside = [dep_id for dep_id in full.iter_dependents() if not subtree.has_node(dep_id)]
        if outside:
            result[node.id] = outside
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Transforms
# ─────────────────────────────────────────────────────────────────────────────


def subgraph(tree: TechTree, root: str) -> TechTree:
    """Filter ``tree`` to ``root`` and the nodes it transitively depends on.

    Raises:
        NotFoundError: If ``root`` is not in the tree.
    """
    if not tree.has_node(root):
        raise NotFoundError(root, f"Root node {root} does not exist in the tree")

    included = _collect(tree, root)
    return TechTree(nodes=tuple(node for node in tree.nodes if node.id in included))


def update_refs_to_id(tree: TechTree, old_id: str, new_id: str) -> TechTree:
    """Rewrite every reference to ``old_id`` so it points at ``new_id``.

    Only references change; the node carrying the id is left alone.
    """
    return TechTree(
        nodes=tuple(
            node.evolve(depends_on=_replace_all(node.depends_on, old_id, new_id))
            if old_id in node.depends_on
            else node
            for node in tree.nodes
        )
    )


def _replace_all(ids: Iterable[str], old_id: str, new_id: str) -> tuple[str, ...]:
    return tuple(new_id if dep == old_id else dep for dep in ids)


def delete_refs_to_id(tree: TechTree, node_id: str) -> TechTree:
    """Remove every reference to ``node_id``."""
    return TechTree(
        nodes=tuple(
            node.evolve(depends_on=tuple(dep for dep in node.depends_on if dep != node_id))
            if node_id in node.depends_on
            else node
            for node in tree.nodes
        )
    )


def canonicalize(tree: TechTree) -> TechTree:
    """Sort nodes and their dependency lists by id, for stable export."""
    nodes = sorted(tree.nodes, key=lambda node: node.id)
    return TechTree(
        nodes=tuple(node.evolve(depends_on=tuple(sorted(node.depends_on))) for node in nodes)
    )


def clone(tree: TechTree) -> TechTree:
    """Create a deep copy of ``tree``.

    The copy shares no node objects with the original.
    """
    return copy.deepcopy(tree)


__all__ = [
    "TechTree",
    "validate",
    "check_integrity",
    "root_nodes",
    "find_root_node_of",
    "dependencies_of",
    "is_reachable",
    "find_cycle",
    "search_nodes",
    "external_dependents",
    "subgraph",
    "update_refs_to_id",
    "delete_refs_to_id",
    "canonicalize",
    "clone",
]
