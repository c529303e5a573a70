"""TechNode - A single work item in a tech tree.

A node carries its own outgoing dependency list. The reverse view
(``depended_on_by``) is derived by the owning TechTree whenever a tree
value is built, and cannot be supplied by callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Iterator


@dataclass(frozen=True)
class TechNode:
    """A node in the tech tree. Represents a single project or work item.

    Attributes:
        id: Identifier used for cross-references, unique within a tree.
        title: User-friendly title to display.
        description: Free text shown when the node is focused.
        depends_on: Ids of the nodes that must be finished to unblock
            or complete this node.
    """

    id: str
    title: str = ""
    description: str = ""
    depends_on: tuple[str, ...] = ()

    # Derived by TechTree, excluded from constructor and comparisons
    _depended_on_by: tuple[str, ...] = field(
        default=(), init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        if not isinstance(self.depends_on, tuple):
            object.__setattr__(self, "depends_on", tuple(self.depends_on))

    @property
    def depended_on_by(self) -> tuple[str, ...]:
        """Ids of the nodes that list this node in their ``depends_on``."""
        return self._depended_on_by

    def iter_dependencies(self) -> Iterator[str]:
        """Iterate over dependency ids."""
        yield from self.depends_on

    def iter_dependents(self) -> Iterator[str]:
        """Iterate over dependent ids."""
        yield from self._depended_on_by

    def depends_on_id(self, node_id: str) -> bool:
        """Check if this node directly depends on ``node_id``."""
        return node_id in self.depends_on

    @property
    def is_root(self) -> bool:
        """True if no node depends on this one."""
        return len(self._depended_on_by) == 0

    @property
    def is_leaf(self) -> bool:
        """True if this node has no dependencies."""
        return len(self.depends_on) == 0

    def evolve(self, **changes: Any) -> TechNode:
        """Return a copy with ``changes`` applied.

        The derived dependents are dropped; they are recomputed when the
        copy is placed in a TechTree.
        """
        return replace(self, **changes)


def _with_dependents(node: TechNode, dependents: Iterable[str]) -> TechNode:
    """Copy ``node`` with its derived dependents set. Internal to TechTree."""
    copy = replace(node)
    object.__setattr__(copy, "_depended_on_by", tuple(dependents))
    return copy
