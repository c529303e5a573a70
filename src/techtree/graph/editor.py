"""TreeEditor - Drives edits and history for one editing session.

The editor is what a user interface talks to. It applies edit functions to
the active snapshot, records accepted results in a History, and keeps
track of which node is focused as the root of the visible subgraph and
which node is selected. It holds no global state; create one per open tree.

Title and description edits are recorded with merging allowed, so a burst
of keystrokes on the same field collapses into one undo step. Structural
edits always create their own step.
"""

from __future__ import annotations

from typing import Any

from techtree.config import DEFAULT_CONFIG
from techtree.graph import mutations
from techtree.graph.history import History
from techtree.graph.mutations import EditKind, MutationEntry
from techtree.graph.tree import TechTree, find_root_node_of, subgraph

# Edits whose consecutive repeats coalesce into one history entry
MERGEABLE_KINDS = frozenset({EditKind.SET_TITLE, EditKind.SET_DESCRIPTION})


class TreeEditor:
    """Editing session over a single tech tree."""

    def __init__(self, tree: TechTree | None = None, config: dict[str, Any] | None = None):
        config = config or DEFAULT_CONFIG
        ids = config.get("ids", {})
        self._separator: str = ids.get("separator", "-")
        self._fallback: str = ids.get("fallback", "node")
        self._default_title: str = config.get("titles", {}).get("default", "New Node")

        initial = tree if tree is not None else TechTree()
        self._history = History(initial)
        self._saved = initial
        self._root_id: str | None = None
        self._selected_id: str | None = None

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    @property
    def current(self) -> TechTree:
        """The active tree snapshot."""
        return self._history.current

    @property
    def history(self) -> History:
        return self._history

    @property
    def root_id(self) -> str | None:
        """Node whose subgraph is in view, or None for the whole tree."""
        return self._root_id

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    @property
    def dirty(self) -> bool:
        """True if the active snapshot differs from the last saved one."""
        return self.current != self._saved

    def mark_saved(self) -> None:
        """Remember the active snapshot as the saved state."""
        self._saved = self.current

    def visible_tree(self) -> TechTree:
        """The focused subgraph, or the whole tree when nothing is focused."""
        if self._root_id is None:
            return self.current
        return subgraph(self.current, self._root_id)

    # ─────────────────────────────────────────────────────────────────────
    # Focus and selection
    # ─────────────────────────────────────────────────────────────────────

    def focus(self, root_id: str | None) -> None:
        """Focus the view on ``root_id``'s subgraph; None shows everything.

        The selection is kept only if it is still visible.
        """
        if root_id is not None:
            self.current.get(root_id)
        self._root_id = root_id
        if self._selected_id is not None and not self.visible_tree().has_node(self._selected_id):
            self._selected_id = None

    def select(self, node_id: str | None) -> None:
        """Select a node, refocusing when it lies outside the focused subgraph."""
        if node_id is None:
            self._selected_id = None
            return
        self.current.get(node_id)
        self._selected_id = node_id
        if self._root_id is not None and not self.visible_tree().has_node(node_id):
            self._root_id = find_root_node_of(self.current, node_id)

    def _follow_rename(self, previous_id: str, new_id: str) -> None:
        if self._selected_id == previous_id:
            self._selected_id = new_id
        if self._root_id == previous_id:
            self._root_id = new_id

    def _prune(self) -> None:
        """Drop focus or selection pointing at nodes that no longer exist."""
        tree = self.current
        if self._root_id is not None and not tree.has_node(self._root_id):
            self._root_id = None
        if self._selected_id is not None and not tree.has_node(self._selected_id):
            self._selected_id = None

    # ─────────────────────────────────────────────────────────────────────
    # Edits
    # ─────────────────────────────────────────────────────────────────────

    def _apply(self, entry: MutationEntry) -> MutationEntry:
        self._history.record(entry.tree, entry.kind, allow_merge=entry.kind in MERGEABLE_KINDS)
        if entry.previous_id is not None and entry.previous_id != entry.target_id:
            self._follow_rename(entry.previous_id, entry.target_id)
        self._prune()
        return entry

    def add_node(self, title: str | None = None) -> MutationEntry:
        """Add a node under the selected node (else the focused root).

        The new node is selected, and focused when nothing was focused.
        """
        blocking = self._selected_id or self._root_id
        entry = self._apply(
            mutations.add_node(
                self.current,
                blocking_id=blocking,
                title=title,
                separator=self._separator,
                fallback=self._fallback,
                default_title=self._default_title,
            )
        )
        if self._root_id is None:
            self._root_id = entry.target_id
        self._selected_id = entry.target_id
        return entry

    def retitle(self, node_id: str, title: str) -> MutationEntry:
        return self._apply(
            mutations.retitle_node(
                self.current,
                node_id,
                title,
                separator=self._separator,
                fallback=self._fallback,
            )
        )

    def rename(self, node_id: str, new_id: str) -> MutationEntry:
        return self._apply(mutations.rename_node(self.current, node_id, new_id))

    def describe(self, node_id: str, description: str) -> MutationEntry:
        return self._apply(mutations.set_description(self.current, node_id, description))

    def add_dependency(self, node_id: str, dependency_id: str) -> MutationEntry:
        return self._apply(mutations.add_dependency(self.current, node_id, dependency_id))

    def remove_dependency(self, node_id: str, dependency_id: str) -> MutationEntry:
        return self._apply(mutations.remove_dependency(self.current, node_id, dependency_id))

    def delete(self, node_id: str) -> MutationEntry:
        return self._apply(mutations.delete_node(self.current, node_id))

    # ─────────────────────────────────────────────────────────────────────
    # History
    # ─────────────────────────────────────────────────────────────────────

    def undo(self) -> TechTree:
        tree = self._history.undo()
        self._prune()
        return tree

    def redo(self) -> TechTree:
        tree = self._history.redo()
        self._prune()
        return tree

    def undo_all(self) -> TechTree:
        tree = self._history.undo_all()
        self._prune()
        return tree

    def load(self, tree: TechTree) -> None:
        """Replace the session with ``tree``: fresh history, no focus."""
        self._history.reset(tree)
        self._saved = tree
        self._root_id = None
        self._selected_id = None


__all__ = ["TreeEditor", "MERGEABLE_KINDS"]
