"""History - Linear undo/redo over immutable tree snapshots.

The history is a list of TechTree snapshots plus a current index. Recording
a new snapshot drops everything after the index (no redo across a new
edit). Consecutive edits of the same kind can be coalesced into one
snapshot, so typing a title does not produce one undo step per keystroke.

Example:
    >>> history = History(tree)
    >>> history.record(entry.tree, EditKind.SET_TITLE, allow_merge=True)
    False
    >>> history.record(entry2.tree, EditKind.SET_TITLE, allow_merge=True)
    True
    >>> len(history)
    2
"""

from __future__ import annotations

from techtree.graph.mutations import EditKind
from techtree.graph.tree import TechTree


class History:
    """Undo/redo stack of tree snapshots.

    Attributes:
        index: Position of the active snapshot (0-based).
        last_kind: Kind of the most recent recorded edit, or None after
            creation, undo, redo, undo_all and reset.
    """

    def __init__(self, initial: TechTree) -> None:
        """Start a history with ``initial`` as its only snapshot."""
        self._snapshots: list[TechTree] = [initial]
        self._index = 0
        self._last_kind: EditKind | None = None

    @property
    def current(self) -> TechTree:
        """The active snapshot."""
        return self._snapshots[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def last_kind(self) -> EditKind | None:
        return self._last_kind

    @property
    def snapshots(self) -> tuple[TechTree, ...]:
        """All snapshots, including any that can be redone."""
        return tuple(self._snapshots)

    def __len__(self) -> int:
        """Return the number of snapshots."""
        return len(self._snapshots)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._snapshots) - 1

    def record(self, tree: TechTree, kind: EditKind, allow_merge: bool = False) -> bool:
        """Record ``tree`` as the new active snapshot.

        Args:
            tree: The tree produced by an accepted edit.
            kind: Kind of that edit.
            allow_merge: Replace the active snapshot instead of appending
                when the previous edit had the same kind.

        Returns:
            True if the snapshot was merged into the active one.
        """
        merged = allow_merge and kind == self._last_kind
        if merged:
            self._snapshots[self._index] = tree
        else:
            del self._snapshots[self._index + 1 :]
            self._snapshots.append(tree)
            self._index += 1
        self._last_kind = kind
        return merged

    def undo(self) -> TechTree:
        """Step back one snapshot. No-op at the first snapshot."""
        if self._index > 0:
            self._index -= 1
            self._last_kind = None
        return self.current

    def redo(self) -> TechTree:
        """Step forward one snapshot. No-op at the last snapshot."""
        if self._index < len(self._snapshots) - 1:
            self._index += 1
            self._last_kind = None
        return self.current

    def undo_all(self) -> TechTree:
        """Return to the first snapshot. Later snapshots stay redoable."""
        self._index = 0
        self._last_kind = None
        return self.current

    def reset(self, tree: TechTree) -> None:
        """Discard all snapshots and start again from ``tree``."""
        self._snapshots = [tree]
        self._index = 0
        self._last_kind = None


__all__ = ["History"]
