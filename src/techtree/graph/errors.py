"""Error taxonomy for tech tree operations.

Every error raised by the graph model, the edit functions and the history
is a subclass of TechTreeError, so collaborators can catch one type and
surface ``str(error)`` to the user. None of them is raised after a value
has been partially changed: edits build a new tree, check it, and only
then hand it back.
"""

from __future__ import annotations


class TechTreeError(Exception):
    """Base exception for tech tree operations."""


class MalformedInputError(TechTreeError, ValueError):
    """Raised when raw input does not have the shape of a tech tree."""


class DuplicateIdentifierError(TechTreeError, ValueError):
    """Raised when two nodes would share the same id."""

    def __init__(self, node_id: str, message: str | None = None):
        self.node_id = node_id
        super().__init__(message or f"Duplicate node id: {node_id}")


class DanglingReferenceError(TechTreeError, ValueError):
    """Raised when a node depends on an id that is not in the tree."""

    def __init__(self, source_id: str, target_id: str):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Node {source_id} depends on non-existent node: {target_id}")


class CycleRejectedError(TechTreeError, ValueError):
    """Raised when an edge would make the dependency graph cyclic."""

    def __init__(self, source_id: str, target_id: str, message: str | None = None):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(
            message
            or f"Adding dependency {source_id} -> {target_id} would create a cycle"
        )


class DuplicateDependencyError(TechTreeError, ValueError):
    """Raised when a dependency edge already exists."""

    def __init__(self, source_id: str, target_id: str):
        self.source_id = source_id
        self.target_id = target_id
        super().__init__(f"Node {source_id} already depends on {target_id}")


class NotFoundError(TechTreeError, KeyError):
    """Raised when an operation targets a node or edge that does not exist."""

    def __init__(self, node_id: str, message: str | None = None):
        self.node_id = node_id
        self.message = message or f"Node '{node_id}' not found"
        super().__init__(self.message)

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.message


__all__ = [
    "TechTreeError",
    "MalformedInputError",
    "DuplicateIdentifierError",
    "DanglingReferenceError",
    "CycleRejectedError",
    "DuplicateDependencyError",
    "NotFoundError",
]
