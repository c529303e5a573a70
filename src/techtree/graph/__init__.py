"""Graph module - Tech tree data structures, edits and history.

Exports:
- TechNode: A single work item
- TechTree: Immutable set of nodes with derived reverse edges
- validate / check_integrity: Input and integrity validation
- root_nodes, find_root_node_of, subgraph: Queries
- update_refs_to_id, delete_refs_to_id, canonicalize, clone: Transforms
- generate_id, generate_title: Identifier policy
- EditKind, MutationEntry: Edit results
- History: Undo/redo snapshots
- TreeEditor: Edit session driving the history
- Error classes from techtree.graph.errors

Note: edit functions live in techtree.graph.mutations
"""

from techtree.graph.editor import TreeEditor
from techtree.graph.errors import (
    CycleRejectedError,
    DanglingReferenceError,
    DuplicateDependencyError,
    DuplicateIdentifierError,
    MalformedInputError,
    NotFoundError,
    TechTreeError,
)
from techtree.graph.history import History
from techtree.graph.identifiers import generate_id, generate_title, slugify
from techtree.graph.mutations import EditKind, MutationEntry
from techtree.graph.TechNode import TechNode
from techtree.graph.tree import (
    TechTree,
    canonicalize,
    check_integrity,
    clone,
    delete_refs_to_id,
    find_root_node_of,
    root_nodes,
    subgraph,
    update_refs_to_id,
    validate,
)

__all__ = [
    "TechNode",
    "TechTree",
    "validate",
    "check_integrity",
    "root_nodes",
    "find_root_node_of",
    "subgraph",
    "update_refs_to_id",
    "delete_refs_to_id",
    "canonicalize",
    "clone",
    "slugify",
    "generate_id",
    "generate_title",
    "EditKind",
    "MutationEntry",
    "History",
    "TreeEditor",
    "TechTreeError",
    "MalformedInputError",
    "DuplicateIdentifierError",
    "DanglingReferenceError",
    "CycleRejectedError",
    "DuplicateDependencyError",
    "NotFoundError",
]
