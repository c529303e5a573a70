"""
techtree - Dependency graphs of work items, with undo/redo editing

A tech tree is a set of nodes, each naming the nodes it depends on. techtree
keeps that graph acyclic and referentially sound through every edit, and
records edits in a linear history that can be undone and redone.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("techtree")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from techtree.graph import (
    History,
    TechNode,
    TechTree,
    TechTreeError,
    TreeEditor,
    validate,
)

__all__ = [
    "__version__",
    "History",
    "TechNode",
    "TechTree",
    "TechTreeError",
    "TreeEditor",
    "validate",
]
