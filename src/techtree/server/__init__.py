"""techtree.server - Flask REST API server for a local tree editor.

Provides a thin REST wrapper over a TreeEditor, so a browser UI can drive
edits, undo and redo while the Python core keeps the graph consistent.
"""

from techtree.server.app import create_app

__all__ = ["create_app"]
