"""techtree.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: every edit goes through the TreeEditor in the
app state, and every rejection comes back as a JSON error payload. No graph
logic is duplicated here.

State pattern:
    _state = {"editor": editor, "tree_path": path, "config": config}
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from techtree.graph.editor import TreeEditor
from techtree.graph.errors import NotFoundError, TechTreeError
from techtree.graph.mutations import MutationEntry
from techtree.graph.serialize import (
    export_filename,
    serialize_node,
    serialize_tree,
    to_json,
    write_tree,
)
from techtree.graph.tree import (
    external_dependents,
    find_root_node_of,
    root_nodes,
    search_nodes,
    subgraph,
    validate,
)


def _serialize_entry(entry: MutationEntry) -> dict[str, Any]:
    """Serialize a MutationEntry (without its tree) for a response."""
    return {
        "id": entry.id,
        "kind": entry.kind.value,
        "target_id": entry.target_id,
        "previous_id": entry.previous_id,
        "timestamp": entry.timestamp.isoformat(),
    }


def _editor_status(editor: TreeEditor) -> dict[str, Any]:
    tree = editor.current
    history = editor.history
    return {
        "node_count": tree.node_count(),
        "root_count": len(root_nodes(tree)),
        "history_index": history.index,
        "history_length": len(history),
        "last_kind": history.last_kind.value if history.last_kind else None,
        "can_undo": editor.can_undo,
        "can_redo": editor.can_redo,
        "dirty": editor.dirty,
        "root_id": editor.root_id,
        "selected_id": editor.selected_id,
    }


def create_app(
    editor: TreeEditor,
    config: dict[str, Any],
    tree_path: Path | None = None,
) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        editor: Editing session to serve.
        config: techtree configuration dict.
        tree_path: File that /api/save writes to, if any.

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)

    CORS(app)

    # Disable browser caching (the tree changes with every edit)
    @app.after_request
    def _no_cache(response):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    _state: dict[str, Any] = {
        "editor": editor,
        "tree_path": tree_path,
        "config": config,
    }

    export_config = config.get("export", {})
    reject_cycles = bool(config.get("validation", {}).get("reject_cycles", False))

    def _mutate(action: Callable[[TreeEditor], MutationEntry]):
        """Run an edit and shape the response.

        Missing nodes map to 404, other rejections to 400.
        """
        ed: TreeEditor = _state["editor"]
        try:
            entry = action(ed)
        except NotFoundError as e:
            return jsonify({"success": False, "error": str(e)}), 404
        except TechTreeError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        return jsonify(
            {
                "success": True,
                "mutation": _serialize_entry(entry),
                "status": _editor_status(ed),
            }
        )

    def _history_response(ed: TreeEditor):
        return jsonify({"success": True, "status": _editor_status(ed)})

    def _json_object():
        """Request body as a dict. Returns (data, None) or (None, 400 response)."""
        data = request.get_json(force=True, silent=True)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            return None, (
                jsonify({"success": False, "error": "Request body must be a JSON object"}),
                400,
            )
        return data, None

    def _require(data: dict[str, Any], *keys: str):
        missing = [k for k in keys if not isinstance(data.get(k), str) or data.get(k) == ""]
        if missing:
            return jsonify({"success": False, "error": f"{', '.join(missing)} required"}), 400
        return None

    def _optional_strings(data: dict[str, Any], *keys: str):
        invalid = [k for k in keys if data.get(k) is not None and not isinstance(data.get(k), str)]
        if invalid:
            return (
                jsonify({"success": False, "error": f"{', '.join(invalid)} must be a string"}),
                400,
            )
        return None

    # ─────────────────────────────────────────────────────────────────
    # Read-only GET endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/status")
    def api_status():
        """GET /api/status - Tree size, history position, focus."""
        return jsonify(_editor_status(_state["editor"]))

    @app.route("/api/tree")
    def api_tree():
        """GET /api/tree - Active snapshot.

        Query parameters:
            canonical: 1 to sort nodes and dependencies by id
            reverse: 0 to omit dependedOnBy
        """
        canonical = request.args.get("canonical", "0") == "1"
        reverse = request.args.get("reverse", "1") != "0"
        return jsonify(
            serialize_tree(_state["editor"].current, canonical=canonical, include_reverse=reverse)
        )

    @app.route("/api/view")
    def api_view():
        """GET /api/view - The focused subgraph plus external dependents."""
        ed: TreeEditor = _state["editor"]
        view = ed.visible_tree()
        result = serialize_tree(view, canonical=False, include_reverse=True)
        result["root_id"] = ed.root_id
        result["selected_id"] = ed.selected_id
        result["external_dependents"] = external_dependents(ed.current, view)
        return jsonify(result)

    @app.route("/api/node/<node_id>")
    def api_node(node_id: str):
        """GET /api/node/<node_id> - One node, with dependents."""
        node = _state["editor"].current.find_by_id(node_id)
        if node is None:
            return jsonify({"error": f"Node '{node_id}' not found"}), 404
        return jsonify(serialize_node(node, include_reverse=True))

    @app.route("/api/roots")
    def api_roots():
        """GET /api/roots - Nodes nothing depends on."""
        roots = root_nodes(_state["editor"].current)
        return jsonify([{"id": r.id, "title": r.title} for r in roots])

    @app.route("/api/subgraph/<root_id>")
    def api_subgraph(root_id: str):
        """GET /api/subgraph/<root_id> - A root and everything it depends on."""
        try:
            view = subgraph(_state["editor"].current, root_id)
        except NotFoundError as e:
            return jsonify({"error": str(e)}), 404
        return jsonify(serialize_tree(view, canonical=False, include_reverse=True))

    @app.route("/api/root-of/<node_id>")
    def api_root_of(node_id: str):
        """GET /api/root-of/<node_id> - A root that reaches this node."""
        root_id = find_root_node_of(_state["editor"].current, node_id)
        if root_id is None:
            return jsonify({"error": f"No root found for '{node_id}'"}), 404
        return jsonify({"id": node_id, "root_id": root_id})

    @app.route("/api/search")
    def api_search():
        """GET /api/search?q=<term> - Title/description search."""
        term = request.args.get("q", "")
        nodes = search_nodes(_state["editor"].current, term)
        return jsonify([{"id": n.id, "title": n.title} for n in nodes])

    @app.route("/api/export")
    def api_export():
        """GET /api/export - Canonical JSON as a download."""
        text = to_json(
            _state["editor"].current,
            indent=export_config.get("indent", 2),
            include_reverse=bool(export_config.get("include_reverse", False)),
        )
        return Response(
            text,
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
        )

    # ─────────────────────────────────────────────────────────────────
    # Mutation POST endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/mutate/add", methods=["POST"])
    def api_mutate_add():
        """POST /api/mutate/add - Add a node under the selection.

        Optional ``title``; optional ``under`` selects the blocking node first.
        """
        data, error = _json_object()
        if error:
            return error
        error = _optional_strings(data, "title", "under")
        if error:
            return error
        title = data.get("title") or None
        under = data.get("under") or None

        def action(ed: TreeEditor) -> MutationEntry:
            if under is not None:
                ed.select(under)
            return ed.add_node(title)

        return _mutate(action)

    @app.route("/api/mutate/title", methods=["POST"])
    def api_mutate_title():
        """POST /api/mutate/title - Retitle a node (its id follows the title)."""
        data, error = _json_object()
        if error:
            return error
        error = _require(data, "node_id", "title")
        if error:
            return error
        return _mutate(lambda ed: ed.retitle(data["node_id"], data["title"]))

    @app.route("/api/mutate/rename", methods=["POST"])
    def api_mutate_rename():
        """POST /api/mutate/rename - Change a node id explicitly."""
        data, error = _json_object()
        if error:
            return error
        error = _require(data, "node_id", "new_id")
        if error:
            return error
        return _mutate(lambda ed: ed.rename(data["node_id"], data["new_id"]))

    @app.route("/api/mutate/description", methods=["POST"])
    def api_mutate_description():
        """POST /api/mutate/description - Replace a node's description."""
        data, error = _json_object()
        if error:
            return error
        error = _require(data, "node_id")
        if error:
            return error
        description = data.get("description", "")
        if not isinstance(description, str):
            return jsonify({"success": False, "error": "description must be a string"}), 400
        return _mutate(lambda ed: ed.describe(data["node_id"], description))

    @app.route("/api/mutate/dependency", methods=["POST"])
    def api_mutate_dependency():
        """POST /api/mutate/dependency - Add or remove a dependency.

        The ``action`` field selects the operation: "add" or "remove".
        """
        data, error = _json_object()
        if error:
            return error
        error = _require(data, "action", "node_id", "dependency_id")
        if error:
            return error

        node_id = data["node_id"]
        dependency_id = data["dependency_id"]
        if data["action"] == "add":
            return _mutate(lambda ed: ed.add_dependency(node_id, dependency_id))
        elif data["action"] == "remove":
            return _mutate(lambda ed: ed.remove_dependency(node_id, dependency_id))
        return jsonify({"success": False, "error": f"Unknown action: {data['action']}"}), 400

    @app.route("/api/mutate/delete", methods=["POST"])
    def api_mutate_delete():
        """POST /api/mutate/delete - Delete a node and references to it."""
        data, error = _json_object()
        if error:
            return error
        error = _require(data, "node_id")
        if error:
            return error
        return _mutate(lambda ed: ed.delete(data["node_id"]))

    @app.route("/api/select", methods=["POST"])
    def api_select():
        """POST /api/select - Set focus (``root_id``) and/or selection (``node_id``)."""
        data, error = _json_object()
        if error:
            return error
        error = _optional_strings(data, "root_id", "node_id")
        if error:
            return error
        ed: TreeEditor = _state["editor"]
        try:
            if "root_id" in data:
                ed.focus(data["root_id"])
            if "node_id" in data:
                ed.select(data["node_id"])
        except NotFoundError as e:
            return jsonify({"success": False, "error": str(e)}), 404
        return _history_response(ed)

    # ─────────────────────────────────────────────────────────────────
    # History endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/undo", methods=["POST"])
    def api_undo():
        """POST /api/undo - Step back one snapshot."""
        ed: TreeEditor = _state["editor"]
        ed.undo()
        return _history_response(ed)

    @app.route("/api/redo", methods=["POST"])
    def api_redo():
        """POST /api/redo - Step forward one snapshot."""
        ed: TreeEditor = _state["editor"]
        ed.redo()
        return _history_response(ed)

    @app.route("/api/undo-all", methods=["POST"])
    def api_undo_all():
        """POST /api/undo-all - Return to the first snapshot."""
        ed: TreeEditor = _state["editor"]
        ed.undo_all()
        return _history_response(ed)

    # ─────────────────────────────────────────────────────────────────
    # Persistence endpoints
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/load", methods=["POST"])
    def api_load():
        """POST /api/load - Replace the session with an uploaded tree.

        The body is the wire format; on any validation error the current
        session is left untouched.
        """
        data = request.get_json(force=True, silent=True)
        try:
            tree = validate(data, reject_cycles=reject_cycles)
        except TechTreeError as e:
            return jsonify({"success": False, "error": str(e)}), 400
        ed: TreeEditor = _state["editor"]
        ed.load(tree)
        return _history_response(ed)

    @app.route("/api/save", methods=["POST"])
    def api_save():
        """POST /api/save - Write the active snapshot to the tree file."""
        tree_file = _state["tree_path"]
        if tree_file is None:
            return jsonify({"success": False, "error": "No tree file configured"}), 409

        ed: TreeEditor = _state["editor"]
        try:
            write_tree(
                tree_file,
                ed.current,
                indent=export_config.get("indent", 2),
                include_reverse=bool(export_config.get("include_reverse", False)),
            )
        except OSError as e:
            return jsonify({"success": False, "error": str(e)}), 500
        ed.mark_saved()
        return jsonify({"success": True, "path": str(tree_file), "status": _editor_status(ed)})

    return app
