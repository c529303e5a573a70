"""Tests for the Flask REST API server."""

import json

import pytest

pytest.importorskip("flask")

from techtree.config import DEFAULT_CONFIG  # noqa: E402
from techtree.graph import TreeEditor  # noqa: E402
from techtree.server import create_app  # noqa: E402

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def editor(rocket_tree):
    """Editing session over the rocket tree."""
    return TreeEditor(rocket_tree)


@pytest.fixture
def app(editor, tmp_path):
    """Flask app saving to a temporary file."""
    app = create_app(editor, DEFAULT_CONFIG, tree_path=tmp_path / "tree.json")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()


def post(client, url, payload=None):
    return client.post(url, data=json.dumps(payload or {}), content_type="application/json")


# ─────────────────────────────────────────────────────────────────────────────
# App factory
# ─────────────────────────────────────────────────────────────────────────────


class TestAppFactory:
    """Tests for create_app()."""

    def test_cors_headers(self, client):
        """CORS is enabled for cross-origin requests."""
        origin = "http://localhost:3000"
        response = client.get("/api/status", headers={"Origin": origin})
        assert response.status_code == 200
        # Older flask-cors answers "*", newer releases echo the origin
        assert response.headers.get("Access-Control-Allow-Origin") in {"*", origin}

    def test_cors_preflight(self, client):
        """OPTIONS preflight requests get CORS headers."""
        response = client.options(
            "/api/mutate/add",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )
        assert response.status_code == 200
        assert "Access-Control-Allow-Origin" in response.headers

    def test_no_cache(self, client):
        """Responses are not cached."""
        response = client.get("/api/status")
        assert "no-store" in response.headers["Cache-Control"]


# ─────────────────────────────────────────────────────────────────────────────
# Read-only endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestReadEndpoints:
    """Tests for GET endpoints."""

    def test_status(self, client):
        """Status reports size and history position."""
        data = client.get("/api/status").get_json()
        assert data["node_count"] == 5
        assert data["root_count"] == 2
        assert data["history_index"] == 0
        assert data["can_undo"] is False
        assert data["dirty"] is False

    def test_tree(self, client):
        """The tree comes back in stored order with reverse edges."""
        data = client.get("/api/tree").get_json()
        assert [n["id"] for n in data["nodes"]][0] == "rocket"
        assert data["nodes"][0]["dependedOnBy"] == []

    def test_tree_canonical(self, client):
        """canonical=1 sorts; reverse=0 drops dependedOnBy."""
        data = client.get("/api/tree?canonical=1&reverse=0").get_json()
        assert data["nodes"][0]["id"] == "engine"
        assert "dependedOnBy" not in data["nodes"][0]

    def test_node(self, client):
        """A single node includes its dependents."""
        data = client.get("/api/node/metal").get_json()
        assert data["dependedOnBy"] == ["engine", "satellite"]

    def test_node_missing(self, client):
        """Unknown nodes return 404."""
        assert client.get("/api/node/ghost").status_code == 404

    def test_roots(self, client):
        """Roots list ids and titles."""
        data = client.get("/api/roots").get_json()
        assert [r["id"] for r in data] == ["rocket", "satellite"]

    def test_subgraph(self, client):
        """A subgraph holds the root and its dependencies."""
        data = client.get("/api/subgraph/satellite").get_json()
        assert {n["id"] for n in data["nodes"]} == {"satellite", "metal"}
        assert client.get("/api/subgraph/ghost").status_code == 404

    def test_root_of(self, client):
        """root-of finds the nearest root."""
        assert client.get("/api/root-of/engine").get_json()["root_id"] == "rocket"
        assert client.get("/api/root-of/ghost").status_code == 404

    def test_search(self, client):
        """Search matches titles and descriptions."""
        data = client.get("/api/search?q=hydrogen").get_json()
        assert data == [{"id": "fuel", "title": "Rocket Fuel"}]

    def test_export(self, client):
        """Export is canonical JSON offered as a download."""
        response = client.get("/api/export")
        assert response.mimetype == "application/json"
        assert 'filename="tech-tree-' in response.headers["Content-Disposition"]
        assert json.loads(response.data)["nodes"][0]["id"] == "engine"

    def test_view(self, client):
        """The view follows focus and lists outside dependents."""
        post(client, "/api/select", {"root_id": "rocket"})
        data = client.get("/api/view").get_json()
        assert data["root_id"] == "rocket"
        assert len(data["nodes"]) == 4
        assert data["external_dependents"] == {"metal": ["satellite"]}


# ─────────────────────────────────────────────────────────────────────────────
# Mutation endpoints
# ─────────────────────────────────────────────────────────────────────────────


class TestMutationEndpoints:
    """Tests for POST /api/mutate/* endpoints."""

    def test_add(self, client, editor):
        """Adding under a node links it and selects the new node."""
        response = post(client, "/api/mutate/add", {"title": "Launch Pad", "under": "rocket"})
        data = response.get_json()
        assert data["success"] is True
        assert data["mutation"]["kind"] == "add-node"
        assert data["mutation"]["target_id"] == "launch-pad"
        assert data["status"]["selected_id"] == "launch-pad"
        assert editor.current.get("rocket").depends_on[-1] == "launch-pad"

    def test_add_under_missing(self, client):
        """Adding under a missing node is a 404."""
        response = post(client, "/api/mutate/add", {"under": "ghost"})
        assert response.status_code == 404
        assert response.get_json()["success"] is False

    def test_title(self, client, editor):
        """Retitling changes the id and merges consecutive edits."""
        post(client, "/api/mutate/title", {"node_id": "fuel", "title": "P"})
        data = post(client, "/api/mutate/title", {"node_id": "p", "title": "Propellant"}).get_json()
        assert data["mutation"]["previous_id"] == "p"
        assert data["mutation"]["target_id"] == "propellant"
        assert data["status"]["history_length"] == 2
        assert data["status"]["last_kind"] == "set-title"

    def test_rename_duplicate(self, client):
        """Renaming onto an existing id is a 400."""
        response = post(client, "/api/mutate/rename", {"node_id": "fuel", "new_id": "metal"})
        assert response.status_code == 400
        assert "already exists" in response.get_json()["error"]

    def test_description(self, client, editor):
        """Descriptions are replaced."""
        post(client, "/api/mutate/description", {"node_id": "metal", "description": "Forging"})
        assert editor.current.get("metal").description == "Forging"

    def test_description_must_be_string(self, client):
        """Non-string descriptions are rejected."""
        response = post(client, "/api/mutate/description", {"node_id": "metal", "description": 3})
        assert response.status_code == 400

    def test_dependency_add_remove(self, client, editor):
        """Dependencies can be added and removed."""
        payload = {"action": "add", "node_id": "satellite", "dependency_id": "fuel"}
        assert post(client, "/api/mutate/dependency", payload).status_code == 200
        assert editor.current.get("fuel").depended_on_by == ("rocket", "satellite")

        payload["action"] = "remove"
        assert post(client, "/api/mutate/dependency", payload).status_code == 200
        assert editor.current.get("fuel").depended_on_by == ("rocket",)

    def test_dependency_cycle(self, client, editor):
        """Cyclic dependencies are rejected with 400."""
        payload = {"action": "add", "node_id": "metal", "dependency_id": "rocket"}
        response = post(client, "/api/mutate/dependency", payload)
        assert response.status_code == 400
        assert "cycle" in response.get_json()["error"]
        assert len(editor.history) == 1

    def test_dependency_unknown_action(self, client):
        """Unknown dependency actions are rejected."""
        payload = {"action": "toggle", "node_id": "metal", "dependency_id": "fuel"}
        assert post(client, "/api/mutate/dependency", payload).status_code == 400

    def test_delete(self, client, editor):
        """Deleting removes the node and references to it."""
        assert post(client, "/api/mutate/delete", {"node_id": "metal"}).status_code == 200
        assert editor.current.get("engine").depends_on == ()

    def test_missing_fields(self, client):
        """Required fields are checked."""
        response = post(client, "/api/mutate/delete", {})
        assert response.status_code == 400
        assert "node_id required" in response.get_json()["error"]

    def test_only_missing_fields_reported(self, client):
        """The error names just the fields that are missing."""
        payload = {"action": "add", "node_id": "metal"}
        response = post(client, "/api/mutate/dependency", payload)
        assert response.status_code == 400
        assert response.get_json()["error"] == "dependency_id required"


class TestMalformedBodies:
    """Malformed request bodies are rejected with 400, never 500."""

    @pytest.mark.parametrize(
        "url",
        [
            "/api/mutate/add",
            "/api/mutate/title",
            "/api/mutate/rename",
            "/api/mutate/description",
            "/api/mutate/dependency",
            "/api/mutate/delete",
            "/api/select",
        ],
    )
    def test_array_body(self, client, editor, url):
        """A JSON array instead of an object is a 400."""
        response = post(client, url, ["metal"])
        assert response.status_code == 400
        data = response.get_json()
        assert data["success"] is False
        assert "JSON object" in data["error"]
        assert editor.current.node_count() == 5

    def test_non_string_title(self, client, editor):
        """A non-string title on add is a 400."""
        response = post(client, "/api/mutate/add", {"title": 5})
        assert response.status_code == 400
        assert response.get_json()["error"] == "title must be a string"
        assert len(editor.history) == 1

    def test_non_string_under(self, client, editor):
        """A non-string blocking node on add is a 400."""
        response = post(client, "/api/mutate/add", {"under": ["rocket"]})
        assert response.status_code == 400
        assert response.get_json()["error"] == "under must be a string"
        assert editor.selected_id is None

    def test_non_string_selection(self, client, editor):
        """Selection ids must be strings or null."""
        response = post(client, "/api/select", {"node_id": {"id": "fuel"}})
        assert response.status_code == 400
        assert post(client, "/api/select", {"node_id": None}).status_code == 200

    def test_non_string_required_field(self, client):
        """Required fields of the wrong type are reported as missing."""
        response = post(client, "/api/mutate/title", {"node_id": "fuel", "title": 7})
        assert response.status_code == 400
        assert response.get_json()["error"] == "title required"

    def test_invalid_json_text(self, client):
        """Unparseable bodies are treated as empty and fail field checks."""
        response = client.post(
            "/api/mutate/delete", data="{not json", content_type="application/json"
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "node_id required"

    def test_load_array_body(self, client, editor):
        """Loading something other than a tree object is a 400."""
        response = post(client, "/api/load", ["metal"])
        assert response.status_code == 400
        assert editor.current.node_count() == 5


# ─────────────────────────────────────────────────────────────────────────────
# Selection, history and persistence
# ─────────────────────────────────────────────────────────────────────────────


class TestSessionEndpoints:
    """Tests for select, undo/redo, load and save."""

    def test_select(self, client, editor):
        """Selecting outside the focus refocuses."""
        post(client, "/api/select", {"root_id": "satellite"})
        data = post(client, "/api/select", {"node_id": "fuel"}).get_json()
        assert data["status"]["root_id"] == "rocket"
        assert data["status"]["selected_id"] == "fuel"

    def test_select_missing(self, client):
        """Selecting a missing node is a 404."""
        assert post(client, "/api/select", {"node_id": "ghost"}).status_code == 404

    def test_undo_redo(self, client, editor):
        """Undo and redo move through history."""
        post(client, "/api/mutate/delete", {"node_id": "fuel"})
        data = post(client, "/api/undo").get_json()
        assert data["status"]["can_redo"] is True
        assert "fuel" in editor.current
        post(client, "/api/redo")
        assert "fuel" not in editor.current

    def test_undo_all(self, client, editor, rocket_tree):
        """undo-all returns to the first snapshot."""
        post(client, "/api/mutate/delete", {"node_id": "fuel"})
        post(client, "/api/mutate/delete", {"node_id": "metal"})
        post(client, "/api/undo-all")
        assert editor.current == rocket_tree

    def test_load(self, client, editor):
        """Loading a valid tree replaces the session."""
        tree = {"nodes": [{"id": "x", "title": "X", "description": "", "dependsOn": []}]}
        data = post(client, "/api/load", tree).get_json()
        assert data["status"]["node_count"] == 1
        assert editor.current.node_ids() == ["x"]

    def test_load_invalid(self, client, editor):
        """Invalid uploads are rejected and leave the session alone."""
        tree = {"nodes": [{"id": "x", "title": "X", "description": "", "dependsOn": ["y"]}]}
        response = post(client, "/api/load", tree)
        assert response.status_code == 400
        assert editor.current.node_count() == 5

    def test_save(self, client, editor, tmp_path):
        """Saving writes canonical JSON and clears dirty."""
        post(client, "/api/mutate/delete", {"node_id": "fuel"})
        assert client.get("/api/status").get_json()["dirty"] is True

        data = post(client, "/api/save").get_json()
        assert data["success"] is True
        assert data["status"]["dirty"] is False
        saved = json.loads((tmp_path / "tree.json").read_text(encoding="utf-8"))
        assert [n["id"] for n in saved["nodes"]] == ["engine", "metal", "rocket", "satellite"]

    def test_save_without_path(self, rocket_tree):
        """Without a tree file, save is a conflict."""
        client = create_app(TreeEditor(rocket_tree), DEFAULT_CONFIG).test_client()
        assert post(client, "/api/save").status_code == 409
