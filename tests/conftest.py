"""Pytest fixtures shared by the techtree tests."""

import json
import os

import pytest


def make_node(node_id, title=None, description="", depends_on=()):
    """Raw wire-format node dict."""
    return {
        "id": node_id,
        "title": node_id.upper() if title is None else title,
        "description": description,
        "dependsOn": list(depends_on),
    }


@pytest.fixture
def single_node_tree():
    """Tree with one node: a."""
    from techtree.graph import validate

    return validate({"nodes": [make_node("a", title="A")]})


@pytest.fixture
def rocket_raw():
    """Raw data for a two-root tree.

    rocket -> engine -> metal
    rocket -> fuel
    satellite -> metal
    """
    return {
        "nodes": [
            make_node("rocket", title="Rocket", depends_on=["engine", "fuel"]),
            make_node("engine", title="Engine", depends_on=["metal"]),
            make_node("fuel", title="Rocket Fuel", description="Liquid hydrogen"),
            make_node("metal", title="Metal Working"),
            make_node("satellite", title="Satellite", depends_on=["metal"]),
        ]
    }


@pytest.fixture
def rocket_tree(rocket_raw):
    """Validated two-root tree (see rocket_raw)."""
    from techtree.graph import validate

    return validate(rocket_raw)


@pytest.fixture
def rocket_file(tmp_path, rocket_raw):
    """rocket_raw written to tree.json."""
    path = tmp_path / "tree.json"
    path.write_text(json.dumps(rocket_raw, indent=2), encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep TECHTREE_* variables from the developer's shell out of tests."""
    for name in list(os.environ):
        if name.startswith("TECHTREE_"):
            monkeypatch.delenv(name, raising=False)
