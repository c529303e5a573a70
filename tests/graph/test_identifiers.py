"""Tests for id and title generation."""

import pytest

from techtree.graph import TechNode, TechTree, generate_id, generate_title, slugify


def tree_with(*ids, titles=None):
    titles = titles or {}
    return TechTree(nodes=tuple(TechNode(id=i, title=titles.get(i, i)) for i in ids))


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("Build the Rocket!", "build-the-rocket"),
            ("  --Hello__World--  ", "hello-world"),
            ("Stage 2", "stage-2"),
            ("Über Engine", "ber-engine"),
            ("!!!", ""),
            ("", ""),
        ],
    )
    def test_slugs(self, text, expected):
        """Runs of non-alphanumerics collapse to one separator."""
        assert slugify(text) == expected

    def test_custom_separator(self):
        """The separator is configurable."""
        assert slugify("Big Rocket", separator="_") == "big_rocket"


class TestGenerateId:
    """Tests for generate_id()."""

    def test_from_title(self):
        """A free slug is used as is."""
        assert generate_id(TechTree(), "Rocket Fuel") == "rocket-fuel"

    def test_suffix_when_taken(self):
        """Taken ids get a numeric suffix starting at 2."""
        assert generate_id(tree_with("fuel"), "Fuel") == "fuel-2"
        assert generate_id(tree_with("fuel", "fuel-2"), "Fuel") == "fuel-3"

    def test_fills_first_gap(self):
        """The first free suffix is used."""
        assert generate_id(tree_with("fuel", "fuel-3"), "Fuel") == "fuel-2"

    def test_fallback_for_empty_slug(self):
        """Titles without alphanumerics use the fallback id."""
        assert generate_id(TechTree(), "???") == "node"
        assert generate_id(tree_with("node"), "") == "node-2"
        assert generate_id(TechTree(), "", fallback="item") == "item"

    def test_custom_separator(self):
        """The separator also precedes the suffix."""
        tree = tree_with("big_rocket")
        assert generate_id(tree, "Big Rocket", separator="_") == "big_rocket_2"

    def test_never_empty(self):
        """Generated ids are never blank."""
        for title in ["", " ", "-", "Ω"]:
            assert generate_id(TechTree(), title).strip()


class TestGenerateTitle:
    """Tests for generate_title()."""

    def test_default(self):
        """An empty tree gets the plain default title."""
        assert generate_title(TechTree()) == "New Node"

    def test_disambiguated(self):
        """Existing default titles push the number up."""
        tree = tree_with("a", "b", titles={"a": "New Node", "b": "New Node 2"})
        assert generate_title(tree) == "New Node 3"

    def test_blocking_id_does_not_change_title(self):
        """The blocking node is accepted but not used in the text."""
        tree = tree_with("a")
        assert generate_title(tree, "a") == "New Node"

    def test_custom_base(self):
        """The base title is configurable."""
        tree = tree_with("t", titles={"t": "Task"})
        assert generate_title(tree, base="Task") == "Task 2"
