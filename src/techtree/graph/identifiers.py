"""Identifier policy - ids and default titles for new or retitled nodes.

Ids are derived from titles: ``"Build the Rocket!"`` becomes
``"build-the-rocket"``. When an id is taken, a numeric suffix is appended
(``"build-the-rocket-2"``, ``"build-the-rocket-3"``, ...).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from techtree.graph.tree import TechTree

DEFAULT_SEPARATOR = "-"
DEFAULT_FALLBACK_ID = "node"
DEFAULT_TITLE = "New Node"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str, separator: str = DEFAULT_SEPARATOR) -> str:
    """Lower-case ``text`` and collapse runs of non-alphanumerics.

    Args:
        text: Arbitrary text, usually a node title.
        separator: Replacement for each run of non-alphanumeric characters.

    Returns:
        The slug, with no leading or trailing separator. May be empty.
    """
    slug = _NON_ALNUM.sub(separator, text.lower())
    if separator:
        slug = slug.strip(separator)
    return slug


def generate_id(
    tree: TechTree,
    title: str,
    separator: str = DEFAULT_SEPARATOR,
    fallback: str = DEFAULT_FALLBACK_ID,
) -> str:
    """Generate an id for ``title`` that is unique within ``tree``.

    Every id in the tree counts as taken, including the id of a node that
    is being retitled.

    Args:
        tree: The tree the id must be unique in.
        title: Human-readable title to derive the id from.
        separator: Slug separator, also used before the numeric suffix.
        fallback: Base id when the title has no alphanumeric characters.

    Returns:
        A non-empty id not present in ``tree``.
    """
    base = slugify(title, separator) or fallback
    if not tree.has_node(base):
        return base

    suffix = 2
    while tree.has_node(f"{base}{separator}{suffix}"):
        suffix += 1
    return f"{base}{separator}{suffix}"


def generate_title(
    tree: TechTree,
    blocking_id: str | None = None,
    base: str = DEFAULT_TITLE,
) -> str:
    """Default title for a new node, unique among the tree's titles.

    ``blocking_id`` is accepted for callers that pass the node the new one
    will be linked under; it does not change the generated text.
    """
    titles = {node.title for node in tree.nodes}
    if base not in titles:
        return base

    suffix = 2
    while f"{base} {suffix}" in titles:
        suffix += 1
    return f"{base} {suffix}"
