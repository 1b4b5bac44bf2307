"""Keyword search over node titles and descriptions."""

from __future__ import annotations

from collections.abc import Iterable

from mindmapctl.domain.graph import Node


def search_nodes(nodes: Iterable[Node], keyword: str | None) -> list[Node]:
    """Case-insensitive substring match on title or description.

    A blank keyword matches every node.
    """
    items = list(nodes)
    if keyword is None or not keyword.strip():
        return items

    needle = keyword.strip().casefold()
    return [
        n
        for n in items
        if needle in n.title.casefold() or (n.description and needle in n.description.casefold())
    ]
