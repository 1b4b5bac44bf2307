"""Tests for node keyword search."""

from mindmapctl.domain.graph import Node
from mindmapctl.domain.search import search_nodes

NODES = [
    Node(title="Analytical Engine", description="General purpose"),
    Node(title="Notes", description="Bernoulli numbers by ENGINE"),
    Node(title="Poetry"),
]


class TestSearchNodes:
    def test_case_insensitive_title_and_description(self) -> None:
        titles = [n.title for n in search_nodes(NODES, "engine")]
        assert titles == ["Analytical Engine", "Notes"]

    def test_no_match(self) -> None:
        assert search_nodes(NODES, "loom") == []

    def test_blank_keyword_matches_all(self) -> None:
        assert search_nodes(NODES, "  ") == NODES
        assert search_nodes(NODES, None) == NODES
