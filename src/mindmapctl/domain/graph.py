"""Graph document model — nodes, connections, and the owning document.

Documents own their nodes and connections by value. Anything that hands a
document across a boundary (load, snapshot, save) copies it with
:meth:`GraphDocument.clone` so no two holders alias the same node.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from enum import StrEnum

from mindmapctl.domain.colors import (
    CONNECTION_STROKE,
    NODE_BACKGROUND,
    NODE_BORDER,
    NODE_TEXT,
    Color,
)

DEFAULT_DOCUMENT_TITLE = "Untitled mindmap"


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


class NodeShape(StrEnum):
    """Shape tags understood by the editor."""

    ROUNDED_RECTANGLE = "RoundedRectangle"
    RECTANGLE = "Rectangle"
    ELLIPSE = "Ellipse"
    DIAMOND = "Diamond"


FONT_FAMILIES: tuple[str, ...] = ("Segoe UI", "Calibri", "Arial", "Roboto", "Open Sans")


@dataclass
class Node:
    """A titled box on the canvas."""

    title: str = ""
    id: str = field(default_factory=new_id)
    description: str | None = None
    x: float = 0.0
    y: float = 0.0
    width: float = 220.0
    height: float = 120.0
    shape: str = NodeShape.ROUNDED_RECTANGLE.value
    background_color: Color = NODE_BACKGROUND
    border_color: Color = NODE_BORDER
    text_color: Color = NODE_TEXT
    font_size: float = 16.0
    font_family: str = "Segoe UI"
    tags: list[str] = field(default_factory=list)

    def clone(self) -> Node:
        return replace(self, tags=list(self.tags))


@dataclass
class Connection:
    """A directed link between two nodes of the same document."""

    source_id: str
    target_id: str
    id: str = field(default_factory=new_id)
    stroke_color: Color = CONNECTION_STROKE
    thickness: float = 2.0
    is_curved: bool = True
    dash_offset: float = 0.0
    # None means "no custom dash pattern", distinct from an empty pattern.
    dash_array: list[float] | None = None

    def clone(self) -> Connection:
        dash = list(self.dash_array) if self.dash_array is not None else None
        return replace(self, dash_array=dash)

    def touches(self, node_id: str) -> bool:
        """Whether *node_id* is this connection's source or target."""
        return self.source_id == node_id or self.target_id == node_id


@dataclass
class GraphDocument:
    """One mindmap: a title plus its nodes and connections."""

    title: str = DEFAULT_DOCUMENT_TITLE
    id: str = field(default_factory=new_id)
    owner_id: str | None = None
    nodes: list[Node] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)

    def clone(self) -> GraphDocument:
        return GraphDocument(
            title=self.title,
            id=self.id,
            owner_id=self.owner_id,
            nodes=[n.clone() for n in self.nodes],
            connections=[c.clone() for c in self.connections],
        )

    def find_node(self, node_id: str) -> Node | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_connection(self, connection_id: str) -> Connection | None:
        for connection in self.connections:
            if connection.id == connection_id:
                return connection
        return None

    def dangling_connections(self) -> list[Connection]:
        """Connections whose source or target is not a node of this document."""
        node_ids = {n.id for n in self.nodes}
        return [
            c
            for c in self.connections
            if c.source_id not in node_ids or c.target_id not in node_ids
        ]
