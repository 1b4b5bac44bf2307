"""Generated outlines — the shape a document generator hands back.

A generator returns a loose JSON object::

    {
      "title": "...",
      "nodes": [{"title": "...", "description": "...", "color": "#E3F2FD",
                 "x": 0, "y": 0}],
      "connections": [{"sourceTitle": "...", "targetTitle": "..."}]
    }

Connections refer to nodes by title; links naming an unknown title are
dropped so the resulting document never contains dangling connections.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError

from mindmapctl.domain.colors import NODE_BACKGROUND, Color
from mindmapctl.domain.graph import Connection, GraphDocument, Node
from mindmapctl.domain.snapshot import CaseInsensitiveModel


class OutlineError(ValueError):
    """The generator's payload could not be understood."""


class OutlineNode(CaseInsensitiveModel):
    title: str
    description: str | None = None
    color: str | None = None
    x: float = 0.0
    y: float = 0.0


class OutlineConnection(CaseInsensitiveModel):
    source_title: str
    target_title: str


class Outline(CaseInsensitiveModel):
    title: str | None = None
    nodes: list[OutlineNode] = Field(default_factory=list)
    connections: list[OutlineConnection] = Field(default_factory=list)


def _node_color(raw: str | None) -> Color:
    text = (raw or "").strip()
    if not text:
        return NODE_BACKGROUND
    if not text.startswith("#"):
        text = "#" + text
    return Color.from_hex(text)


def document_from_outline(payload: dict[str, Any], *, topic: str | None = None) -> GraphDocument:
    """Build a fresh document (new ids, no owner) from a generator payload.

    Raises:
        OutlineError: If *payload* does not match the outline shape.
    """
    try:
        outline = Outline.model_validate(payload)
        nodes_by_title: dict[str, Node] = {}
        nodes: list[Node] = []
        for item in outline.nodes:
            background = _node_color(item.color)
            node = Node(
                title=item.title,
                description=item.description,
                x=item.x,
                y=item.y,
                background_color=background,
                border_color=background.darken(),
            )
            nodes.append(node)
            nodes_by_title[item.title] = node
    except (ValidationError, ValueError) as exc:
        msg = f"Unusable outline: {exc}"
        raise OutlineError(msg) from exc

    connections: list[Connection] = []
    for link in outline.connections:
        source = nodes_by_title.get(link.source_title)
        target = nodes_by_title.get(link.target_title)
        if source is None or target is None or source is target:
            continue
        connections.append(Connection(source_id=source.id, target_id=target.id))

    title = outline.title or (f"Mindmap about {topic}" if topic else "Generated mindmap")
    return GraphDocument(title=title, nodes=nodes, connections=connections)
