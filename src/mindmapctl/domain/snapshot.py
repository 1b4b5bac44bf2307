"""Snapshot codec — the JSON stored in ``documents.content``.

Layout::

    {"id": ..., "nodes": [...], "connections": [...]}

Keys are written camelCase and read case-insensitively so hand-edited or
older files still load. The document title lives in its own column and is
not part of the snapshot.

Colors are stored as ``#AARRGGBB``. ``dashArray`` is written as ``null``
when a connection has no custom dash pattern so that "absent" and "empty"
stay distinguishable after a round-trip.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from mindmapctl.domain.colors import BLACK, WHITE, Color
from mindmapctl.domain.graph import Connection, GraphDocument, Node, NodeShape


class SnapshotDecodeError(ValueError):
    """Stored content could not be turned back into a document."""


class CaseInsensitiveModel(BaseModel):
    """Base for payloads read with camelCase aliases in any letter case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _fold_keys(cls, data: Any) -> Any:
        """Map keys of any casing onto the camelCase aliases."""
        if not isinstance(data, dict):
            return data
        lookup: dict[str, str] = {}
        for name, info in cls.model_fields.items():
            alias = info.alias or name
            lookup[alias.lower()] = alias
            lookup[name.lower()] = alias
        return {lookup.get(str(key).lower(), key): value for key, value in data.items()}


class StoredNode(CaseInsensitiveModel):
    id: str
    title: str = ""
    description: str | None = None
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    shape: str = NodeShape.ROUNDED_RECTANGLE.value
    background_color: str = WHITE.to_hex()
    border_color: str = BLACK.to_hex()
    text_color: str = BLACK.to_hex()
    font_size: float = 0.0
    font_family: str = ""
    tags: list[str] | None = None


class StoredConnection(CaseInsensitiveModel):
    id: str
    source_id: str
    target_id: str
    stroke_color: str = BLACK.to_hex()
    thickness: float = 0.0
    is_curved: bool = False
    dash_offset: float = 0.0
    dash_array: list[float] | None = None


class StoredDocument(CaseInsensitiveModel):
    id: str | None = None
    nodes: list[StoredNode] = Field(default_factory=list)
    connections: list[StoredConnection] = Field(default_factory=list)

    @field_validator("nodes", "connections", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ---------------------------------------------------------------------------
# Document <-> stored form
# ---------------------------------------------------------------------------


def _store_node(node: Node) -> StoredNode:
    return StoredNode(
        id=node.id,
        title=node.title,
        description=node.description,
        x=node.x,
        y=node.y,
        width=node.width,
        height=node.height,
        shape=node.shape,
        background_color=node.background_color.to_hex(),
        border_color=node.border_color.to_hex(),
        text_color=node.text_color.to_hex(),
        font_size=node.font_size,
        font_family=node.font_family,
        tags=list(node.tags),
    )


def _store_connection(connection: Connection) -> StoredConnection:
    return StoredConnection(
        id=connection.id,
        source_id=connection.source_id,
        target_id=connection.target_id,
        stroke_color=connection.stroke_color.to_hex(),
        thickness=connection.thickness,
        is_curved=connection.is_curved,
        dash_offset=connection.dash_offset,
        dash_array=list(connection.dash_array) if connection.dash_array is not None else None,
    )


def _load_node(stored: StoredNode) -> Node:
    return Node(
        id=stored.id,
        title=stored.title,
        description=stored.description,
        x=stored.x,
        y=stored.y,
        width=stored.width,
        height=stored.height,
        shape=stored.shape,
        background_color=Color.from_hex(stored.background_color),
        border_color=Color.from_hex(stored.border_color),
        text_color=Color.from_hex(stored.text_color),
        font_size=stored.font_size,
        font_family=stored.font_family,
        tags=list(stored.tags or []),
    )


def _load_connection(stored: StoredConnection) -> Connection:
    return Connection(
        id=stored.id,
        source_id=stored.source_id,
        target_id=stored.target_id,
        stroke_color=Color.from_hex(stored.stroke_color),
        thickness=stored.thickness,
        is_curved=stored.is_curved,
        dash_offset=stored.dash_offset,
        dash_array=list(stored.dash_array) if stored.dash_array is not None else None,
    )


def serialize(document: GraphDocument) -> str:
    """Encode the full node/connection set of *document* as snapshot JSON."""
    stored = StoredDocument(
        id=document.id,
        nodes=[_store_node(n) for n in document.nodes],
        connections=[_store_connection(c) for c in document.connections],
    )
    return stored.model_dump_json(by_alias=True)


def deserialize(
    content: str,
    *,
    title: str,
    owner_id: str | None = None,
    document_id: str | None = None,
) -> GraphDocument:
    """Decode snapshot JSON into a :class:`GraphDocument`.

    *document_id* (the row key) wins over the id embedded in the snapshot.

    Raises:
        SnapshotDecodeError: If *content* is not valid snapshot JSON.
    """
    try:
        raw = json.loads(content) if content.strip() else {}
        stored = StoredDocument.model_validate(raw)
        nodes = [_load_node(n) for n in stored.nodes]
        connections = [_load_connection(c) for c in stored.connections]
    except (ValidationError, ValueError) as exc:
        msg = f"Malformed document snapshot: {exc}"
        raise SnapshotDecodeError(msg) from exc

    resolved_id = document_id or stored.id
    if not resolved_id:
        msg = "Document snapshot carries no id"
        raise SnapshotDecodeError(msg)

    return GraphDocument(
        title=title,
        id=resolved_id,
        owner_id=owner_id,
        nodes=nodes,
        connections=connections,
    )
