"""Live graph — the in-memory document being edited, plus its change stream.

Every mutation goes through :class:`LiveGraph`, which emits one
:class:`GraphChange` per observable change to its subscribers. Autosave
listens to this stream instead of watching individual objects.

INVARIANT: Removing a node removes every connection that references it,
in the same call, before any subscriber is notified of the node removal.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from dataclasses import fields as dataclass_fields
from enum import StrEnum
from typing import Any

from mindmapctl.domain.graph import Connection, GraphDocument, Node


class ChangeKind(StrEnum):
    TITLE_CHANGED = "title_changed"
    NODE_ADDED = "node_added"
    NODE_UPDATED = "node_updated"
    NODE_REMOVED = "node_removed"
    CONNECTION_ADDED = "connection_added"
    CONNECTION_UPDATED = "connection_updated"
    CONNECTION_REMOVED = "connection_removed"
    SELECTION_CHANGED = "selection_changed"
    HIGHLIGHT_CHANGED = "highlight_changed"
    LOADED = "loaded"


_COSMETIC = frozenset({ChangeKind.SELECTION_CHANGED, ChangeKind.HIGHLIGHT_CHANGED})


@dataclass(frozen=True)
class GraphChange:
    """One observable mutation of the live graph."""

    kind: ChangeKind
    target_id: str | None = None
    fields: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_cosmetic(self) -> bool:
        """View-only changes that never need persisting."""
        return self.kind in _COSMETIC


Listener = Callable[[GraphChange], None]

_NODE_FIELDS = frozenset(f.name for f in dataclass_fields(Node)) - {"id"}
_CONNECTION_FIELDS = frozenset(f.name for f in dataclass_fields(Connection)) - {"id"}


class GraphEditError(ValueError):
    """A mutation referenced something that does not exist or is not allowed."""


class LiveGraph:
    """Mutable document with an explicit change-event stream."""

    def __init__(self, document: GraphDocument | None = None) -> None:
        self._document = document.clone() if document is not None else GraphDocument()
        self._listeners: list[Listener] = []
        self._selected: set[str] = set()
        self._highlighted: set[str] = set()

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, kind: ChangeKind, target_id: str | None = None, *names: str) -> None:
        change = GraphChange(kind=kind, target_id=target_id, fields=tuple(names))
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def document_id(self) -> str:
        return self._document.id

    @property
    def owner_id(self) -> str | None:
        return self._document.owner_id

    @property
    def title(self) -> str:
        return self._document.title

    @property
    def nodes(self) -> tuple[Node, ...]:
        return tuple(self._document.nodes)

    @property
    def connections(self) -> tuple[Connection, ...]:
        return tuple(self._document.connections)

    @property
    def selected_ids(self) -> frozenset[str]:
        return frozenset(self._selected)

    @property
    def highlighted_ids(self) -> frozenset[str]:
        return frozenset(self._highlighted)

    def get_node(self, node_id: str) -> Node:
        node = self._document.find_node(node_id)
        if node is None:
            msg = f"No node with id {node_id!r}"
            raise GraphEditError(msg)
        return node

    def get_connection(self, connection_id: str) -> Connection:
        connection = self._document.find_connection(connection_id)
        if connection is None:
            msg = f"No connection with id {connection_id!r}"
            raise GraphEditError(msg)
        return connection

    def snapshot(self) -> GraphDocument:
        """Deep copy of the current document, safe to hand to a writer."""
        return self._document.clone()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def load(self, document: GraphDocument) -> None:
        """Replace the whole graph with a copy of *document*."""
        self._document = document.clone()
        self._selected.clear()
        self._highlighted.clear()
        self._emit(ChangeKind.LOADED, self._document.id)

    def set_title(self, title: str) -> None:
        if title == self._document.title:
            return
        self._document.title = title
        self._emit(ChangeKind.TITLE_CHANGED, self._document.id, "title")

    def add_node(self, node: Node) -> Node:
        if self._document.find_node(node.id) is not None:
            msg = f"Duplicate node id {node.id!r}"
            raise GraphEditError(msg)
        self._document.nodes.append(node)
        self._emit(ChangeKind.NODE_ADDED, node.id)
        return node

    def update_node(self, node_id: str, **changes: Any) -> Node:
        """Set node attributes. Emits nothing when no value actually changes."""
        node = self.get_node(node_id)
        unknown = set(changes) - _NODE_FIELDS
        if unknown:
            msg = f"Unknown node fields: {sorted(unknown)}"
            raise GraphEditError(msg)

        changed = [name for name, value in changes.items() if getattr(node, name) != value]
        for name in changed:
            value = changes[name]
            setattr(node, name, list(value) if name == "tags" else value)
        if changed:
            self._emit(ChangeKind.NODE_UPDATED, node_id, *changed)
        return node

    def remove_node(self, node_id: str) -> list[Connection]:
        """Remove a node and, first, every connection touching it.

        Returns the connections removed by the cascade.
        """
        node = self.get_node(node_id)
        dependent = [c for c in self._document.connections if c.touches(node_id)]
        for connection in dependent:
            self._document.connections.remove(connection)
            self._highlighted.discard(connection.id)
            self._emit(ChangeKind.CONNECTION_REMOVED, connection.id)

        self._document.nodes.remove(node)
        self._selected.discard(node_id)
        self._emit(ChangeKind.NODE_REMOVED, node_id)
        return dependent

    def add_connection(self, connection: Connection) -> Connection:
        if connection.source_id == connection.target_id:
            msg = "A connection cannot link a node to itself"
            raise GraphEditError(msg)
        self.get_node(connection.source_id)
        self.get_node(connection.target_id)
        if self._document.find_connection(connection.id) is not None:
            msg = f"Duplicate connection id {connection.id!r}"
            raise GraphEditError(msg)

        self._document.connections.append(connection)
        self._emit(ChangeKind.CONNECTION_ADDED, connection.id)
        return connection

    def update_connection(self, connection_id: str, **changes: Any) -> Connection:
        connection = self.get_connection(connection_id)
        unknown = set(changes) - _CONNECTION_FIELDS
        if unknown:
            msg = f"Unknown connection fields: {sorted(unknown)}"
            raise GraphEditError(msg)
        for endpoint in ("source_id", "target_id"):
            if endpoint in changes:
                self.get_node(changes[endpoint])

        changed = [name for name, value in changes.items() if getattr(connection, name) != value]
        for name in changed:
            setattr(connection, name, changes[name])
        if changed:
            self._emit(ChangeKind.CONNECTION_UPDATED, connection_id, *changed)
        return connection

    def remove_connection(self, connection_id: str) -> Connection:
        connection = self.get_connection(connection_id)
        self._document.connections.remove(connection)
        self._highlighted.discard(connection_id)
        self._emit(ChangeKind.CONNECTION_REMOVED, connection_id)
        return connection

    # ------------------------------------------------------------------
    # View state (never persisted)
    # ------------------------------------------------------------------

    def select_nodes(self, node_ids: Iterable[str]) -> None:
        selected = {nid for nid in node_ids if self._document.find_node(nid) is not None}
        if selected == self._selected:
            return
        self._selected = selected
        self._emit(ChangeKind.SELECTION_CHANGED, None, *sorted(selected))

    def highlight_connection(self, connection_id: str, *, on: bool = True) -> None:
        self.get_connection(connection_id)
        if on == (connection_id in self._highlighted):
            return
        if on:
            self._highlighted.add(connection_id)
        else:
            self._highlighted.discard(connection_id)
        self._emit(ChangeKind.HIGHLIGHT_CHANGED, connection_id)
