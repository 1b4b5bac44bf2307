"""EditorSession — one user's open document, its edits and its autosave.

The session owns the :class:`LiveGraph`. Every persistent change flows from
the graph's event stream into an :class:`AutoSaveCoordinator`, which writes
through the :class:`DocumentStore`. Loading a document happens with autosave
suspended so that populating the graph is not mistaken for editing it.

Edit helpers are synchronous but must run inside the event loop that
drives the session, because persistent changes start the autosave timer.
Node and connection references accept a full id, a unique id prefix or,
for nodes, an exact (case-insensitive) title.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from mindmapctl.domain.colors import PALETTE, SLATE_GRAY, Color
from mindmapctl.domain.editing import GraphEditError, LiveGraph
from mindmapctl.domain.graph import FONT_FAMILIES, Connection, GraphDocument, Node, NodeShape
from mindmapctl.domain.outline import OutlineError, document_from_outline
from mindmapctl.domain.search import search_nodes
from mindmapctl.services._helpers import resolve_prefix
from mindmapctl.services.autosave import AutoSaveCoordinator
from mindmapctl.services.base import BaseService
from mindmapctl.services.documents import DocumentOwnerError, DocumentStore
from mindmapctl.services.result import ServiceResult

if TYPE_CHECKING:
    from mindmapctl.domain.accounts import Account
    from mindmapctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)

STARTER_TITLE = "Idea {n}"


class EditorLookupError(GraphEditError):
    """A node or connection reference matched nothing, or more than one thing."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


# ---------------------------------------------------------------------------
# Payload helpers
# ---------------------------------------------------------------------------


def node_payload(node: Node) -> dict[str, Any]:
    return {
        "id": node.id,
        "title": node.title,
        "description": node.description,
        "x": node.x,
        "y": node.y,
        "shape": node.shape,
        "color": node.background_color.to_hex(),
        "tags": list(node.tags),
    }


def connection_payload(connection: Connection) -> dict[str, Any]:
    return {
        "id": connection.id,
        "source_id": connection.source_id,
        "target_id": connection.target_id,
        "color": connection.stroke_color.to_hex(),
        "thickness": connection.thickness,
        "is_curved": connection.is_curved,
        "dash_array": connection.dash_array,
    }


def document_payload(document: GraphDocument) -> dict[str, Any]:
    return {
        "id": document.id,
        "title": document.title,
        "owner_id": document.owner_id,
        "nodes": [node_payload(n) for n in document.nodes],
        "connections": [connection_payload(c) for c in document.connections],
    }


def _parse_shape(value: str) -> str:
    for shape in NodeShape:
        if value.strip().lower() == shape.value.lower():
            return shape.value
    valid = ", ".join(s.value for s in NodeShape)
    msg = f"Unknown shape {value!r} (expected one of: {valid})"
    raise ValueError(msg)


def _parse_font(value: str) -> str:
    for family in FONT_FAMILIES:
        if value.strip().lower() == family.lower():
            return family
    msg = f"Unknown font family {value!r} (expected one of: {', '.join(FONT_FAMILIES)})"
    raise ValueError(msg)


class EditorSession(BaseService):
    """Open, edit and autosave the current document of one account."""

    def __init__(
        self,
        workspace: Workspace,
        account: Account,
        *,
        store: DocumentStore | None = None,
        quiet_period: float | None = None,
    ) -> None:
        super().__init__(workspace)
        self._account = account
        self._store = store or DocumentStore(workspace)
        self._graph = LiveGraph()
        self._save_errors: list[str] = []
        if quiet_period is None:
            quiet_period = workspace.settings.autosave.quiet_period
        self._coordinator = AutoSaveCoordinator(
            self._save_snapshot,
            quiet_period=quiet_period,
            on_error=self._record_save_error,
        )
        self._unsubscribe = self._graph.subscribe(self._coordinator.notify)

    @property
    def graph(self) -> LiveGraph:
        return self._graph

    @property
    def coordinator(self) -> AutoSaveCoordinator:
        return self._coordinator

    @property
    def default_title(self) -> str:
        template = self._workspace.settings.documents.default_title
        return template.format(name=self._account.label)

    async def __aenter__(self) -> EditorSession:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def open(self, document_ref: str | None = None) -> ServiceResult:
        """Load the current document (or *document_ref*) into the live graph.

        An empty document receives a starter node and is saved at once.
        Storage and snapshot errors propagate.
        """
        op = "open"
        try:
            if document_ref:
                document = await self._find_owned(document_ref)
                if isinstance(document, ServiceResult):
                    return document
            else:
                document = await self._store.load_latest_or_create(
                    self._account.id, self.default_title
                )
        except DocumentOwnerError as exc:
            return ServiceResult.failure(op, "NO_OWNER", str(exc))

        needs_starter = not document.nodes
        with self._coordinator.suspended():
            self._graph.load(document)
            if needs_starter:
                self._graph.add_node(self._starter_node())

        if needs_starter:
            await self._coordinator.flush()

        logger.debug("Opened document %s for %s", self._graph.document_id, self._account.id)
        return ServiceResult(ok=True, op=op, data=self.describe())

    async def _find_owned(self, ref: str) -> GraphDocument | ServiceResult:
        summaries = await self._store.list_for_owner(self._account.id)
        matches = resolve_prefix([s.id for s in summaries], ref)
        if not matches:
            return ServiceResult.failure("open", "NOT_FOUND", f"No document matches {ref!r}")
        if len(matches) > 1:
            return ServiceResult.failure(
                "open", "AMBIGUOUS", f"{ref!r} matches {len(matches)} documents"
            )
        document = await self._store.get(matches[0])
        if document is None:
            return ServiceResult.failure("open", "NOT_FOUND", f"No document matches {ref!r}")
        return document

    async def flush(self) -> None:
        """Save now. Failures propagate."""
        await self._coordinator.flush()

    async def close(self) -> ServiceResult:
        """Save pending changes and stop autosave."""
        op = "close"
        try:
            await self._coordinator.aclose()
        except DocumentOwnerError as exc:
            return ServiceResult.failure(op, "NO_OWNER", str(exc))
        finally:
            self._unsubscribe()

        return ServiceResult(
            ok=True,
            op=op,
            data={"document_id": self._graph.document_id, "saves": self._coordinator.save_count},
            warnings=list(self._save_errors),
        )

    async def _save_snapshot(self) -> None:
        await self._store.save(self._graph.snapshot())

    def _record_save_error(self, exc: Exception) -> None:
        self._save_errors.append(f"Autosave failed: {exc}")

    def describe(self) -> dict[str, Any]:
        return document_payload(self._graph.snapshot())

    # ------------------------------------------------------------------
    # Reference resolution
    # ------------------------------------------------------------------

    def resolve_node(self, ref: str) -> Node:
        nodes = self._graph.nodes
        matches = resolve_prefix([n.id for n in nodes], ref)
        if not matches:
            wanted = ref.strip().casefold()
            matches = [n.id for n in nodes if wanted and n.title.casefold() == wanted]
        return self._graph.get_node(self._single(matches, ref, "node"))

    def resolve_connection(self, ref: str) -> Connection:
        matches = resolve_prefix([c.id for c in self._graph.connections], ref)
        return self._graph.get_connection(self._single(matches, ref, "connection"))

    @staticmethod
    def _single(matches: list[str], ref: str, kind: str) -> str:
        if not matches:
            raise EditorLookupError("NOT_FOUND", f"No {kind} matches {ref!r}")
        if len(matches) > 1:
            raise EditorLookupError("AMBIGUOUS", f"{ref!r} matches {len(matches)} {kind}s")
        return matches[0]

    def _apply(self, op: str, action: Callable[[], dict[str, Any]]) -> ServiceResult:
        try:
            data = action()
        except EditorLookupError as exc:
            return ServiceResult.failure(op, exc.code, str(exc))
        except GraphEditError as exc:
            return ServiceResult.failure(op, "INVALID_EDIT", str(exc))
        except ValueError as exc:
            return ServiceResult.failure(op, "INVALID_INPUT", str(exc))
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def _starter_node(self, title: str | None = None) -> Node:
        count = len(self._graph.nodes)
        background = Color.from_hex(PALETTE[count % len(PALETTE)])
        return Node(
            title=title or STARTER_TITLE.format(n=count + 1),
            x=100 + count * 60,
            y=100 + count * 40,
            background_color=background,
            border_color=background.darken(),
        )

    def rename(self, title: str) -> ServiceResult:
        def action() -> dict[str, Any]:
            if not title or not title.strip():
                msg = "Title must not be blank"
                raise ValueError(msg)
            self._graph.set_title(title.strip())
            return {"id": self._graph.document_id, "title": self._graph.title}

        return self._apply("rename", action)

    def add_node(
        self,
        title: str | None = None,
        *,
        description: str | None = None,
        x: float | None = None,
        y: float | None = None,
        color: str | None = None,
        shape: str | None = None,
        tags: Iterable[str] = (),
    ) -> ServiceResult:
        def action() -> dict[str, Any]:
            node = self._starter_node(title.strip() if title and title.strip() else None)
            node.description = description
            if x is not None:
                node.x = x
            if y is not None:
                node.y = y
            if color:
                node.background_color = Color.from_hex(color)
                node.border_color = node.background_color.darken()
            if shape:
                node.shape = _parse_shape(shape)
            node.tags = list(tags)
            self._graph.add_node(node)
            return node_payload(node)

        return self._apply("add_node", action)

    def update_node(self, ref: str, **changes: Any) -> ServiceResult:
        """Update node fields. ``color`` sets background and a matching border."""

        def action() -> dict[str, Any]:
            node = self.resolve_node(ref)
            fields = {k: v for k, v in changes.items() if v is not None}
            if "color" in fields:
                background = Color.from_hex(fields.pop("color"))
                fields["background_color"] = background
                fields["border_color"] = background.darken()
            if "text_color" in fields and isinstance(fields["text_color"], str):
                fields["text_color"] = Color.from_hex(fields["text_color"])
            if "shape" in fields:
                fields["shape"] = _parse_shape(fields["shape"])
            if "font_family" in fields:
                fields["font_family"] = _parse_font(fields["font_family"])
            if "tags" in fields:
                fields["tags"] = list(fields["tags"])
            self._graph.update_node(node.id, **fields)
            return node_payload(node)

        return self._apply("update_node", action)

    def remove_node(self, ref: str) -> ServiceResult:
        def action() -> dict[str, Any]:
            node = self.resolve_node(ref)
            removed = self._graph.remove_node(node.id)
            return {
                "id": node.id,
                "title": node.title,
                "removed_connections": [c.id for c in removed],
            }

        return self._apply("remove_node", action)

    def connect(
        self,
        source_ref: str,
        target_ref: str,
        *,
        curved: bool = True,
        dash_array: list[float] | None = None,
    ) -> ServiceResult:
        def action() -> dict[str, Any]:
            source = self.resolve_node(source_ref)
            target = self.resolve_node(target_ref)
            connection = Connection(
                source_id=source.id,
                target_id=target.id,
                stroke_color=SLATE_GRAY,
                is_curved=curved,
                dash_array=list(dash_array) if dash_array is not None else None,
            )
            self._graph.add_connection(connection)
            return connection_payload(connection)

        return self._apply("connect", action)

    def update_connection(
        self,
        ref: str,
        *,
        color: str | None = None,
        thickness: float | None = None,
        curved: bool | None = None,
        dash_array: list[float] | None = None,
    ) -> ServiceResult:
        """Restyle a connection; arguments left as None keep their value.

        An empty *dash_array* draws a solid line.
        """

        def action() -> dict[str, Any]:
            connection = self.resolve_connection(ref)
            changes: dict[str, Any] = {}
            if color is not None:
                changes["stroke_color"] = Color.from_hex(color)
            if thickness is not None:
                if thickness <= 0:
                    raise ValueError(f"Thickness must be positive, got {thickness:g}")
                changes["thickness"] = float(thickness)
            if curved is not None:
                changes["is_curved"] = curved
            if dash_array is not None:
                changes["dash_array"] = list(dash_array)
            self._graph.update_connection(connection.id, **changes)
            return connection_payload(connection)

        return self._apply("update_connection", action)

    def disconnect(self, ref: str) -> ServiceResult:
        def action() -> dict[str, Any]:
            connection = self._graph.remove_connection(self.resolve_connection(ref).id)
            return connection_payload(connection)

        return self._apply("disconnect", action)

    def search(self, keyword: str) -> ServiceResult:
        """Select the nodes whose title or description contains *keyword*."""
        matches = search_nodes(self._graph.nodes, keyword)
        self._graph.select_nodes(n.id for n in matches)
        return ServiceResult(
            ok=True,
            op="search",
            data={"keyword": keyword, "matches": [node_payload(n) for n in matches]},
            meta={"total": len(matches)},
        )

    # ------------------------------------------------------------------
    # Generated outlines
    # ------------------------------------------------------------------

    async def apply_outline(
        self, payload: dict[str, Any], *, topic: str | None = None
    ) -> ServiceResult:
        """Replace the current document's content with an outline and save.

        The document keeps its id and owner.
        """
        op = "apply_outline"
        try:
            generated = document_from_outline(payload, topic=topic)
        except OutlineError as exc:
            return ServiceResult.failure(op, "INVALID_OUTLINE", str(exc))

        generated.id = self._graph.document_id
        generated.owner_id = self._account.id
        with self._coordinator.suspended():
            self._graph.load(generated)
        await self._coordinator.flush()
        return ServiceResult(ok=True, op=op, data=self.describe())

    async def generate(self, topic: str) -> ServiceResult:
        """Ask the ``generate_outline`` hook for a document about *topic*."""
        op = "generate"
        if not topic or not topic.strip():
            return ServiceResult.failure(op, "INVALID_INPUT", "Topic must not be blank")

        plugins = self._workspace.plugins
        if not plugins.has_implementations("generate_outline"):
            return ServiceResult.failure(
                op, "GENERATOR_UNAVAILABLE", "No outline generator is installed"
            )

        try:
            payload = await self._run(_call_generator, plugins.hook, topic.strip())
        except Exception as exc:
            logger.warning("Outline generation for %r raised", topic, exc_info=True)
            return ServiceResult.failure(op, "GENERATION_FAILED", f"Generation failed: {exc}")

        if not payload:
            return ServiceResult.failure(op, "GENERATION_FAILED", "The generator returned nothing")

        result = await self.apply_outline(payload, topic=topic.strip())
        if not result.ok:
            return result
        return result.model_copy(update={"op": op})


def _call_generator(hook: Any, topic: str) -> dict[str, Any] | None:
    return hook.generate_outline(topic=topic)
