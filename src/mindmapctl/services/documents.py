"""DocumentStore — snapshot persistence for graph documents.

Every save writes the whole node/connection set as one JSON snapshot,
upserted by document id. The owner's most recently updated document is
their "current" one.

INVARIANT: Saves of the same document id never interleave. A per-id lock
linearizes them inside the store; the last write wins.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from mindmapctl.domain.graph import GraphDocument
from mindmapctl.domain.snapshot import deserialize, serialize
from mindmapctl.infrastructure.database.schema import documents
from mindmapctl.infrastructure.database.timestamps import decode_timestamp, encode_timestamp
from mindmapctl.services._helpers import utcnow
from mindmapctl.services.base import BaseService

if TYPE_CHECKING:
    from sqlalchemy.engine import Row

    from mindmapctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)


class DocumentOwnerError(ValueError):
    """A document was handed to the store without an owner id."""


class DocumentSummary(BaseModel):
    """One row of an owner's document list."""

    model_config = {"frozen": True}

    id: str
    title: str
    updated_at: datetime


def _document_from_row(row: Row[Any]) -> GraphDocument:
    return deserialize(row.content, title=row.title, owner_id=row.owner_id, document_id=row.id)


class DocumentStore(BaseService):
    """Load and save graph documents as full snapshots."""

    def __init__(
        self,
        workspace: Workspace,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(workspace)
        self._clock = clock or utcnow
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, document_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(document_id)
            if lock is None:
                lock = self._locks[document_id] = threading.Lock()
            return lock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load_latest_or_create(self, owner_id: str, default_title: str) -> GraphDocument:
        """The owner's most recently updated document, or a new saved one.

        Raises:
            DocumentOwnerError: If *owner_id* is blank.
            SnapshotDecodeError: If the stored content is malformed.
        """
        if not owner_id:
            msg = "Cannot load documents without an owner id"
            raise DocumentOwnerError(msg)
        return await self._run(self._load_latest_or_create_sync, owner_id, default_title)

    async def save(self, document: GraphDocument) -> None:
        """Upsert the full snapshot of *document*.

        Raises:
            DocumentOwnerError: If the document has no owner id.
        """
        if not document.owner_id:
            msg = f"Document {document.id} has no owner id"
            raise DocumentOwnerError(msg)
        await self._run(self._save_sync, document.clone())

    async def get(self, document_id: str) -> GraphDocument | None:
        return await self._run(self._get_sync, document_id)

    async def list_for_owner(self, owner_id: str) -> list[DocumentSummary]:
        """The owner's documents, newest first."""
        return await self._run(self._list_for_owner_sync, owner_id)

    # ------------------------------------------------------------------
    # Worker-thread implementations
    # ------------------------------------------------------------------

    def _load_latest_or_create_sync(self, owner_id: str, default_title: str) -> GraphDocument:
        with self._workspace.connect() as conn:
            row = conn.execute(
                select(documents)
                .where(documents.c.owner_id == owner_id)
                .order_by(documents.c.updated_at.desc())
                .limit(1)
            ).first()
        if row is not None:
            return _document_from_row(row)

        document = GraphDocument(title=default_title, owner_id=owner_id)
        self._save_sync(document)
        logger.info("Created document %s for owner %s", document.id, owner_id)
        return document

    def _save_sync(self, document: GraphDocument) -> None:
        content = serialize(document)
        with self._lock_for(document.id):
            updated_at = encode_timestamp(self._clock())
            stmt = sqlite_insert(documents).values(
                id=document.id,
                owner_id=document.owner_id,
                title=document.title,
                content=content,
                updated_at=updated_at,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=[documents.c.id],
                set_={
                    "title": stmt.excluded.title,
                    "content": stmt.excluded.content,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            with self._workspace.transaction() as conn:
                conn.execute(stmt)

        logger.debug(
            "Saved document %s (%d nodes, %d connections)",
            document.id,
            len(document.nodes),
            len(document.connections),
        )
        self._dispatch_event(
            "post_save",
            {
                "document_id": document.id,
                "owner_id": document.owner_id,
                "node_count": len(document.nodes),
                "connection_count": len(document.connections),
            },
        )

    def _get_sync(self, document_id: str) -> GraphDocument | None:
        with self._workspace.connect() as conn:
            row = conn.execute(select(documents).where(documents.c.id == document_id)).first()
        return _document_from_row(row) if row is not None else None

    def _list_for_owner_sync(self, owner_id: str) -> list[DocumentSummary]:
        with self._workspace.connect() as conn:
            rows = conn.execute(
                select(documents.c.id, documents.c.title, documents.c.updated_at)
                .where(documents.c.owner_id == owner_id)
                .order_by(documents.c.updated_at.desc())
            ).fetchall()
        return [
            DocumentSummary(id=r.id, title=r.title, updated_at=decode_timestamp(r.updated_at))
            for r in rows
        ]
