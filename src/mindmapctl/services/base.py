"""BaseService — foundation for the mindmapctl services.

Every service receives a :class:`Workspace` at construction time. The
workspace provides database access and the plugin manager. Blocking
storage work runs in a worker thread through :meth:`BaseService._run` so
the caller's event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from mindmapctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class DocumentStore(BaseService):
            async def get(self, document_id: str) -> GraphDocument | None:
                return await self._run(self._get_sync, document_id)
    """

    def __init__(self, workspace: Workspace) -> None:
        self._workspace = workspace

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run blocking *func* in a worker thread and await its result."""
        return await asyncio.to_thread(func, *args)

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str] | None = None,
    ) -> None:
        """Call a notification hook with *payload*.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        try:
            getattr(self._workspace.plugins.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Event dispatch failed for %s", hook_name, exc_info=True)
            if warnings is not None:
                warnings.append(f"Event dispatch failed for {hook_name}")
