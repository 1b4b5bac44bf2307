"""Per-invocation state handed to every command through ``ctx.obj``.

The root group builds one :class:`AppContext`. Commands use it to reach
the workspace, to run their coroutine and to print the result with the
right stream and exit status.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import click
from sqlalchemy.exc import SQLAlchemyError

from mindmapctl.domain.snapshot import SnapshotDecodeError
from mindmapctl.output.formatters import OutputSettings, format_result
from mindmapctl.services.result import ServiceResult

if TYPE_CHECKING:
    from mindmapctl.config.settings import MindmapSettings
    from mindmapctl.domain.accounts import Account
    from mindmapctl.infrastructure.workspace import Workspace
    from mindmapctl.services.editor import EditorSession

logger = logging.getLogger(__name__)

EditorAction = Callable[["EditorSession"], Awaitable[ServiceResult]]
AccountAction = Callable[["Account"], Awaitable[ServiceResult]]


class AppContext:
    """Settings plus a lazily opened workspace for one CLI invocation.

    Nothing touches the database until :attr:`workspace` is first read,
    so ``--help``, ``--version`` and ``--examples`` stay side-effect free.
    """

    def __init__(self, settings: MindmapSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        from mindmapctl.config.logging import configure_logging

        configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    @property
    def workspace(self) -> Workspace:
        """The workspace instance (created lazily on first access)."""
        if self._workspace is None:
            from mindmapctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
        return self._workspace

    def close(self) -> None:
        if self._workspace is not None:
            self._workspace.close()
            self._workspace = None

    def run(self, op: str, factory: Callable[[], Awaitable[ServiceResult]]) -> ServiceResult:
        """Drive one async operation to completion on a fresh event loop.

        Storage failures become a ``STORAGE_ERROR`` result instead of a
        traceback.
        """

        async def _main() -> ServiceResult:
            return await factory()

        try:
            return asyncio.run(_main())
        except (SQLAlchemyError, SnapshotDecodeError) as exc:
            logger.debug("Storage failure during %s", op, exc_info=True)
            return ServiceResult.failure(
                op, "STORAGE_ERROR", f"Storage failure: {exc}", detail={"type": type(exc).__name__}
            )

    def run_as(self, op: str, email: str, password: str, action: AccountAction) -> ServiceResult:
        """Authenticate, then run *action* with the account."""
        from mindmapctl.services.access import LOGIN_FAILED_MESSAGE
        from mindmapctl.services.accounts import AccountService

        async def _go() -> ServiceResult:
            account = await AccountService(self.workspace).authenticate(email, password)
            if account is None:
                return ServiceResult.failure(op, "LOGIN_FAILED", LOGIN_FAILED_MESSAGE)
            return await action(account)

        return self.run(op, _go)

    def run_editor(
        self,
        op: str,
        email: str,
        password: str,
        action: EditorAction | None = None,
        *,
        document: str | None = None,
    ) -> ServiceResult:
        """Open the account's document, apply *action*, then close (saving edits).

        Without an *action* the result of opening the document is returned.
        """
        from mindmapctl.services.editor import EditorSession

        async def _edit(account: Account) -> ServiceResult:
            session = EditorSession(self.workspace, account)
            opened = await session.open(document)
            if not opened.ok or action is None:
                closed = await session.close()
                return _with_warnings(opened, closed)

            try:
                result = await action(session)
            finally:
                closed = await session.close()
            return _with_warnings(result, closed)

        return self.run_as(op, email, password, _edit)

    def emit(self, result: ServiceResult) -> None:
        """Print *result*; a failure goes to stderr and ends the process with status 1.

        Outside JSON mode the warnings of a successful result are echoed to
        stderr, keeping stdout clean for pipes.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if not result.ok:
            click.echo(output, err=True)
            raise SystemExit(1)

        click.echo(output)
        if settings.json_output:
            return
        for warning in result.warnings:
            click.echo(f"WARNING: {warning}", err=True)


def _with_warnings(result: ServiceResult, closed: ServiceResult) -> ServiceResult:
    """Carry autosave warnings (or a failed close) over to *result*."""
    if not closed.ok and result.ok:
        return closed
    extra = [w for w in closed.warnings if w not in result.warnings]
    if not extra:
        return result
    return result.model_copy(update={"warnings": [*result.warnings, *extra]})
