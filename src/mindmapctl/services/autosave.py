"""AutoSaveCoordinator — debounced persistence driven by graph changes.

Each persistent change restarts a single countdown. When the quiet period
elapses without further changes, exactly one save runs. Cosmetic changes
(selection, highlight) never start the countdown, and neither does
anything that happens while the coordinator is suspended (document load).

INVARIANT: At most one timer is pending and at most one save runs at a
time. A save in flight is never cancelled; later saves wait for it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager

from mindmapctl.domain.editing import GraphChange

logger = logging.getLogger(__name__)

DEFAULT_QUIET_PERIOD = 2.0

SaveCallable = Callable[[], Awaitable[None]]
ErrorCallback = Callable[[Exception], None]


class AutoSaveCoordinator:
    """Coalesce bursts of edits into one save after a quiet period.

    *save* is awaited to persist a fresh snapshot; it is called without
    arguments so the snapshot is taken when the save actually starts.
    """

    def __init__(
        self,
        save: SaveCallable,
        *,
        quiet_period: float = DEFAULT_QUIET_PERIOD,
        on_error: ErrorCallback | None = None,
    ) -> None:
        if quiet_period < 0:
            msg = "quiet_period must not be negative"
            raise ValueError(msg)
        self._save = save
        self._quiet_period = quiet_period
        self._on_error = on_error
        self._timer: asyncio.TimerHandle | None = None
        self._lock = asyncio.Lock()
        self._tasks: set[asyncio.Task[None]] = set()
        self._suspend_depth = 0
        self._dirty = False
        self._closed = False
        self.save_count = 0

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    @property
    def is_pending(self) -> bool:
        """Whether a countdown is running."""
        return self._timer is not None

    @property
    def is_dirty(self) -> bool:
        """Whether a persistent change has not been saved yet."""
        return self._dirty

    @property
    def is_suspended(self) -> bool:
        return self._suspend_depth > 0

    # ------------------------------------------------------------------
    # Change intake
    # ------------------------------------------------------------------

    def notify(self, change: GraphChange) -> None:
        """Restart the countdown for a persistent *change*.

        Must be called from the event loop thread.
        """
        if self._closed or self._suspend_depth or change.is_cosmetic:
            return
        self._dirty = True
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._quiet_period, self._on_timer)

    @contextmanager
    def suspended(self) -> Iterator[None]:
        """Ignore changes inside the block. Nests."""
        self._suspend_depth += 1
        try:
            yield
        finally:
            self._suspend_depth -= 1

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._timed_save())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _timed_save(self) -> None:
        try:
            await self._save_now()
        except Exception as exc:
            logger.warning("Autosave failed", exc_info=True)
            if self._on_error is not None:
                self._on_error(exc)

    async def _save_now(self) -> None:
        async with self._lock:
            # Changes arriving while the save runs mark the graph dirty again.
            self._dirty = False
            try:
                await self._save()
            except BaseException:
                self._dirty = True
                raise
            self.save_count += 1

    async def flush(self) -> None:
        """Cancel any countdown and save immediately.

        Failures propagate to the caller.
        """
        self._cancel_timer()
        await self._save_now()

    async def aclose(self) -> None:
        """Stop the countdown, finish running saves, then save if dirty."""
        self._cancel_timer()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        try:
            if self._dirty:
                await self._save_now()
        finally:
            self._closed = True

    def close(self) -> None:
        """Stop accepting changes and drop any pending countdown."""
        self._cancel_timer()
        self._closed = True
