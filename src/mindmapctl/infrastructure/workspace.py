"""Workspace — the single dependency injected into every service.

Owns the resolved settings, the SQLAlchemy engine and, lazily, the plugin
manager. Services receive a Workspace at construction time and acquire
connections per operation through :meth:`connect` and :meth:`transaction`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from mindmapctl.infrastructure.database.engine import init_database

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy import Connection
    from sqlalchemy.engine import Engine

    from mindmapctl.config.settings import MindmapSettings
    from mindmapctl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Workspace:
    """Settings, storage and plugins for one mindmapctl root directory.

    Created once per CLI invocation (or per embedding application) and
    passed to services explicitly. There is no process-wide instance.
    """

    def __init__(self, settings: MindmapSettings) -> None:
        self._settings = settings
        self._engine: Engine = init_database(settings.root, settings.db_path)
        self._plugins: PluginManager | None = None

    @property
    def root(self) -> Path:
        """The workspace root directory."""
        return self._settings.root

    @property
    def engine(self) -> Engine:
        """The underlying SQLAlchemy engine."""
        return self._engine

    @property
    def settings(self) -> MindmapSettings:
        return self._settings

    @property
    def plugins(self) -> PluginManager:
        """The plugin manager, created and loaded on first access."""
        if self._plugins is None:
            self.init_plugins()
        assert self._plugins is not None
        return self._plugins

    def init_plugins(self, *, discover: bool = True) -> PluginManager:
        """Create the plugin manager and register built-in plugins.

        Entry-point plugins are discovered unless *discover* is False.
        """
        from mindmapctl.plugins.builtins.smtp import SmtpDeliveryPlugin
        from mindmapctl.plugins.manager import PluginManager

        pm = PluginManager()
        if discover:
            pm.discover_and_load()

        if self._settings.plugins.smtp.get("enabled", True):
            pm.register_plugin(SmtpDeliveryPlugin(self._settings.email), name="smtp-builtin")

        self._plugins = pm
        return pm

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Read-only connection, released on exit."""
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def transaction(self) -> Iterator[Connection]:
        """Connection inside a transaction: commit on success, rollback on error."""
        with self._engine.begin() as conn:
            yield conn

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()
        logger.debug("Workspace at %s closed", self.root)
