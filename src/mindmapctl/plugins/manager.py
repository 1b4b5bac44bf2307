"""PluginManager — a thin facade over :class:`pluggy.PluginManager`.

Third-party plugins are found through the ``mindmapctl.plugins`` entry-point
group. Built-ins are registered by the workspace after discovery, so a
built-in answers a first-result hook only when no installed plugin does.
"""

from __future__ import annotations

import inspect
import logging

import pluggy

from mindmapctl.plugins.hookspecs import MindmapHookSpec

PROJECT_NAME = "mindmapctl"
ENTRY_POINT_GROUP = "mindmapctl.plugins"

logger = logging.getLogger(__name__)


class PluginManager:
    """Registration, discovery and hook access for mindmapctl plugins."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(MindmapHookSpec)
        self._loaded = False

    @property
    def hook(self) -> pluggy.HookRelay:
        return self._pm.hook

    @property
    def is_loaded(self) -> bool:
        """True once entry points have been scanned."""
        return self._loaded

    def discover_and_load(self) -> list[str]:
        """Scan the entry-point group and return every registered plugin name."""
        count = self._pm.load_setuptools_entrypoints(ENTRY_POINT_GROUP)
        self._normalize_plugin_instances()
        self._loaded = True
        logger.debug("Loaded %d entry-point plugin(s)", count)
        return self.list_plugin_names()

    def register_plugin(self, plugin: object, name: str | None = None) -> None:
        """Register *plugin*; the name defaults to its class name."""
        plugin_name = name or type(plugin).__name__
        self._pm.register(plugin, name=plugin_name)
        logger.debug("Registered plugin %s", plugin_name)

    def unregister(self, plugin: object) -> None:
        self._pm.unregister(plugin)

    def implementations(self, hook_name: str, *, active_only: bool = False) -> list[str]:
        """Names of the plugins implementing *hook_name* (unknown hooks: none).

        With *active_only*, plugins exposing a false ``enabled`` attribute
        are left out.
        """
        caller = getattr(self._pm.hook, hook_name, None)
        if caller is None:
            return []
        return [
            impl.plugin_name
            for impl in caller.get_hookimpls()
            if not active_only or getattr(impl.plugin, "enabled", True)
        ]

    def has_implementations(self, hook_name: str, *, active_only: bool = False) -> bool:
        return bool(self.implementations(hook_name, active_only=active_only))

    def get_plugins(self) -> list[object]:
        return list(self._pm.get_plugins())

    def list_plugin_names(self) -> list[str]:
        return [self._pm.get_name(p) or type(p).__name__ for p in self._pm.get_plugins()]

    def _normalize_plugin_instances(self) -> None:
        """Swap plugin classes registered by entry points for instances.

        A class registered as a plugin would be called with ``self``
        unbound. Classes that cannot be built without arguments are dropped
        with a warning.
        """
        classes = [p for p in self._pm.get_plugins() if inspect.isclass(p)]
        for plugin_cls in classes:
            name = self._pm.get_name(plugin_cls) or plugin_cls.__name__
            self._pm.unregister(plugin_cls)
            try:
                instance = plugin_cls()
            except Exception:
                logger.warning("Failed to instantiate entry-point plugin %s", name, exc_info=True)
                continue
            self._pm.register(instance, name=name)
