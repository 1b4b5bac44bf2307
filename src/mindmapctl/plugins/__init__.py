"""Extension layer — plugin system via pluggy.

Discovery: entry_points (pip-installed) via pluggy setuptools entrypoints.
INVARIANT: Notification hook failures are warnings, never errors.
"""

from mindmapctl.plugins.manager import PluginManager

__all__ = ["PluginManager"]
