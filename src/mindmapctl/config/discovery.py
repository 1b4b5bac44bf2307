"""Locate ``mindmapctl.toml``.

An explicit ``MINDMAPCTL_CONFIG`` path takes precedence. Otherwise the
search starts in a directory and climbs towards the filesystem root, the
way git finds its ``.git`` directory.
"""

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "mindmapctl.toml"
CONFIG_ENV_VAR = "MINDMAPCTL_CONFIG"


def _ancestors(start: Path) -> Iterator[Path]:
    """*start* and each of its parents, nearest first."""
    here = start.resolve()
    yield here
    yield from here.parents


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file in effect for *start* (default: CWD), or None.

    A ``MINDMAPCTL_CONFIG`` pointing at a missing file disables discovery
    rather than falling back to the walk-up.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        explicit = Path(override)
        return explicit if explicit.is_file() else None

    for directory in _ancestors(start or Path.cwd()):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None
