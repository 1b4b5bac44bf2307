"""Pluggy hook specifications for mindmapctl collaborators and events.

Two collaborator hooks stand in for services this package never
implements itself: delivering a reset code, and generating a document
outline from a topic. Both are ``firstresult`` — the first plugin that
answers wins. Two notification hooks report lifecycle events.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("mindmapctl")


class MindmapHookSpec:
    """Hook specifications for the mindmapctl plugin system."""

    @hookspec(firstresult=True)
    def deliver_otp(self, recipient: str, code: str) -> bool | None:
        """Deliver a password-reset *code* to *recipient*.

        Return True on success, False on failure, or None to let another
        plugin handle it. Raising counts as failure.
        """

    @hookspec(firstresult=True)
    def generate_outline(self, topic: str) -> dict[str, Any] | None:
        """Return a document outline for *topic*, or None.

        See :mod:`mindmapctl.domain.outline` for the expected shape.
        """

    @hookspec
    def post_register(self, account_id: str, email: str) -> None:
        """Called after an account is created."""

    @hookspec
    def post_save(
        self,
        document_id: str,
        owner_id: str,
        node_count: int,
        connection_count: int,
    ) -> None:
        """Called after a document snapshot is written."""
