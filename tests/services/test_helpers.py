"""Tests for service helpers and BaseService plumbing."""

from __future__ import annotations

import pluggy

from mindmapctl.infrastructure.workspace import Workspace
from mindmapctl.services._helpers import resolve_prefix, utcnow
from mindmapctl.services.base import BaseService
from tests.conftest import run

hookimpl = pluggy.HookimplMarker("mindmapctl")


class TestResolvePrefix:
    def test_exact_match_wins(self) -> None:
        assert resolve_prefix(["abc", "abcd"], "abc") == ["abc"]

    def test_prefix_matches(self) -> None:
        assert resolve_prefix(["abc1", "abd2", "xyz"], "ab") == ["abc1", "abd2"]

    def test_blank_ref(self) -> None:
        assert resolve_prefix(["abc"], "  ") == []

    def test_strips_ref(self) -> None:
        assert resolve_prefix(["abc1"], " ab ") == ["abc1"]


def test_utcnow_is_aware() -> None:
    assert utcnow().utcoffset() is not None


class _Crashing:
    @hookimpl
    def post_register(self, account_id: str, email: str) -> None:
        raise RuntimeError("boom")


class TestBaseService:
    def test_run_offloads(self, workspace: Workspace) -> None:
        service = BaseService(workspace)
        assert run(service._run(sum, [1, 2, 3])) == 6

    def test_dispatch_failure_becomes_warning(self, workspace: Workspace) -> None:
        workspace.plugins.register_plugin(_Crashing())
        warnings: list[str] = []
        BaseService(workspace)._dispatch_event(
            "post_register", {"account_id": "a", "email": "e"}, warnings
        )
        assert warnings == ["Event dispatch failed for post_register"]
