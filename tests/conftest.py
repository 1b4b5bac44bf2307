"""Shared pytest fixtures and test helpers for mindmapctl tests."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from mindmapctl.config.settings import MindmapSettings
from mindmapctl.domain.accounts import Account
from mindmapctl.domain.passwords import PasswordHasher
from mindmapctl.infrastructure.database.engine import init_database
from mindmapctl.infrastructure.workspace import Workspace

# Fewer PBKDF2 rounds keep service tests fast; the algorithm is unchanged.
FAST_HASHER = PasswordHasher(iterations=1_000)

STRONG_PASSWORD = "Secret123!x"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's MINDMAPCTL_* variables out of the tests."""
    for name in (
        "MINDMAPCTL_CONFIG",
        "MINDMAPCTL_PASSWORD",
        "MINDMAPCTL_EMAIL",
        "MINDMAPCTL_ACCOUNT_EMAIL",
        "MINDMAPCTL_ROOT",
        "MINDMAPCTL_JSON_OUTPUT",
        "MINDMAPCTL_QUIET",
        "MINDMAPCTL_VERBOSE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    """Temporary workspace directory."""
    return tmp_path


@pytest.fixture
def workspace(workspace_root: Path) -> Iterator[Workspace]:
    """Workspace on a temp directory with entry-point discovery disabled."""
    settings = MindmapSettings.load(root=workspace_root)
    ws = Workspace(settings)
    ws.init_plugins(discover=False)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(workspace_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp workspace so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(workspace_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def run(coro: Any) -> Any:
    """Drive a coroutine to completion on a fresh event loop."""
    return asyncio.run(coro)


def register_account(
    workspace: Workspace,
    email: str = "ada@example.com",
    password: str = STRONG_PASSWORD,
    display_name: str | None = "Ada",
) -> Account:
    """Register and authenticate an account, asserting success."""
    from mindmapctl.services.accounts import AccountService

    service = AccountService(workspace, hasher=FAST_HASHER)
    assert run(service.register(email, password, display_name))
    account = run(service.authenticate(email, password))
    assert account is not None
    return account
