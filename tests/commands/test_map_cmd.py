"""Tests for the ``map`` command group."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner, Result
from sqlalchemy import update

from mindmapctl.cli import cli
from mindmapctl.config.settings import MindmapSettings
from mindmapctl.infrastructure.database.engine import init_database
from mindmapctl.infrastructure.database.schema import documents
from tests.conftest import STRONG_PASSWORD

EMAIL = "ada@example.com"
AUTH = ["--email", EMAIL, "--password", STRONG_PASSWORD]


def _invoke(runner: CliRunner, root: Path, *args: str, **kwargs: Any) -> Result:
    return runner.invoke(cli, ["--root", str(root), *args], **kwargs)


def _map(runner: CliRunner, root: Path, *args: str, json_output: bool = False) -> Result:
    prefix = ["--json"] if json_output else []
    return _invoke(runner, root, *prefix, "map", *args, *AUTH)


def _data(result: Result) -> dict[str, Any]:
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)["data"]


@pytest.fixture
def registered(cli_runner: CliRunner, workspace_root: Path) -> Path:
    result = _invoke(
        cli_runner,
        workspace_root,
        "account",
        "register",
        "--email",
        EMAIL,
        "--display-name",
        "Ada",
        "--password",
        STRONG_PASSWORD,
        "--confirm",
        STRONG_PASSWORD,
    )
    assert result.exit_code == 0, result.output
    return workspace_root


@pytest.mark.usefixtures("_isolated_workspace")
class TestShow:
    def test_first_show_creates_document(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(cli_runner, registered, "show")
        assert result.exit_code == 0, result.output
        assert "Mindmap of Ada" in result.output
        assert "Idea 1" in result.output
        assert "1 nodes, 0 connections" in result.output

    def test_show_is_stable(self, cli_runner: CliRunner, registered: Path) -> None:
        first = _data(_map(cli_runner, registered, "show", json_output=True))
        second = _data(_map(cli_runner, registered, "show", json_output=True))
        assert first["id"] == second["id"]
        assert len(second["nodes"]) == 1

    def test_wrong_password(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _invoke(
            cli_runner,
            registered,
            "map",
            "show",
            "--email",
            EMAIL,
            "--password",
            "Wrong-pass-1",
        )
        assert result.exit_code == 1
        assert "Invalid email or password" in result.output

    def test_credentials_from_env(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _invoke(
            cli_runner,
            registered,
            "map",
            "show",
            env={"MINDMAPCTL_ACCOUNT_EMAIL": EMAIL, "MINDMAPCTL_PASSWORD": STRONG_PASSWORD},
        )
        assert result.exit_code == 0, result.output

    def test_unknown_document(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(cli_runner, registered, "show", "--document", "zzzz")
        assert result.exit_code == 1
        assert "No document matches" in result.output

    def test_corrupt_content_is_storage_error(
        self, cli_runner: CliRunner, registered: Path
    ) -> None:
        _data(_map(cli_runner, registered, "show", json_output=True))
        engine = init_database(registered, MindmapSettings.load(root=registered).db_path)
        try:
            with engine.begin() as conn:
                conn.execute(update(documents).values(content="{broken"))
        finally:
            engine.dispose()

        result = _map(cli_runner, registered, "show")
        assert result.exit_code == 1
        assert "Storage failure" in result.output


@pytest.mark.usefixtures("_isolated_workspace")
class TestEdits:
    def test_add_connect_remove(self, cli_runner: CliRunner, registered: Path) -> None:
        added = _data(
            _map(
                cli_runner,
                registered,
                "add-node",
                "Engines",
                "--description",
                "Analytical",
                "--shape",
                "ellipse",
                "--tag",
                "history",
                json_output=True,
            )
        )
        assert added["shape"] == "Ellipse"
        assert added["tags"] == ["history"]

        connected = _data(
            _map(
                cli_runner,
                registered,
                "connect",
                "Idea 1",
                "Engines",
                "--straight",
                "--dash",
                "4,2",
                json_output=True,
            )
        )
        assert connected["is_curved"] is False
        assert connected["dash_array"] == [4.0, 2.0]

        removed = _data(_map(cli_runner, registered, "remove-node", "engines", json_output=True))
        assert removed["removed_connections"] == [connected["id"]]

        shown = _data(_map(cli_runner, registered, "show", json_output=True))
        assert [n["title"] for n in shown["nodes"]] == ["Idea 1"]
        assert shown["connections"] == []

    def test_update_node(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(
            cli_runner,
            registered,
            "update-node",
            "Idea 1",
            "--title",
            "Start",
            "--color",
            "#808080",
            "--x",
            "400",
            json_output=True,
        )
        data = _data(result)
        assert data["title"] == "Start"
        assert data["color"] == "#FF808080"
        assert data["x"] == 400.0

        shown = _data(_map(cli_runner, registered, "show", json_output=True))
        assert shown["nodes"][0]["title"] == "Start"

    def test_rename_and_list(self, cli_runner: CliRunner, registered: Path) -> None:
        _data(_map(cli_runner, registered, "rename", "Engines of history", json_output=True))
        listed = _data(_map(cli_runner, registered, "list", json_output=True))
        assert listed["count"] == 1
        assert listed["items"][0]["title"] == "Engines of history"

    def test_list_quiet_prints_ids(self, cli_runner: CliRunner, registered: Path) -> None:
        shown = _data(_map(cli_runner, registered, "show", json_output=True))
        result = _invoke(cli_runner, registered, "-q", "map", "list", *AUTH)
        assert result.exit_code == 0
        assert result.stdout.strip() == shown["id"]

    def test_search(self, cli_runner: CliRunner, registered: Path) -> None:
        _map(cli_runner, registered, "add-node", "Engines")
        data = _data(_map(cli_runner, registered, "search", "engine", json_output=True))
        assert [m["title"] for m in data["matches"]] == ["Engines"]

    def test_disconnect_unknown(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(cli_runner, registered, "disconnect", "zzzz")
        assert result.exit_code == 1
        assert "No connection matches" in result.output

    def test_bad_dash_pattern(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(cli_runner, registered, "connect", "a", "b", "--dash", "x,y")
        assert result.exit_code == 2
        assert "Dash pattern" in result.output

    def test_restyle_connection(self, cli_runner: CliRunner, registered: Path) -> None:
        _data(_map(cli_runner, registered, "add-node", "Engines", json_output=True))
        connected = _data(
            _map(cli_runner, registered, "connect", "Idea 1", "Engines", json_output=True)
        )
        restyled = _data(
            _map(
                cli_runner,
                registered,
                "restyle",
                connected["id"][:8],
                "--color",
                "#455A64",
                "--thickness",
                "3",
                "--straight",
                "--dash",
                "4,2",
                json_output=True,
            )
        )
        assert restyled["color"] == "#FF455A64"
        assert restyled["thickness"] == 3.0

        (shown,) = _data(_map(cli_runner, registered, "show", json_output=True))["connections"]
        assert shown["is_curved"] is False
        assert shown["dash_array"] == [4.0, 2.0]
        assert shown["thickness"] == 3.0

    def test_restyle_rejects_curved_and_straight(
        self, cli_runner: CliRunner, registered: Path
    ) -> None:
        result = _map(cli_runner, registered, "restyle", "abcd", "--curved", "--straight")
        assert result.exit_code == 2
        assert "mutually exclusive" in result.output

    def test_update_node_font_family_choice(
        self, cli_runner: CliRunner, registered: Path
    ) -> None:
        ok = _map(cli_runner, registered, "update-node", "Idea 1", "--font-family", "arial")
        assert ok.exit_code == 0, ok.output
        bad = _map(cli_runner, registered, "update-node", "Idea 1", "--font-family", "Papyrus")
        assert bad.exit_code == 2


@pytest.mark.usefixtures("_isolated_workspace")
class TestOutlines:
    def test_import_outline(
        self, cli_runner: CliRunner, registered: Path, tmp_path: Path
    ) -> None:
        before = _data(_map(cli_runner, registered, "show", json_output=True))
        outline = tmp_path / "outline.json"
        outline.write_text(
            json.dumps(
                {
                    "title": "Rivers",
                    "nodes": [{"title": "Nile"}, {"title": "Amazon"}],
                    "connections": [{"sourceTitle": "Nile", "targetTitle": "Amazon"}],
                }
            )
        )
        data = _data(_map(cli_runner, registered, "import", str(outline), json_output=True))
        assert data["id"] == before["id"]
        assert data["title"] == "Rivers"
        assert len(data["connections"]) == 1

    def test_import_invalid_json(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _invoke(cli_runner, registered, "map", "import", "-", *AUTH, input="{nope")
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output

    def test_import_non_object(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _invoke(cli_runner, registered, "map", "import", "-", *AUTH, input="[1, 2]")
        assert result.exit_code == 1
        assert "Outline must be an object" in result.output

    def test_generate_without_plugin(self, cli_runner: CliRunner, registered: Path) -> None:
        result = _map(cli_runner, registered, "generate", "rivers")
        assert result.exit_code == 1
        assert "No outline generator is installed" in result.output
