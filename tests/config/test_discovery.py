"""Tests for walk-up config discovery."""

from pathlib import Path

import pytest

from mindmapctl.config.discovery import CONFIG_ENV_VAR, CONFIG_FILENAME, find_config


class TestFindConfig:
    def test_finds_in_start_dir(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert find_config(tmp_path) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_walks_up(self, tmp_path: Path) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        deep = tmp_path / "a" / "b"
        deep.mkdir(parents=True)
        assert find_config(deep) == (tmp_path / CONFIG_FILENAME).resolve()

    def test_none_when_missing(self, tmp_path: Path) -> None:
        # tmp_path may sit under a directory holding a stray config; only
        # assert that nothing below tmp_path was invented.
        result = find_config(tmp_path)
        assert result is None or tmp_path.resolve() not in result.parents

    def test_env_var_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        override = tmp_path / "override.toml"
        override.write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(override))
        assert find_config(tmp_path) == override

    def test_env_var_missing_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / CONFIG_FILENAME).write_text("")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "nope.toml"))
        assert find_config(tmp_path) is None
