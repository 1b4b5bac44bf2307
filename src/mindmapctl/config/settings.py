"""MindmapSettings: one frozen object built from every configuration layer.

Values are taken from, in order of precedence:

* keyword overrides (the CLI passes its global flags this way),
* ``MINDMAPCTL_*`` environment variables, with ``__`` reaching into sections,
* the ``mindmapctl.toml`` in effect (see :func:`find_config`),
* defaults declared on the section models.
"""

from __future__ import annotations

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsError

from mindmapctl.config.discovery import find_config
from mindmapctl.config.models import (
    AccountsConfig,
    AutosaveConfig,
    DatabaseConfig,
    DocumentsConfig,
    EmailConfig,
    PluginsConfig,
)


class ConfigError(ValueError):
    """The configuration file or a MINDMAPCTL_* variable could not be read."""


def _read_toml(path: Path | None) -> dict[str, Any]:
    if path is None or not path.is_file():
        return {}
    try:
        with path.open("rb") as fh:
            return tomllib.load(fh)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by a single TOML document."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self.toml_path = toml_path
        self._data = _read_toml(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return dict(self._data)


# The TOML file for the settings object currently being built by load().
_active_toml: ContextVar[Path | None] = ContextVar("mindmapctl_active_toml", default=None)


class MindmapSettings(BaseSettings):
    """Settings shared by the library and the CLI.

    ``root`` is the workspace directory: the folder holding the config file,
    else the working directory. A relative ``database.path`` is taken
    relative to it. ``config_path`` names the TOML file that was read.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "MINDMAPCTL_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    accounts: AccountsConfig = Field(default_factory=AccountsConfig)
    autosave: AutosaveConfig = Field(default_factory=AutosaveConfig)
    documents: DocumentsConfig = Field(default_factory=DocumentsConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        toml_source = TomlSettingsSource(settings_cls, _active_toml.get())
        return init_settings, env_settings, toml_source

    @classmethod
    def load(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        **overrides: Any,
    ) -> MindmapSettings:
        """Build settings for *root* (default: derived from the config file).

        An explicit *config_path* that does not exist means "no file";
        otherwise the file is searched for upwards from *root* or the CWD.
        Unreadable TOML and malformed ``MINDMAPCTL_*`` values raise
        :class:`ConfigError`.
        """
        if config_path:
            candidate = Path(config_path)
            toml_path = candidate if candidate.is_file() else None
        else:
            toml_path = find_config(root)

        if root is None:
            root = toml_path.parent if toml_path is not None else Path.cwd()

        token = _active_toml.set(toml_path)
        try:
            return cls(root=root, config_path=toml_path, **overrides)
        except (SettingsError, ValidationError) as exc:
            raise ConfigError(f"Invalid settings: {exc}") from exc
        finally:
            _active_toml.reset(token)

    @property
    def db_path(self) -> Path:
        """The database file as an absolute path."""
        path = Path(self.database.path)
        if path.is_absolute():
            return path
        return self.root / path
