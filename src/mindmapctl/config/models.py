"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, mindmapctl.toml only contains
overrides. A fresh install needs no config file at all.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# --- mindmapctl.toml sections ---


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    # Relative paths resolve against the workspace root.
    path: str = ".mindmapctl/mindmap.db"


class AccountsConfig(BaseModel):
    """[accounts] section."""

    model_config = {"frozen": True}

    otp_lifetime_minutes: int = 10
    min_password_length: int = 10


class AutosaveConfig(BaseModel):
    """[autosave] section."""

    model_config = {"frozen": True}

    quiet_period: float = 2.0


class DocumentsConfig(BaseModel):
    """[documents] section."""

    model_config = {"frozen": True}

    default_title: str = "Mindmap of {name}"


class EmailConfig(BaseModel):
    """[email] section — SMTP settings for reset-code delivery."""

    model_config = {"frozen": True}

    smtp_host: str = ""
    smtp_port: int = 587
    use_tls: bool = True
    sender_email: str = ""
    sender_name: str = "Mindmap App"
    sender_password: str = ""
    timeout: float = 30.0


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    smtp: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})
