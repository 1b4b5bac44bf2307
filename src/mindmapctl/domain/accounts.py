"""Account and one-time passcode records.

INVARIANT: Emails are compared in normalized form only (trimmed,
lowercased). Every read and write path goes through :func:`normalize_email`.
"""

from __future__ import annotations

import secrets
from datetime import datetime

from pydantic import BaseModel

OTP_MIN = 100_000
OTP_MAX = 999_999


class Account(BaseModel):
    """A registered user."""

    model_config = {"frozen": True}

    id: str
    email: str
    password_hash: str
    password_salt: str
    display_name: str | None = None
    created_at: datetime
    last_login_at: datetime | None = None

    @property
    def label(self) -> str:
        """Display name, falling back to the email."""
        return self.display_name or self.email


class OtpRequest(BaseModel):
    """A pending password-reset code."""

    model_config = {"frozen": True}

    id: str
    email: str
    code: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_otp_code() -> str:
    """Six-digit code in ``[100000, 999999]`` from a CSPRNG."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
