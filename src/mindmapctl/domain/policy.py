"""Input rules for the registration and password-reset forms.

Each check returns a human-readable problem description, or ``None`` when
the input is acceptable.
"""

from __future__ import annotations

import re

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DISPLAY_NAME_RE = re.compile(r"^[^\W_]+(?: [^\W_]+)*$")
_RESERVED_NAME_RE = re.compile(r"\b(admin|root|system)\b", re.IGNORECASE)

COMMON_PASSWORDS = frozenset({"password", "123456", "123456789", "qwerty", "letmein", "admin"})

DEFAULT_MIN_PASSWORD_LENGTH = 10


def check_email(email: str) -> str | None:
    if not email or not email.strip():
        return "Email is required"
    if EMAIL_RE.match(email.strip()) is None:
        return "Email is not valid"
    return None


def check_display_name(name: str | None) -> str | None:
    if name is None or not name.strip():
        return "Display name is required"
    trimmed = name.strip()
    if not 2 <= len(trimmed) <= 40:
        return "Display name must be 2-40 characters"
    if _DISPLAY_NAME_RE.match(trimmed) is None:
        return "Display name may only contain letters, digits and spaces"
    if _RESERVED_NAME_RE.search(trimmed):
        return "This display name is not allowed"
    return None


def check_password(
    password: str,
    *,
    email: str = "",
    display_name: str | None = None,
    min_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
) -> str | None:
    """Strength rules: length, character classes, no personal data."""
    if not password:
        return "Password is required"
    if len(password) < min_length:
        return f"Password must be at least {min_length} characters"

    classes = sum(
        (
            any(ch.islower() for ch in password),
            any(ch.isupper() for ch in password),
            any(ch.isdigit() for ch in password),
            any(not ch.isalnum() for ch in password),
        )
    )
    if classes < 3:
        return "Password needs 3 of: lowercase, uppercase, digits, symbols"

    lowered = password.lower()
    if email.strip() and email.strip().lower() in lowered:
        return "Password must not contain the email"
    if display_name and display_name.strip() and display_name.strip().lower() in lowered:
        return "Password must not contain the display name"
    if any(ch.isspace() for ch in password):
        return "Password must not contain whitespace"
    if is_common_password(password):
        return "Password is too common"
    return None


def is_common_password(password: str) -> bool:
    return password.lower() in COMMON_PASSWORDS
