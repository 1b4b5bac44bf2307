"""Shared service-layer helper functions."""

from __future__ import annotations

from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def resolve_prefix(candidates: list[str], ref: str) -> list[str]:
    """Ids matching *ref* exactly, else every id starting with *ref*.

    Examples:
        >>> resolve_prefix(["abc1", "abd2"], "ab")
        ['abc1', 'abd2']
        >>> resolve_prefix(["abc1", "abc"], "abc")
        ['abc']
    """
    ref = ref.strip()
    if not ref:
        return []
    if ref in candidates:
        return [ref]
    return [c for c in candidates if c.startswith(ref)]
