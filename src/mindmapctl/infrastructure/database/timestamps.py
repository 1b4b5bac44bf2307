"""UTC timestamp text used in every timestamp column.

Fixed-width ISO 8601 with microseconds and an explicit ``+00:00`` offset,
so lexical order in SQL equals chronological order.
"""

from __future__ import annotations

from datetime import UTC, datetime


def encode_timestamp(moment: datetime) -> str:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="microseconds")


def decode_timestamp(text: str) -> datetime:
    moment = datetime.fromisoformat(text)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)
