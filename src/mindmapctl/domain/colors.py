"""ARGB color values and their ``#AARRGGBB`` text encoding.

Encoding always emits the full eight-digit form so alpha survives a
round-trip. Decoding is lenient about the short forms hand-edited files
tend to contain.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{3,8})$")


@dataclass(frozen=True, slots=True)
class Color:
    """An 8-bit-per-channel color with alpha."""

    r: int
    g: int
    b: int
    a: int = 255

    def __post_init__(self) -> None:
        for channel in (self.a, self.r, self.g, self.b):
            if not 0 <= channel <= 255:
                msg = f"Color channel out of range: {channel}"
                raise ValueError(msg)

    def to_hex(self) -> str:
        """Encode as ``#AARRGGBB`` (uppercase)."""
        return f"#{self.a:02X}{self.r:02X}{self.g:02X}{self.b:02X}"

    def darken(self, factor: float = 0.8) -> Color:
        """Scale the RGB channels by *factor*, keeping alpha."""

        def _clamp(value: float) -> int:
            return max(0, min(255, int(value)))

        return Color(
            _clamp(self.r * factor),
            _clamp(self.g * factor),
            _clamp(self.b * factor),
            self.a,
        )

    @classmethod
    def from_hex(cls, text: str | None) -> Color:
        """Decode ``#AARRGGBB``, ``#RRGGBB``, ``#ARGB`` or ``#RGB``.

        Blank input decodes to :data:`TRANSPARENT`.

        Raises:
            ValueError: If *text* is not a recognized hex color.
        """
        if text is None or not text.strip():
            return TRANSPARENT

        match = _HEX_RE.match(text.strip())
        if match is None:
            msg = f"Invalid color: {text!r}"
            raise ValueError(msg)

        digits = match.group(1)
        if len(digits) in (3, 4):
            digits = "".join(ch * 2 for ch in digits)
        if len(digits) == 6:
            digits = "FF" + digits
        if len(digits) != 8:
            msg = f"Invalid color: {text!r}"
            raise ValueError(msg)

        a, r, g, b = (int(digits[i : i + 2], 16) for i in range(0, 8, 2))
        return cls(r=r, g=g, b=b, a=a)


TRANSPARENT = Color(255, 255, 255, 0)
BLACK = Color(0, 0, 0)
WHITE = Color(255, 255, 255)

# Editor defaults
NODE_BACKGROUND = Color(0xE3, 0xF2, 0xFD)
NODE_BORDER = Color(0x4E, 0x89, 0xAE)
NODE_TEXT = Color(0x27, 0x3C, 0x4E)
CONNECTION_STROKE = Color(0x4E, 0x89, 0xAE)
SLATE_GRAY = Color(0x70, 0x80, 0x90)

PALETTE: tuple[str, ...] = (
    "#E3F2FD",
    "#FCE4EC",
    "#E8F5E9",
    "#FFF3E0",
    "#F3E5F5",
    "#E0F7FA",
)
