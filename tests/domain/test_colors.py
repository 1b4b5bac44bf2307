"""Tests for the ARGB color codec."""

import pytest

from mindmapctl.domain.colors import NODE_BACKGROUND, TRANSPARENT, Color


class TestToHex:
    def test_uppercase_argb(self) -> None:
        assert Color(0xE3, 0xF2, 0xFD).to_hex() == "#FFE3F2FD"

    def test_alpha_first(self) -> None:
        assert Color(0x11, 0x22, 0x33, 0x80).to_hex() == "#80112233"


class TestFromHex:
    def test_full_argb_round_trip(self) -> None:
        assert Color.from_hex("#80112233") == Color(0x11, 0x22, 0x33, 0x80)

    def test_rrggbb_is_opaque(self) -> None:
        assert Color.from_hex("#E3F2FD") == NODE_BACKGROUND

    def test_short_rgb(self) -> None:
        assert Color.from_hex("#F0A") == Color(0xFF, 0x00, 0xAA)

    def test_short_argb(self) -> None:
        assert Color.from_hex("#8F0A") == Color(0xFF, 0x00, 0xAA, 0x88)

    def test_hash_optional(self) -> None:
        assert Color.from_hex("E3F2FD") == NODE_BACKGROUND

    def test_lowercase_accepted(self) -> None:
        assert Color.from_hex("#ffe3f2fd") == NODE_BACKGROUND

    @pytest.mark.parametrize("blank", ["", "   ", None])
    def test_blank_is_transparent(self, blank: str | None) -> None:
        assert Color.from_hex(blank) == TRANSPARENT
        assert TRANSPARENT.to_hex() == "#00FFFFFF"

    @pytest.mark.parametrize("bad", ["#12345", "#GGGGGG", "red", "#1234567890"])
    def test_rejects_malformed(self, bad: str) -> None:
        with pytest.raises(ValueError):
            Color.from_hex(bad)


class TestColor:
    def test_channel_range_checked(self) -> None:
        with pytest.raises(ValueError):
            Color(256, 0, 0)

    def test_darken_keeps_alpha(self) -> None:
        darker = Color(100, 200, 50, 128).darken()
        assert darker == Color(80, 160, 40, 128)

    def test_frozen(self) -> None:
        color = Color(1, 2, 3)
        with pytest.raises(AttributeError):
            color.r = 4  # type: ignore[misc]
