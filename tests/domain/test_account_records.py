"""Tests for account records, email normalization and reset codes."""

from datetime import UTC, datetime, timedelta

from mindmapctl.domain.accounts import (
    OTP_MAX,
    OTP_MIN,
    Account,
    OtpRequest,
    generate_otp_code,
    normalize_email,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=UTC)


class TestNormalizeEmail:
    def test_trims_and_lowercases(self) -> None:
        assert normalize_email("  A@X.com ") == "a@x.com"


class TestOtpCode:
    def test_six_digits_in_range(self) -> None:
        for _ in range(200):
            code = generate_otp_code()
            assert len(code) == 6
            assert OTP_MIN <= int(code) <= OTP_MAX


class TestOtpRequest:
    def _request(self, expires_at: datetime) -> OtpRequest:
        return OtpRequest(
            id="1", email="a@x.com", code="123456", expires_at=expires_at, created_at=NOW
        )

    def test_not_expired_before_deadline(self) -> None:
        assert not self._request(NOW + timedelta(minutes=10)).is_expired(NOW)

    def test_expired_at_deadline(self) -> None:
        assert self._request(NOW).is_expired(NOW)


class TestAccount:
    def test_label_prefers_display_name(self) -> None:
        account = Account(
            id="1", email="a@x.com", password_hash="h", password_salt="s", created_at=NOW
        )
        assert account.label == "a@x.com"
        assert account.model_copy(update={"display_name": "Ada"}).label == "Ada"
