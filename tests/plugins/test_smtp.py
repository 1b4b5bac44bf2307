"""Tests for the built-in SMTP delivery plugin."""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Any

import pytest

from mindmapctl.config.models import EmailConfig
from mindmapctl.plugins.builtins import smtp as smtp_module
from mindmapctl.plugins.builtins.smtp import SUBJECT, SmtpDeliveryPlugin

CONFIGURED = EmailConfig(
    smtp_host="smtp.example.com",
    smtp_port=2525,
    sender_email="noreply@example.com",
    sender_name="Mindmap App",
    sender_password="hunter2",
)


class FakeSMTP:
    """Records the calls smtplib.SMTP would receive."""

    instances: list[FakeSMTP] = []
    fail_with: Exception | None = None

    def __init__(self, host: str, port: int, timeout: float) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.calls: list[str] = []
        self.sent: list[EmailMessage] = []
        FakeSMTP.instances.append(self)

    def __enter__(self) -> FakeSMTP:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.calls.append("quit")

    def starttls(self) -> None:
        self.calls.append("starttls")

    def login(self, user: str, password: str) -> None:
        self.calls.append(f"login:{user}")

    def send_message(self, message: EmailMessage) -> None:
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.calls.append("send")
        self.sent.append(message)


@pytest.fixture
def fake_smtp(monkeypatch: pytest.MonkeyPatch) -> type[FakeSMTP]:
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtp_module.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


class TestSmtpDeliveryPlugin:
    def test_disabled_without_host(self, fake_smtp: type[FakeSMTP]) -> None:
        plugin = SmtpDeliveryPlugin(EmailConfig())
        assert not plugin.enabled
        assert plugin.deliver_otp(recipient="ada@example.com", code="123456") is None
        assert fake_smtp.instances == []

    def test_sends_message(self, fake_smtp: type[FakeSMTP]) -> None:
        plugin = SmtpDeliveryPlugin(CONFIGURED)
        assert plugin.deliver_otp(recipient="ada@example.com", code="654321") is True

        (conn,) = fake_smtp.instances
        assert (conn.host, conn.port) == ("smtp.example.com", 2525)
        assert conn.calls == ["starttls", "login:noreply@example.com", "send", "quit"]
        (message,) = conn.sent
        assert message["To"] == "ada@example.com"
        assert message["Subject"] == SUBJECT
        assert "654321" in message.get_content()

    def test_no_tls_no_login(self, fake_smtp: type[FakeSMTP]) -> None:
        config = CONFIGURED.model_copy(update={"use_tls": False, "sender_password": ""})
        assert SmtpDeliveryPlugin(config).deliver_otp(recipient="a@b.co", code="111111")
        assert fake_smtp.instances[0].calls == ["send", "quit"]

    @pytest.mark.parametrize(
        "error",
        [smtplib.SMTPRecipientsRefused({}), ConnectionRefusedError("refused")],
    )
    def test_failure_reports_false(self, fake_smtp: type[FakeSMTP], error: Exception) -> None:
        fake_smtp.fail_with = error
        plugin = SmtpDeliveryPlugin(CONFIGURED)
        assert plugin.deliver_otp(recipient="ada@example.com", code="123456") is False

    def test_from_header(self) -> None:
        message = SmtpDeliveryPlugin(CONFIGURED).build_message("ada@example.com", "123456")
        assert message["From"] == "Mindmap App <noreply@example.com>"
