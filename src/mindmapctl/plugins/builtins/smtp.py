"""Built-in SMTP plugin for password-reset code delivery.

Answers ``deliver_otp`` only when an SMTP host is configured; otherwise it
returns None so another plugin (or nobody) can handle the request. Network
and authentication failures are logged and reported as ``False``.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

import pluggy

from mindmapctl.config.models import EmailConfig

hookimpl = pluggy.HookimplMarker("mindmapctl")

logger = logging.getLogger(__name__)

SUBJECT = "Your password reset code"


def render_body(code: str, *, sender_name: str) -> str:
    return (
        "Hello,\n\n"
        f"Your password reset code is: {code}\n\n"
        "The code expires shortly and can be used only once. "
        "If you did not request a reset, you can ignore this message.\n\n"
        f"{sender_name}\n"
    )


class SmtpDeliveryPlugin:
    """Send reset codes through an SMTP relay."""

    def __init__(self, config: EmailConfig | None = None) -> None:
        self._config = config or EmailConfig()

    @property
    def enabled(self) -> bool:
        return bool(self._config.smtp_host)

    def build_message(self, recipient: str, code: str) -> EmailMessage:
        cfg = self._config
        message = EmailMessage()
        message["Subject"] = SUBJECT
        message["From"] = formataddr((cfg.sender_name, cfg.sender_email))
        message["To"] = recipient
        message.set_content(render_body(code, sender_name=cfg.sender_name))
        return message

    @hookimpl
    def deliver_otp(self, recipient: str, code: str) -> bool | None:
        if not self.enabled:
            return None

        cfg = self._config
        message = self.build_message(recipient, code)
        try:
            with smtplib.SMTP(cfg.smtp_host, cfg.smtp_port, timeout=cfg.timeout) as smtp:
                if cfg.use_tls:
                    smtp.starttls()
                if cfg.sender_password:
                    smtp.login(cfg.sender_email, cfg.sender_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.warning("SMTP delivery to %s failed", recipient, exc_info=True)
            return False

        logger.debug("Reset code sent to %s via %s", recipient, cfg.smtp_host)
        return True
