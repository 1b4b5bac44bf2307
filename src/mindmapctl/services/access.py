"""AccessService — the registration, login and password-reset flows.

Wraps :class:`AccountService` with the input rules of the account forms
and turns its boolean declines into :class:`ServiceResult` failures with a
human-readable message. Reset codes are handed to whichever plugin answers
the ``deliver_otp`` hook.

The code is consumed before the new password is written. A crash between
the two leaves the code spent and the old password in place; the user
requests a new code.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from mindmapctl.domain.accounts import normalize_email
from mindmapctl.domain.policy import check_display_name, check_email, check_password
from mindmapctl.services.accounts import AccountService
from mindmapctl.services.base import BaseService
from mindmapctl.services.result import ServiceResult

if TYPE_CHECKING:
    from mindmapctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Invalid email or password"


class AccessService(BaseService):
    """Interactive account flows returning ServiceResult."""

    def __init__(self, workspace: Workspace, accounts: AccountService | None = None) -> None:
        super().__init__(workspace)
        self._accounts = accounts or AccountService(workspace)

    @property
    def accounts(self) -> AccountService:
        return self._accounts

    @property
    def _min_password_length(self) -> int:
        return self._workspace.settings.accounts.min_password_length

    @property
    def otp_lifetime(self) -> timedelta:
        return timedelta(minutes=self._workspace.settings.accounts.otp_lifetime_minutes)

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    async def register(
        self,
        email: str,
        password: str,
        confirm_password: str,
        display_name: str | None = None,
    ) -> ServiceResult:
        op = "register"
        problem = check_email(email)
        if problem:
            return ServiceResult.failure(op, "INVALID_EMAIL", problem)

        if display_name is not None and display_name.strip():
            problem = check_display_name(display_name)
            if problem:
                return ServiceResult.failure(op, "INVALID_DISPLAY_NAME", problem)

        if password != confirm_password:
            return ServiceResult.failure(op, "PASSWORD_MISMATCH", "Passwords do not match")

        problem = check_password(
            password,
            email=email,
            display_name=display_name,
            min_length=self._min_password_length,
        )
        if problem:
            return ServiceResult.failure(op, "WEAK_PASSWORD", problem)

        if not await self._accounts.register(email, password, display_name):
            return ServiceResult.failure(
                op, "EMAIL_TAKEN", "An account with this email already exists"
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={"email": normalize_email(email), "display_name": display_name or None},
        )

    async def login(self, email: str, password: str) -> ServiceResult:
        op = "login"
        account = await self._accounts.authenticate(email, password)
        if account is None:
            return ServiceResult.failure(op, "LOGIN_FAILED", LOGIN_FAILED_MESSAGE)

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": account.id,
                "email": account.email,
                "display_name": account.display_name,
                "label": account.label,
            },
        )

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def send_reset_code(self, email: str) -> ServiceResult:
        """Issue a code and deliver it. No retry on delivery failure.

        Nothing is issued while no delivery channel is active, so a code
        the user already holds stays valid.
        """
        op = "send_reset_code"
        problem = check_email(email)
        if problem:
            return ServiceResult.failure(op, "INVALID_EMAIL", problem)
        if not await self._accounts.exists(email):
            return ServiceResult.failure(op, "UNKNOWN_EMAIL", "No account uses this email")

        plugins = self._workspace.plugins
        if not plugins.has_implementations("deliver_otp", active_only=True):
            return ServiceResult.failure(
                op, "DELIVERY_UNAVAILABLE", "No delivery channel is configured"
            )

        code = await self._accounts.request_password_reset(email, self.otp_lifetime)
        if code is None:
            return ServiceResult.failure(op, "UNKNOWN_EMAIL", "No account uses this email")

        recipient = normalize_email(email)
        try:
            delivered = await self._run(_call_deliverer, plugins.hook, recipient, code)
        except Exception as exc:
            logger.warning("Reset code delivery to %s raised", recipient, exc_info=True)
            return ServiceResult.failure(
                op, "DELIVERY_FAILED", f"Could not send the reset code: {exc}"
            )

        if delivered is None:
            return ServiceResult.failure(
                op, "DELIVERY_UNAVAILABLE", "No delivery channel is configured"
            )
        if not delivered:
            return ServiceResult.failure(op, "DELIVERY_FAILED", "Could not send the reset code")

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "email": recipient,
                "expires_in_minutes": self._workspace.settings.accounts.otp_lifetime_minutes,
            },
        )

    async def reset_password(
        self,
        email: str,
        code: str,
        new_password: str,
        confirm_password: str,
    ) -> ServiceResult:
        op = "reset_password"
        if new_password != confirm_password:
            return ServiceResult.failure(op, "PASSWORD_MISMATCH", "Passwords do not match")

        problem = check_password(
            new_password,
            email=email,
            min_length=self._min_password_length,
        )
        if problem:
            return ServiceResult.failure(op, "WEAK_PASSWORD", problem)

        if not await self._accounts.validate_otp(email, code):
            return ServiceResult.failure(op, "INVALID_CODE", "The code is invalid or has expired")

        if not await self._accounts.update_password(email, new_password):
            return ServiceResult.failure(op, "UNKNOWN_EMAIL", "No account uses this email")

        return ServiceResult(ok=True, op=op, data={"email": normalize_email(email)})


def _call_deliverer(hook: Any, recipient: str, code: str) -> bool | None:
    return hook.deliver_otp(recipient=recipient, code=code)
