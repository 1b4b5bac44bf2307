"""AccountService — registration, authentication and the reset-code lifecycle.

Declines are plain values: ``False`` or ``None`` for a duplicate email,
a wrong password, an unknown account or a bad code. Unknown email and wrong
password are deliberately indistinguishable to the caller. Storage errors
(:class:`sqlalchemy.exc.SQLAlchemyError`) propagate.

Reset-code lifecycle per email::

    no request --request--> pending --validate--> consumed (row deleted)
                   pending --request--> pending (previous row deleted)
                   pending --time----> expired (row kept until superseded)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from mindmapctl.domain.accounts import Account, OtpRequest, generate_otp_code, normalize_email
from mindmapctl.domain.graph import new_id
from mindmapctl.domain.passwords import PasswordHasher
from mindmapctl.infrastructure.credentials import CredentialStore
from mindmapctl.services._helpers import utcnow
from mindmapctl.services.base import BaseService

if TYPE_CHECKING:
    from mindmapctl.infrastructure.workspace import Workspace

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class AccountService(BaseService):
    """Credential lifecycle over a :class:`CredentialStore`."""

    def __init__(
        self,
        workspace: Workspace,
        *,
        hasher: PasswordHasher | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(workspace)
        self._store = CredentialStore(workspace.engine)
        self._hasher = hasher or PasswordHasher()
        self._clock = clock or utcnow

    @property
    def store(self) -> CredentialStore:
        return self._store

    # ------------------------------------------------------------------
    # Registration and login
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str, display_name: str | None = None) -> bool:
        """Create an account. ``False`` for blank input or a taken email."""
        if not email or not email.strip() or not password:
            return False
        normalized = normalize_email(email)
        name = display_name.strip() if display_name and display_name.strip() else None
        return await self._run(self._register_sync, normalized, password, name)

    def _register_sync(self, email: str, password: str, display_name: str | None) -> bool:
        if self._store.email_exists(email):
            logger.debug("Registration declined: %s already exists", email)
            return False

        password_hash, password_salt = self._hasher.hash(password)
        account = Account(
            id=new_id(),
            email=email,
            password_hash=password_hash,
            password_salt=password_salt,
            display_name=display_name,
            created_at=self._clock(),
        )
        try:
            self._store.insert_account(account)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            logger.debug("Registration declined: %s inserted concurrently", email)
            return False

        logger.info("Registered account %s", account.id)
        self._dispatch_event("post_register", {"account_id": account.id, "email": email})
        return True

    async def exists(self, email: str) -> bool:
        if not email or not email.strip():
            return False
        return await self._run(self._store.email_exists, normalize_email(email))

    async def authenticate(self, email: str, password: str) -> Account | None:
        """Return the account on a correct password, else None."""
        if not email or not email.strip() or not password:
            return None
        return await self._run(self._authenticate_sync, normalize_email(email), password)

    def _authenticate_sync(self, email: str, password: str) -> Account | None:
        account = self._store.find_account(email)
        if account is None:
            return None
        if not self._hasher.verify(password, account.password_hash, account.password_salt):
            return None

        now = self._clock()
        self._store.record_login(account.id, now)
        return account.model_copy(update={"last_login_at": now})

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------

    async def request_password_reset(self, email: str, lifetime: timedelta) -> str | None:
        """Issue a fresh code for *email*, superseding any earlier one.

        Returns the code, or None when no account has that email.
        """
        if not email or not email.strip():
            return None
        return await self._run(self._request_reset_sync, normalize_email(email), lifetime)

    def _request_reset_sync(self, email: str, lifetime: timedelta) -> str | None:
        if not self._store.email_exists(email):
            return None

        now = self._clock()
        request = OtpRequest(
            id=new_id(),
            email=email,
            code=generate_otp_code(),
            expires_at=now + lifetime,
            created_at=now,
        )
        superseded = self._store.replace_otp(request)
        logger.debug("Issued reset code for %s (superseded %d)", email, superseded)
        return request.code

    async def validate_otp(self, email: str, code: str) -> bool:
        """Consume a matching, unexpired code. Single use."""
        if not email or not email.strip() or not code or not code.strip():
            return False
        return await self._run(self._validate_otp_sync, normalize_email(email), code.strip())

    def _validate_otp_sync(self, email: str, code: str) -> bool:
        request = self._store.find_otp(email, code)
        if request is None:
            return False
        if request.is_expired(self._clock()):
            logger.debug("Reset code for %s has expired", email)
            return False
        # A concurrent validation may have consumed it first.
        return self._store.delete_otp(request.id)

    async def update_password(self, email: str, new_password: str) -> bool:
        """Re-hash and store *new_password*. ``False`` if no row changed."""
        if not email or not email.strip() or not new_password:
            return False
        return await self._run(self._update_password_sync, normalize_email(email), new_password)

    def _update_password_sync(self, email: str, new_password: str) -> bool:
        password_hash, password_salt = self._hasher.hash(new_password)
        return self._store.update_password(email, password_hash, password_salt) > 0
