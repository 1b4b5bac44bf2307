"""CredentialStore — persistence boundary for accounts and reset codes.

Thin SQLAlchemy Core access with no business rules beyond what the schema
enforces (unique email). Every method acquires a connection from the
engine and releases it before returning; nothing is held across calls.

Emails are stored and matched exactly as given. Normalizing them is the
caller's job.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select, update

from mindmapctl.domain.accounts import Account, OtpRequest
from mindmapctl.infrastructure.database.schema import accounts, otp_requests
from mindmapctl.infrastructure.database.timestamps import decode_timestamp, encode_timestamp

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine, Row

logger = logging.getLogger(__name__)


def _account_from_row(row: Row[Any]) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        password_salt=row.password_salt,
        display_name=row.display_name,
        created_at=decode_timestamp(row.created_at),
        last_login_at=decode_timestamp(row.last_login_at) if row.last_login_at else None,
    )


def _otp_from_row(row: Row[Any]) -> OtpRequest:
    return OtpRequest(
        id=row.id,
        email=row.email,
        code=row.code,
        expires_at=decode_timestamp(row.expires_at),
        created_at=decode_timestamp(row.created_at),
    )


class CredentialStore:
    """Accounts and OTP requests over a SQLAlchemy engine."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def email_exists(self, email: str) -> bool:
        with self._engine.connect() as conn:
            row = conn.execute(select(accounts.c.id).where(accounts.c.email == email)).first()
        return row is not None

    def insert_account(self, account: Account) -> None:
        """Insert *account*.

        Raises:
            sqlalchemy.exc.IntegrityError: If the email is already taken.
        """
        with self._engine.begin() as conn:
            conn.execute(
                insert(accounts).values(
                    id=account.id,
                    email=account.email,
                    password_hash=account.password_hash,
                    password_salt=account.password_salt,
                    display_name=account.display_name,
                    created_at=encode_timestamp(account.created_at),
                    last_login_at=(
                        encode_timestamp(account.last_login_at) if account.last_login_at else None
                    ),
                )
            )
        logger.debug("Inserted account %s", account.id)

    def find_account(self, email: str) -> Account | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(accounts).where(accounts.c.email == email)).first()
        return _account_from_row(row) if row is not None else None

    def record_login(self, account_id: str, at: datetime) -> None:
        with self._engine.begin() as conn:
            conn.execute(
                update(accounts)
                .where(accounts.c.id == account_id)
                .values(last_login_at=encode_timestamp(at))
            )

    def update_password(self, email: str, password_hash: str, password_salt: str) -> int:
        """Overwrite the stored hash and salt. Returns the affected row count."""
        with self._engine.begin() as conn:
            result = conn.execute(
                update(accounts)
                .where(accounts.c.email == email)
                .values(password_hash=password_hash, password_salt=password_salt)
            )
            affected = result.rowcount
        return affected

    def count_accounts(self) -> int:
        with self._engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(accounts)).scalar_one())

    # ------------------------------------------------------------------
    # OTP requests
    # ------------------------------------------------------------------

    def replace_otp(self, request: OtpRequest) -> int:
        """Delete every request for ``request.email`` and insert *request*.

        Both statements run in one transaction. Returns how many prior
        requests were superseded.
        """
        with self._engine.begin() as conn:
            superseded = conn.execute(
                delete(otp_requests).where(otp_requests.c.email == request.email)
            ).rowcount
            conn.execute(
                insert(otp_requests).values(
                    id=request.id,
                    email=request.email,
                    code=request.code,
                    expires_at=encode_timestamp(request.expires_at),
                    created_at=encode_timestamp(request.created_at),
                )
            )
        return superseded

    def find_otp(self, email: str, code: str) -> OtpRequest | None:
        with self._engine.connect() as conn:
            row = conn.execute(
                select(otp_requests).where(
                    otp_requests.c.email == email,
                    otp_requests.c.code == code,
                )
            ).first()
        return _otp_from_row(row) if row is not None else None

    def list_otps(self, email: str) -> list[OtpRequest]:
        with self._engine.connect() as conn:
            rows = conn.execute(
                select(otp_requests)
                .where(otp_requests.c.email == email)
                .order_by(otp_requests.c.created_at)
            ).fetchall()
        return [_otp_from_row(r) for r in rows]

    def delete_otp(self, otp_id: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(otp_requests).where(otp_requests.c.id == otp_id))
            affected = result.rowcount
        return affected == 1
