"""SQLAlchemy Core table definitions for the mindmapctl database.

Three tables: accounts, one-time passcodes, and document snapshots.
All timestamps are UTC ISO 8601 text, which sorts chronologically.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, MetaData, Table, Text

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", Text, primary_key=True),
    Column("email", Text, nullable=False, unique=True),  # normalized
    Column("password_hash", Text, nullable=False),
    Column("password_salt", Text, nullable=False),
    Column("display_name", Text),
    Column("created_at", Text, nullable=False),
    Column("last_login_at", Text),
)

otp_requests = Table(
    "otp_requests",
    metadata,
    Column("id", Text, primary_key=True),
    Column("email", Text, nullable=False),
    Column("code", Text, nullable=False),
    Column("expires_at", Text, nullable=False),
    Column("created_at", Text, nullable=False),
)

documents = Table(
    "documents",
    metadata,
    Column("id", Text, primary_key=True),
    Column("owner_id", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("content", Text, nullable=False),  # JSON snapshot
    Column("updated_at", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for frequently filtered columns
# ---------------------------------------------------------------------------

Index("ix_otp_requests_email", otp_requests.c.email)
Index("ix_documents_owner_id", documents.c.owner_id)
