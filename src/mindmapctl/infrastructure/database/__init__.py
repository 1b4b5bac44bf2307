"""SQLite database engine and schema via SQLAlchemy Core."""

from mindmapctl.infrastructure.database.engine import create_db_engine, init_database
from mindmapctl.infrastructure.database.schema import accounts, documents, metadata, otp_requests

__all__ = [
    "accounts",
    "create_db_engine",
    "documents",
    "init_database",
    "metadata",
    "otp_requests",
]
