"""SQLite engine construction.

Every connection runs in WAL journal mode with foreign keys enforced, so
an autosave in flight never blocks a reader. Unless configured otherwise
the database lives in ``{root}/.mindmapctl/mindmap.db``.

Repositories use SQLAlchemy Core: each call borrows a connection for a
statement or two and gives it back.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from mindmapctl.infrastructure.database.schema import metadata

DATA_DIRNAME = ".mindmapctl"
DB_FILENAME = "mindmap.db"

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=5000",
)


def create_db_engine(db_path: Path) -> Engine:
    engine = create_engine(f"sqlite:///{db_path}", echo=False)

    @event.listens_for(engine, "connect")
    def _apply_pragmas(dbapi_conn: Any, _record: Any) -> None:
        cursor = dbapi_conn.cursor()
        try:
            for pragma in SQLITE_PRAGMAS:
                cursor.execute(pragma)
        finally:
            cursor.close()

    return engine


def default_db_path(root: Path) -> Path:
    return root / DATA_DIRNAME / DB_FILENAME


def init_database(root: Path, db_path: Path | None = None) -> Engine:
    """Open (creating if needed) the database for *root* and its tables.

    A relative *db_path* is taken relative to *root*. Running this against
    an existing database changes nothing.
    """
    path = db_path or default_db_path(root)
    if not path.is_absolute():
        path = root / path
    path.parent.mkdir(parents=True, exist_ok=True)

    engine = create_db_engine(path)
    metadata.create_all(engine)
    return engine
