"""SQLite connection for the persisted decision ledger."""

import sqlite3
from pathlib import Path
from typing import Optional

from crossvote.config import get_settings
from crossvote.database.models import ALL_TABLES
from crossvote.exceptions import LedgerStoreError


class Database:
    """Lazily opened connection to the ledger database.

    The connection may be used from the thread of whichever cycle holds
    the session lock, so it is opened with check_same_thread disabled.
    """

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses config value.
        """
        self.db_path = db_path or get_settings().database_path
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Open the ledger database on first use.

        Raises:
            LedgerStoreError: If the file or its directory cannot be opened
        """
        if self._conn is None:
            try:
                if self.db_path != ":memory:":
                    Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(self.db_path, check_same_thread=False)
            except (OSError, sqlite3.Error) as e:
                raise LedgerStoreError(f"Cannot open decision ledger at {self.db_path}: {e}")
            conn.row_factory = sqlite3.Row
            self._conn = conn
        return self._conn

    def initialize_schema(self) -> None:
        """Create the decision tables and indexes if missing."""
        try:
            cursor = self.conn.cursor()
            for sql in ALL_TABLES:
                cursor.execute(sql)
            self.conn.commit()
        except sqlite3.Error as e:
            raise LedgerStoreError(f"Cannot create ledger schema in {self.db_path}: {e}")

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


_db: Optional[Database] = None


def get_db() -> Database:
    """Shared ledger database with its schema in place."""
    global _db
    if _db is None:
        db = Database()
        db.initialize_schema()
        _db = db
    return _db


def close_db() -> None:
    global _db
    if _db is not None:
        _db.close()
        _db = None
