"""
Session database lifecycle.

The session DB normally lives next to the library it feeds (see
`for_destination`), so a restored session and its recent destinations follow
the library around.
"""
import sqlite3
import logging
import threading
from pathlib import Path
from typing import Optional

from .. import config
from .ops import DBOperations
from .schema import init_schema

class DBManager:
    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._conn: Optional[sqlite3.Connection] = None
        # One connection is shared by the CLI thread and the commit worker
        self._lock = threading.Lock()

    @classmethod
    def for_destination(cls, dest_root: Path, db_path: Optional[Path] = None) -> "DBManager":
        """An explicit `db_path` wins; otherwise the DB sits in the destination root."""
        return cls(db_path if db_path else Path(dest_root) / config.DB_FILENAME)

    def connect(self) -> sqlite3.Connection:
        if self._conn:
            return self._conn

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logging.info(f"Opening session database: {self.db_path}")
        conn = sqlite3.connect(self.db_path, check_same_thread=False, timeout=config.DB_BUSY_TIMEOUT)

        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")

        init_schema(conn)
        self._conn = conn
        return conn

    def operations(self) -> DBOperations:
        """Data-access object bound to this connection and its lock."""
        return DBOperations(self.connect(), self._lock)

    def close(self):
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> DBOperations:
        return self.operations()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
