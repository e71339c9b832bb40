"""
SQLite database connection and initialization.
"""
import logging
import sqlite3
from pathlib import Path
from typing import Optional, List
from contextlib import contextmanager

from .config import DB_PATH, SCHEMA_FILE

logger = logging.getLogger(__name__)

# Tables that belong to one index generation; dropped on every rebuild
INDEX_TABLES = ("segments_fts", "segments_fuzzy", "episodes")


class Database:
    """Database manager for SQLite operations."""

    def __init__(self, db_path: Path = DB_PATH, schema_file: Path = SCHEMA_FILE):
        self.db_path = Path(db_path)
        self.schema_file = Path(schema_file)
        self.ensure_tables()

    @contextmanager
    def get_connection(self):
        """Context manager for database connections."""
        conn = self.get_connection_raw()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_connection_raw(self):
        """Get a raw connection (for operations that need manual commit)."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def ensure_tables(self, conn: Optional[sqlite3.Connection] = None):
        """Create all tables if they don't exist."""
        with open(self.schema_file, "r", encoding="utf-8") as f:
            schema = f.read()

        if conn is not None:
            _execute_statements(conn, schema)
            return

        with self.get_connection() as conn:
            # WAL lets searches read the last committed batch while a build writes
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(schema)

    def drop_index_tables(self, conn: sqlite3.Connection):
        """Drop and recreate the per-generation tables inside the caller's transaction."""
        for table in INDEX_TABLES:
            conn.execute(f"DROP TABLE IF EXISTS {table}")
        self.ensure_tables(conn)

    def execute(self, query: str, params: Optional[tuple] = None) -> List[sqlite3.Row]:
        """Execute a SELECT query and return results."""
        with self.get_connection() as conn:
            cursor = conn.execute(query, params or ())
            return cursor.fetchall()

    def execute_one(self, query: str, params: Optional[tuple] = None) -> Optional[sqlite3.Row]:
        """Execute a SELECT query and return first result."""
        results = self.execute(query, params)
        return results[0] if results else None

    def execute_write(self, query: str, params: Optional[tuple] = None) -> int:
        """Execute an INSERT/UPDATE/DELETE query and return last row ID."""
        conn = self.get_connection_raw()
        try:
            cursor = conn.execute(query, params or ())
            conn.commit()
            return cursor.lastrowid
        finally:
            conn.close()

    def get_meta(self, key: str) -> Optional[str]:
        row = self.execute_one("SELECT value FROM metadata WHERE key = ?", (key,))
        return row["value"] if row else None

    def set_meta(self, key: str, value: str) -> None:
        self.execute_write(
            "INSERT OR REPLACE INTO metadata (key, value) VALUES (?, ?)",
            (key, value),
        )

    def delete_meta(self, key: str) -> None:
        self.execute_write("DELETE FROM metadata WHERE key = ?", (key,))


def _execute_statements(conn: sqlite3.Connection, script: str):
    """Run a multi-statement script without executescript's implicit COMMIT."""
    buffer = []
    for line in script.splitlines():
        if not buffer and (not line.strip() or line.strip().startswith("--")):
            continue
        buffer.append(line)
        statement = "\n".join(buffer)
        # Semicolons inside comments or string literals do not end a statement
        if sqlite3.complete_statement(statement):
            conn.execute(statement)
            buffer = []

    if "\n".join(buffer).strip():
        raise sqlite3.OperationalError(f"Incomplete statement in schema: {' '.join(buffer)[:80]}")


# Global database instance
db = Database()
