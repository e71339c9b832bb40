"""
Tests for schema bootstrap and per-generation table recreation.
"""
import sqlite3

import pytest

from core.config import SCHEMA_FILE
from core.database import Database
from core.transaction import TransactionManager

TRICKY_SCHEMA = """-- header comment; with a semicolon
CREATE TABLE IF NOT EXISTS segments_fts (
    id TEXT, -- trailing note; also with a semicolon
    text_content TEXT DEFAULT 'a;b'
);

-- another comment; here
CREATE TABLE IF NOT EXISTS segments_fuzzy (id TEXT);
CREATE TABLE IF NOT EXISTS episodes (file TEXT PRIMARY KEY);
CREATE TABLE IF NOT EXISTS metadata (key TEXT PRIMARY KEY, value TEXT);
"""


def _tables(database):
    rows = database.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
    return {row["name"] for row in rows}


class TestSchema:
    """Test recreating index tables inside a transaction."""

    def test_shipped_schema_recreates_index_tables(self, tmp_path):
        database = Database(tmp_path / "shipped.db", SCHEMA_FILE)
        database.execute_write(
            "INSERT INTO episodes (file, date, content_type) VALUES (?, ?, ?)",
            ("timestamps/a.txt", "1999-01-01", "show"),
        )

        with TransactionManager(database).transaction() as conn:
            database.drop_index_tables(conn)

        assert {"segments_fts", "segments_fuzzy", "episodes", "show_links", "metadata"} <= _tables(database)
        assert database.execute_one("SELECT COUNT(*) AS count FROM episodes")["count"] == 0

    def test_semicolons_in_comments_and_literals(self, tmp_path):
        schema = tmp_path / "schema.sql"
        schema.write_text(TRICKY_SCHEMA, encoding="utf-8")
        database = Database(tmp_path / "tricky.db", schema)

        with TransactionManager(database).transaction() as conn:
            database.drop_index_tables(conn)

        assert {"segments_fts", "segments_fuzzy", "episodes"} <= _tables(database)

    def test_truncated_schema_is_rejected(self, tmp_path):
        schema = tmp_path / "schema.sql"
        schema.write_text(TRICKY_SCHEMA, encoding="utf-8")
        database = Database(tmp_path / "truncated.db", schema)
        schema.write_text("CREATE TABLE IF NOT EXISTS episodes (file TEXT", encoding="utf-8")

        with pytest.raises(sqlite3.OperationalError):
            with TransactionManager(database).transaction() as conn:
                database.drop_index_tables(conn)
