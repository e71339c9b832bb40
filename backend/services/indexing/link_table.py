"""
Curated show links, keyed by date and kept apart from the per-build index tables.
"""
import logging
from typing import Iterable, Optional

from core.database import Database, db
from core.transaction import TransactionManager
from models.transcript_models import ShowLink

logger = logging.getLogger(__name__)


class LinkTable:
    """Replace-only access to the show_links table."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db
        self.transactions = TransactionManager(self.database)

    def replace_all(self, links: Iterable[ShowLink]) -> int:
        """
        Replace the entire table with ``links`` in one transaction.

        Rows are applied in order, so the last link for a date wins.

        Returns:
            Row count after the replacement
        """
        rows = [(link.date, link.video_url, link.host, link.custom_title) for link in links]

        with self.transactions.transaction() as conn:
            conn.execute("DELETE FROM show_links")
            conn.executemany(
                """
                INSERT OR REPLACE INTO show_links (date, video_url, host, custom_title)
                VALUES (?, ?, ?, ?)
                """,
                rows,
            )

        count = self.count()
        logger.info(f"Stored {count} show links ({len(rows)} rows read)")
        return count

    def count(self) -> int:
        row = self.database.execute_one("SELECT COUNT(*) AS count FROM show_links")
        return row["count"] if row else 0

    def get(self, date: str) -> Optional[ShowLink]:
        row = self.database.execute_one(
            "SELECT date, video_url, host, custom_title FROM show_links WHERE date = ?",
            (date,),
        )
        if not row:
            return None
        return ShowLink(
            date=row["date"],
            video_url=row["video_url"],
            host=row["host"],
            custom_title=row["custom_title"],
        )
