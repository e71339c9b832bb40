"""
Write path for the segment indexes and the episode registry.

The stemmed index and the trigram index are only ever written through
DualIndexWriter, which buffers segments and registry rows and flushes them
to all three tables in a single transaction.
"""
import logging
from typing import List, Optional

from core.database import Database, db
from core.transaction import TransactionManager, retry_on_transient_error
from models.transcript_models import Episode, Segment

logger = logging.getLogger(__name__)

SEGMENT_TABLES = ("segments_fts", "segments_fuzzy")


class DualIndexWriter:
    """Buffers segments and episodes, fanning each flush out to both indexes."""

    def __init__(self, database: Optional[Database] = None):
        self.database = database or db
        self.transactions = TransactionManager(self.database)
        self._segments: List[Segment] = []
        self._episodes: List[Episode] = []
        self.segments_written = 0
        self.episodes_written = 0

    @property
    def pending_segments(self) -> int:
        return len(self._segments)

    def index_segment(self, segment: Segment) -> None:
        """Queue a segment for both the stemmed and the trigram index."""
        self._segments.append(segment)

    def add_episode(self, episode: Episode) -> None:
        """Queue a registry row."""
        self._episodes.append(episode)

    def reset(self) -> None:
        """Drop and recreate both indexes and the registry."""
        with self.transactions.transaction() as conn:
            self.database.drop_index_tables(conn)
        self._segments.clear()
        self._episodes.clear()
        self.segments_written = 0
        self.episodes_written = 0

    @retry_on_transient_error()
    def flush(self) -> int:
        """
        Write everything buffered in one transaction.

        Returns:
            Number of segments written by this flush
        """
        if not self._segments and not self._episodes:
            return 0

        segment_rows = [
            (
                segment.id,
                segment.file,
                segment.line_offset,
                segment.date,
                segment.content_type.value,
                segment.text_content,
            )
            for segment in self._segments
        ]
        episode_rows = [
            (
                episode.file,
                episode.date,
                episode.content_type.value,
                episode.video_url,
                episode.custom_title,
            )
            for episode in self._episodes
        ]

        with self.transactions.transaction() as conn:
            for table in SEGMENT_TABLES:
                conn.executemany(
                    f"""
                    INSERT INTO {table} (id, file, line, date, content_type, text_content)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    segment_rows,
                )
            conn.executemany(
                """
                INSERT OR REPLACE INTO episodes (file, date, content_type, video_url, custom_title)
                VALUES (?, ?, ?, ?, ?)
                """,
                episode_rows,
            )

        written = len(segment_rows)
        self.segments_written += written
        self.episodes_written += len(episode_rows)
        self._segments.clear()
        self._episodes.clear()
        logger.debug(f"Flushed {written} segments and {len(episode_rows)} episodes")
        return written
