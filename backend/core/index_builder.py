"""
Index build orchestration.

Runs once per process start: if the stored version marker matches
INDEX_VERSION the existing index is reused, otherwise both full-text
indexes and the episode registry are rebuilt from the transcript files and
the show link table is reconciled from the metadata CSV.
"""
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Optional

from core.config import (
    INDEX_BATCH_SIZE,
    INDEX_VERSION,
    INDEX_YIELD_EVERY,
    METADATA_CSV_PATH,
    METADATA_INITIATORS,
    TRANSCRIPTS_DIR,
)
from core.database import Database, db
from core.errors import NoSourcesFoundError, SourceReadError
from models.transcript_models import BuildStatus
from services.indexing.link_table import LinkTable
from services.indexing.segment_index import DualIndexWriter
from services.ingestion.file_discovery import discover_sources
from services.ingestion.metadata_loader import load_metadata_file
from services.processing.transcriber import parse_source_file

logger = logging.getLogger(__name__)

VERSION_KEY = "index_version"


class IndexBuilder:
    """Builds the segment indexes, registry and link table."""

    def __init__(
        self,
        database: Optional[Database] = None,
        transcripts_dir: Path = TRANSCRIPTS_DIR,
        metadata_csv: Optional[Path] = METADATA_CSV_PATH,
        version: str = INDEX_VERSION,
        batch_size: int = INDEX_BATCH_SIZE,
        yield_every: int = INDEX_YIELD_EVERY,
        metadata_initiators: Optional[Iterable[str]] = None,
    ):
        self.database = database or db
        self.transcripts_dir = Path(transcripts_dir)
        self.metadata_csv = Path(metadata_csv) if metadata_csv else None
        self.version = version
        self.batch_size = max(1, batch_size)
        self.yield_every = max(1, yield_every)
        self.metadata_initiators = list(
            METADATA_INITIATORS if metadata_initiators is None else metadata_initiators
        )
        self.writer = DualIndexWriter(self.database)
        self.links = LinkTable(self.database)
        self._status = BuildStatus(version=version)

    @property
    def status(self) -> BuildStatus:
        """Current build status snapshot (replaced, never mutated)."""
        return self._status

    def _set_status(self, **changes) -> None:
        self._status = replace(self._status, **changes)

    def is_current(self) -> bool:
        """True when the stored marker says this version finished building."""
        return self.database.get_meta(VERSION_KEY) == self.version

    def ensure_ready(self) -> bool:
        """
        Startup version check.

        Marks the builder ready when a complete index of the expected
        version is already on disk.

        Returns:
            True if no rebuild is needed
        """
        if not self.is_current():
            return False

        row = self.database.execute_one("SELECT COUNT(*) AS count FROM episodes")
        total = row["count"] if row else 0
        self._status = BuildStatus(
            ready=True,
            processed_files=total,
            total_files=total,
            version=self.version,
        )
        return True

    async def build(self, force: bool = False) -> BuildStatus:
        """
        Build the index unless the current version is already complete.

        Never raises: failures are logged as critical and reflected in the
        returned status so the host process keeps serving.
        """
        if self._status.in_progress:
            logger.warning("Index build already running, ignoring second request")
            return self._status

        if not force and self.ensure_ready():
            logger.info(f"Index version {self.version} already built. Skipping.")
            return self._status

        self._status = BuildStatus(in_progress=True, version=self.version)
        try:
            await self._run_build()
        except Exception as e:
            logger.critical(f"Index build failed: {e}", exc_info=True)
            self._set_status(in_progress=False, ready=False, failed=True, error=str(e))
        return self._status

    async def _run_build(self) -> None:
        logger.info("Starting index build...")

        # A crash from here on leaves no marker, so the next start rebuilds
        self.database.delete_meta(VERSION_KEY)
        self.writer.reset()

        try:
            sources = discover_sources(self.transcripts_dir)
        except NoSourcesFoundError as e:
            logger.critical(f"{e}. Index left empty.")
            sources = []

        self._set_status(total_files=len(sources))

        skipped = 0
        for position, source in enumerate(sources, start=1):
            # Let the event loop serve health checks and status polls
            if position % self.yield_every == 0:
                await asyncio.sleep(0)

            try:
                parsed = parse_source_file(source.path, source.relative_path, source.content_type)
            except SourceReadError as e:
                skipped += 1
                logger.warning(f"Skipping unreadable file: {e}")
                self._set_status(processed_files=position)
                continue

            self.writer.add_episode(parsed.episode)
            for segment in parsed.segments:
                self.writer.index_segment(segment)

            if self.writer.pending_segments >= self.batch_size:
                self.writer.flush()
                logger.info(f"Indexed {position} / {len(sources)} files...")

            self._set_status(processed_files=position)

        self.writer.flush()
        logger.info(
            f"Indexed {self.writer.segments_written} segments from "
            f"{self.writer.episodes_written} files ({skipped} skipped)"
        )

        self.refresh_links()

        self.database.set_meta(VERSION_KEY, self.version)
        self._set_status(ready=True, in_progress=False, processed_files=len(sources))
        logger.info("Indexing Complete!")

    def refresh_links(self) -> Optional[int]:
        """
        Rebuild the show link table from the metadata CSV.

        Returns:
            Link count, or None when no metadata file is configured/present
        """
        if self.metadata_csv is None:
            return None
        links = load_metadata_file(self.metadata_csv, self.metadata_initiators)
        if links is None:
            return None
        return self.links.replace_all(links)


# Global index builder instance
index_builder = IndexBuilder()
