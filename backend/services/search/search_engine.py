"""
Query resolution against the segment indexes.

A search runs through these stages:
    1. Refuse with IndexNotReadyError while the build is incomplete
    2. Return nothing for a blank query
    3. Parse: verbatim detection, thesaurus expansion, AND clauses
    4. Resolve against the stemmed index
    5. If nothing matched, fall back to the trigram index (non-verbatim,
       query of at least FUZZY_MIN_QUERY_LENGTH characters)
    6. Replace each hit's snippet with surrounding lines from the source file
"""
import logging
import sqlite3
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from core.config import (
    CONTEXT_LINES_AFTER,
    FUZZY_MIN_QUERY_LENGTH,
    SEARCH_PAGE_SIZE,
    TRANSCRIPTS_DIR,
)
from core.database import Database, db
from core.errors import (
    ContextReadError,
    IndexFailedError,
    IndexNotReadyError,
    QuerySyntaxError,
    SourceReadError,
)
from core.index_builder import IndexBuilder, index_builder
from models.search_models import SearchHit, SearchOptions
from models.transcript_models import BuildStatus, ContentType, Episode
from services.processing.utils import context_window, read_text_file, split_lines
from services.search.query_builder import SegmentQueryBuilder, normalize_years
from services.search.query_parser import (
    ParsedQuery,
    clause_expression,
    match_expression,
    parse_query,
)

logger = logging.getLogger(__name__)

EXACT_TABLE = "segments_fts"
FUZZY_TABLE = "segments_fuzzy"


class SearchEngine:
    """Read-only search over the indexes built by IndexBuilder."""

    def __init__(
        self,
        database: Optional[Database] = None,
        builder: Optional[IndexBuilder] = None,
        transcripts_dir: Path = TRANSCRIPTS_DIR,
        page_size: int = SEARCH_PAGE_SIZE,
        context_lines: int = CONTEXT_LINES_AFTER,
        fuzzy_min_length: int = FUZZY_MIN_QUERY_LENGTH,
    ):
        self.database = database or db
        self.builder = builder or index_builder
        self.transcripts_dir = Path(transcripts_dir)
        self.page_size = page_size
        self.context_lines = context_lines
        self.fuzzy_min_length = fuzzy_min_length

    def build_status(self) -> BuildStatus:
        return self.builder.status

    def _require_ready(self) -> None:
        status = self.builder.status
        if status.failed:
            raise IndexFailedError(status.error)
        if not status.ready:
            raise IndexNotReadyError(status.progress_percent)

    def search(self, query: str, options: Optional[SearchOptions] = None) -> List[SearchHit]:
        """
        Resolve one query into a page of enriched hits.

        Raises:
            IndexNotReadyError: the index build has not completed
        """
        self._require_ready()
        options = options or SearchOptions()

        if not query or not query.strip():
            return []

        parsed = parse_query(query)
        if parsed.is_empty:
            return []

        hits = self._resolve(parsed, options, fuzzy=False)

        raw_length = len(query.strip())
        if not hits and not parsed.verbatim and raw_length >= self.fuzzy_min_length:
            logger.info(f"No exact hits for {query!r}, trying fuzzy index")
            hits = self._resolve(parsed, options, fuzzy=True)

        return self._enrich(hits)

    def _resolve(self, parsed: ParsedQuery, options: SearchOptions, fuzzy: bool) -> List[SearchHit]:
        table = FUZZY_TABLE if fuzzy else EXACT_TABLE
        try:
            expression = match_expression(parsed, fuzzy=fuzzy)
            builder = SegmentQueryBuilder(table).match(expression)
            if parsed.is_intersection:
                builder.require_all_clauses(
                    [clause_expression(clause, fuzzy=fuzzy) for clause in parsed.clauses]
                )
            builder.content_type(options.content_type)
            builder.years(options.years)
            builder.page(self.page_size, options.offset)
            sql, params = builder.build()

            logger.info(f"Original: {parsed.raw!r} -> Expanded: {expression!r} ({table})")
            rows = self.database.execute(sql, tuple(params))
        except QuerySyntaxError as e:
            logger.error(f"Rejected query {parsed.raw!r}: {e}")
            return []
        except sqlite3.OperationalError as e:
            logger.error(f"Index rejected query {parsed.raw!r}: {e}")
            return []

        return [
            SearchHit(
                id=row["id"],
                file=row["file"],
                line=int(row["line"]),
                date=row["date"],
                content_type=row["content_type"],
                text_content=row["text_content"],
                highlight=row["highlight"],
                video_url=row["video_url"],
                host=row["host"],
                custom_title=row["custom_title"],
                rank=row["rank"],
                fuzzy=fuzzy,
            )
            for row in rows
        ]

    def _enrich(self, hits: List[SearchHit]) -> List[SearchHit]:
        """Swap each hit's snippet for the lines around it in the source file."""
        cache: Dict[str, Optional[List[str]]] = {}
        for hit in hits:
            try:
                lines = self._source_lines(hit.file, cache)
                hit.snippet = context_window(lines, hit.line, self.context_lines)
            except ContextReadError as e:
                logger.debug(f"Context unavailable, using indexed text: {e}")
                hit.snippet = hit.text_content
        return hits

    def _source_lines(self, relative_path: str, cache: Dict[str, Optional[List[str]]]) -> List[str]:
        """
        Raises:
            ContextReadError: the file is gone, unreadable or outside the root
        """
        if relative_path not in cache:
            path = self.resolve_path(relative_path)
            try:
                cache[relative_path] = split_lines(read_text_file(path)) if path else None
            except SourceReadError:
                cache[relative_path] = None

        lines = cache[relative_path]
        if lines is None:
            raise ContextReadError(f"Cannot read {relative_path}")
        return lines

    def resolve_path(self, relative_path: str) -> Optional[Path]:
        """Absolute path of a source file, or None if it escapes the transcripts root."""
        root = self.transcripts_dir.resolve()
        candidate = (root / relative_path).resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate

    def list_episodes(
        self,
        years: Optional[Sequence[str]] = None,
        content_type: Optional[ContentType] = ContentType.SHOW,
    ) -> List[Dict]:
        """
        Registry rows decorated with curated links, in date order.

        Raises:
            IndexNotReadyError: the index build has not completed
        """
        self._require_ready()

        conditions = []
        params: List[str] = []
        if content_type:
            conditions.append("e.content_type = ?")
            params.append(ContentType(content_type).value)
        year_list = normalize_years(years)
        if year_list:
            conditions.append("(" + " OR ".join("e.date LIKE ?" for _ in year_list) + ")")
            params.extend(f"{year}-%" for year in year_list)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = self.database.execute(
            f"""
            SELECT e.date, e.file, e.content_type,
                   COALESCE(l.video_url, e.video_url) AS video_url,
                   l.host AS host,
                   COALESCE(l.custom_title, e.custom_title) AS custom_title
            FROM episodes e
            LEFT JOIN show_links l ON l.date = e.date
            {where}
            ORDER BY e.date ASC, e.file ASC
            """,
            tuple(params),
        )

        episodes = []
        for row in rows:
            episode = Episode(
                date=row["date"],
                file=row["file"],
                content_type=ContentType(row["content_type"]),
                video_url=row["video_url"],
                custom_title=row["custom_title"],
            )
            record = asdict(episode)
            record["content_type"] = episode.content_type.value
            record["host"] = row["host"]
            episodes.append(record)
        return episodes

    def fetch_raw_transcript(self, relative_path: str) -> Optional[str]:
        """Full text of a source file, or None when missing or outside the root."""
        if not relative_path:
            return None
        path = self.resolve_path(relative_path)
        if path is None or not path.is_file():
            return None
        try:
            return read_text_file(path)
        except SourceReadError as e:
            logger.warning(f"Cannot serve transcript: {e}")
            return None


# Global search engine instance
search_engine = SearchEngine()
