"""
Parameterized SQL assembly for segment searches.

User input only ever reaches SQLite as bound parameters; the SQL text is
composed from fixed fragments chosen by which filters are present.
"""
import re
from typing import Any, List, Optional, Sequence, Tuple

from models.transcript_models import ContentType

YEAR_PATTERN = re.compile(r'^\d{4}$')

ALLOWED_TABLES = ("segments_fts", "segments_fuzzy")

# Largest value SQLite can bind as an integer
MAX_OFFSET = 2 ** 63 - 1


def normalize_years(years: Optional[Sequence[str]]) -> List[str]:
    """Keep distinct 4-digit years, in the order given."""
    result = []
    for year in years or []:
        year = str(year).strip()
        if YEAR_PATTERN.match(year) and year not in result:
            result.append(year)
    return result


class SegmentQueryBuilder:
    """
    Builds the ranked, filtered, paginated segment query for one FTS table.

    Usage:
        builder = SegmentQueryBuilder("segments_fts")
        builder.match('"rick" OR "suds"')
        builder.require_all_clauses(['"rick"', '"suds"'])
        builder.content_type(ContentType.SHOW).years(["1999"]).page(100, 0)
        sql, params = builder.build()
    """
    def __init__(self, table: str = "segments_fts"):
        if table not in ALLOWED_TABLES:
            raise ValueError(f"Unknown segment table: {table}")
        self.table = table
        self._match: Optional[str] = None
        self._clauses: List[str] = []
        self._content_type: Optional[str] = None
        self._years: List[str] = []
        self._limit = 100
        self._offset = 0

    def match(self, expression: str) -> "SegmentQueryBuilder":
        self._match = expression
        return self

    def require_all_clauses(self, clause_expressions: Sequence[str]) -> "SegmentQueryBuilder":
        """Restrict results to files in which every clause matches some segment."""
        self._clauses = list(clause_expressions)
        return self

    def content_type(self, content_type: Optional[ContentType]) -> "SegmentQueryBuilder":
        self._content_type = ContentType(content_type).value if content_type else None
        return self

    def years(self, years: Optional[Sequence[str]]) -> "SegmentQueryBuilder":
        self._years = normalize_years(years)
        return self

    def page(self, limit: int, offset: int = 0) -> "SegmentQueryBuilder":
        self._limit = min(max(1, int(limit)), MAX_OFFSET)
        self._offset = min(max(0, int(offset)), MAX_OFFSET)
        return self

    def _where(self) -> Tuple[List[str], List[Any]]:
        t = self.table
        conditions = [f"{t} MATCH ?"]
        params: List[Any] = [self._match]

        if self._content_type:
            conditions.append(f"{t}.content_type = ?")
            params.append(self._content_type)

        if self._years:
            conditions.append("(" + " OR ".join(f"{t}.date LIKE ?" for _ in self._years) + ")")
            params.extend(f"{year}-%" for year in self._years)

        if len(self._clauses) > 1:
            subqueries = " INTERSECT ".join(
                f"SELECT file FROM {t} WHERE {t} MATCH ?" for _ in self._clauses
            )
            conditions.append(f"{t}.file IN ({subqueries})")
            params.extend(self._clauses)

        return conditions, params

    def build(self) -> Tuple[str, List[Any]]:
        """
        Returns:
            (sql, params) ready for ``conn.execute``
        """
        if not self._match:
            raise ValueError("A match expression is required")

        t = self.table
        conditions, params = self._where()
        where = " AND ".join(conditions)
        sql = f"""
            SELECT {t}.id AS id,
                   {t}.file AS file,
                   {t}.line AS line,
                   {t}.date AS date,
                   {t}.content_type AS content_type,
                   {t}.text_content AS text_content,
                   snippet({t}, 5, '<b>', '</b>', '...', 64) AS highlight,
                   {t}.rank AS rank,
                   COALESCE(l.video_url, e.video_url) AS video_url,
                   l.host AS host,
                   COALESCE(l.custom_title, e.custom_title) AS custom_title
            FROM {t}
            LEFT JOIN show_links l ON l.date = {t}.date
            LEFT JOIN episodes e ON e.file = {t}.file
            WHERE {where}
            ORDER BY {t}.rank, {t}.id
            LIMIT ? OFFSET ?
        """
        params.extend([self._limit, self._offset])
        return sql, params
