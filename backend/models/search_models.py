"""
Data models for search requests and results.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from models.transcript_models import ContentType


@dataclass
class SearchOptions:
    """Filters and paging for a single search request."""
    years: List[str] = field(default_factory=list)
    content_type: ContentType = ContentType.SHOW
    offset: int = 0


@dataclass
class SearchHit:
    """One ranked segment, enriched with context and episode metadata"""
    id: str
    file: str
    line: int
    date: str
    content_type: str
    text_content: str
    highlight: Optional[str] = None
    snippet: str = ""  # surrounding source lines, or text_content when unreadable
    video_url: Optional[str] = None
    host: Optional[str] = None
    custom_title: Optional[str] = None
    rank: float = 0.0
    fuzzy: bool = False  # True when served by the trigram fallback
