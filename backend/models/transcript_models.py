"""
Data models for transcripts, segments and the show registry.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List

UNKNOWN_DATE = "Unknown Date"


class ContentType(str, Enum):
    """Kind of source file a segment or episode came from."""
    SHOW = "show"
    BEST_OF = "best_of"


@dataclass
class Segment:
    """Atomic indexed unit: dialogue under one timestamp marker, or one best-of line"""
    file: str  # path relative to the transcripts root
    line_offset: int  # 0-based line where the segment begins
    date: str
    text_content: str
    content_type: ContentType = ContentType.SHOW

    @property
    def id(self) -> str:
        return f"{self.file}::{self.line_offset}"


@dataclass
class Episode:
    """Registry row for one source file"""
    date: str
    file: str
    content_type: ContentType = ContentType.SHOW
    video_url: Optional[str] = None
    custom_title: Optional[str] = None


@dataclass
class ParsedSource:
    """Everything one source file contributes to the index"""
    episode: Episode
    segments: List[Segment] = field(default_factory=list)


@dataclass
class ShowLink:
    """Curated metadata for a show date (video link, host, title)"""
    date: str
    video_url: str
    host: Optional[str] = None
    custom_title: Optional[str] = None


@dataclass(frozen=True)
class BuildStatus:
    """Immutable snapshot of index build progress."""
    ready: bool = False
    in_progress: bool = False
    processed_files: int = 0
    total_files: int = 0
    failed: bool = False
    error: Optional[str] = None
    version: Optional[str] = None

    @property
    def progress_percent(self) -> int:
        if self.ready:
            return 100
        if not self.total_files:
            return 0
        return round(self.processed_files / self.total_files * 100)
