"""
Pydantic response models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional


class StatusResponse(BaseModel):
    """Response model for index build status."""
    ready: bool
    progress: int = Field(ge=0, le=100, description="Progress percentage")
    total_files: int = 0
    processed_files: int = 0
    failed: bool = False


class IndexingResponse(BaseModel):
    """Body returned with 503 while the index is being built or after a failed build."""
    error: str = "Indexing"
    progress: int = Field(ge=0, le=100, description="Progress percentage")


class SearchHitResponse(BaseModel):
    """One search result."""
    id: str
    file: str
    line: int
    date: str
    content_type: str
    text_content: str
    highlight: Optional[str] = None
    snippet: str
    youtube_url: Optional[str] = Field(default=None, description="Curated or best-of video link")
    host: Optional[str] = None
    custom_title: Optional[str] = None
    fuzzy: bool = False


class EpisodeResponse(BaseModel):
    """Registry entry for a show or best-of file."""
    date: str
    file: str
    content_type: str
    youtube_url: Optional[str] = None
    host: Optional[str] = None
    custom_title: Optional[str] = None


class LinkRefreshResponse(BaseModel):
    """Result of reloading the show link table."""
    links: Optional[int] = Field(default=None, description="Rows stored, None when no metadata file")
