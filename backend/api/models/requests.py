"""
Pydantic request models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from models.transcript_models import ContentType
from services.search.query_builder import MAX_OFFSET


def split_years(years: Optional[str]) -> List[str]:
    """Parse the comma-separated ``years`` query parameter."""
    if not years:
        return []
    return [year.strip() for year in years.split(",") if year.strip()]


class SearchRequest(BaseModel):
    """Query parameters for /search."""
    q: str = Field(default="", description="Search query; wrap in double quotes for a verbatim match")
    years: List[str] = Field(default_factory=list, description="Restrict to these calendar years")
    type: ContentType = Field(default=ContentType.SHOW, description="Content type to search")
    offset: int = Field(default=0, ge=0, le=MAX_OFFSET, description="Pagination offset")


class EpisodeListRequest(BaseModel):
    """Query parameters for /episodes."""
    years: List[str] = Field(default_factory=list)
    type: Optional[ContentType] = Field(default=ContentType.SHOW)
