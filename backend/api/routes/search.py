"""
Search, status and transcript API routes.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from api.models.requests import EpisodeListRequest, SearchRequest, split_years
from api.models.responses import (
    EpisodeResponse,
    IndexingResponse,
    LinkRefreshResponse,
    SearchHitResponse,
    StatusResponse,
)
from core.errors import IndexFailedError, IndexNotReadyError
from models.search_models import SearchOptions
from models.transcript_models import ContentType
from services.search.query_builder import MAX_OFFSET
from services.search.search_engine import search_engine

router = APIRouter()


def _indexing_response(error: IndexNotReadyError) -> JSONResponse:
    if isinstance(error, IndexFailedError):
        body = IndexingResponse(error="Not indexed", progress=0)
    else:
        body = IndexingResponse(progress=error.progress_percent)
    return JSONResponse(status_code=503, content=body.model_dump())


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """Index build progress."""
    status = search_engine.build_status()
    return StatusResponse(
        ready=status.ready,
        progress=status.progress_percent,
        total_files=status.total_files,
        processed_files=status.processed_files,
        failed=status.failed,
    )


@router.get(
    "/search",
    response_model=List[SearchHitResponse],
    responses={503: {"model": IndexingResponse}},
)
async def search(
    q: str = Query(default=""),
    years: Optional[str] = Query(default=None, description="Comma-separated years, e.g. 1999,2000"),
    type: ContentType = Query(default=ContentType.SHOW),
    offset: int = Query(default=0, ge=0, le=MAX_OFFSET),
):
    """
    Ranked transcript search.

    Returns one page of hits; a page shorter than the page size is the last.
    """
    request = SearchRequest(q=q, years=split_years(years), type=type, offset=offset)
    options = SearchOptions(years=request.years, content_type=request.type, offset=request.offset)

    try:
        hits = search_engine.search(request.q, options)
    except IndexNotReadyError as e:
        return _indexing_response(e)

    return [
        SearchHitResponse(
            id=hit.id,
            file=hit.file,
            line=hit.line,
            date=hit.date,
            content_type=hit.content_type,
            text_content=hit.text_content,
            highlight=hit.highlight,
            snippet=hit.snippet,
            youtube_url=hit.video_url,
            host=hit.host,
            custom_title=hit.custom_title,
            fuzzy=hit.fuzzy,
        )
        for hit in hits
    ]


@router.get(
    "/episodes",
    response_model=List[EpisodeResponse],
    responses={503: {"model": IndexingResponse}},
)
async def list_episodes(
    years: Optional[str] = Query(default=None),
    type: str = Query(default="show", description="show, best_of or all"),
):
    """Shows (or best-of compilations) with their video links."""
    try:
        content_type = None if type == "all" else ContentType(type)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown type: {type}")
    request = EpisodeListRequest(years=split_years(years), type=content_type)

    try:
        episodes = search_engine.list_episodes(request.years, request.type)
    except IndexNotReadyError as e:
        return _indexing_response(e)

    return [
        EpisodeResponse(
            date=episode["date"],
            file=episode["file"],
            content_type=episode["content_type"],
            youtube_url=episode["video_url"],
            host=episode["host"],
            custom_title=episode["custom_title"],
        )
        for episode in episodes
    ]


@router.get("/transcript", response_class=PlainTextResponse)
async def get_transcript(file: Optional[str] = Query(default=None)):
    """Raw transcript text for the viewer."""
    if not file:
        raise HTTPException(status_code=400, detail="Missing file param")

    text = search_engine.fetch_raw_transcript(file)
    if text is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return PlainTextResponse(text)


@router.post("/links/refresh", response_model=LinkRefreshResponse)
async def refresh_links():
    """Reload the curated show links from the metadata CSV without reindexing."""
    count = search_engine.builder.refresh_links()
    return LinkRefreshResponse(links=count)
