"""Movie search routes — record a search event, list trending movies."""

import logging

from fastapi import APIRouter, Depends

from app.database import async_session_factory
from app.movies.schemas import MovieSearchRequest, MovieSearchResponse, ValidationErrorResponse
from app.services.search_tracker import SearchTrackerService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/movies", tags=["movies"])


def get_search_tracker() -> SearchTrackerService:
    """FastAPI dependency — tracker bound to the application's session factory."""
    return SearchTrackerService(async_session_factory)


@router.post(
    "/search",
    response_model=MovieSearchResponse,
    responses={400: {"model": ValidationErrorResponse}},
)
async def record_search(
    body: MovieSearchRequest,
    tracker: SearchTrackerService = Depends(get_search_tracker),
):
    """Count one search for body.search_term, creating the record if needed."""
    record = await tracker.record_search(body.search_term, body.movie_id, body.poster_url)
    return MovieSearchResponse.model_validate(record)


@router.get("/trending", response_model=list[MovieSearchResponse])
async def trending(tracker: SearchTrackerService = Depends(get_search_tracker)):
    records = await tracker.get_trending()
    logger.debug("Trending requested | items=%d", len(records))
    return [MovieSearchResponse.model_validate(r) for r in records]
