"""Search tracker — records search events and serves the trending list.

record_search() is an upsert keyed by the exact search term:
  - existing term: count += 1, updated_at refreshed, movie_id / poster_url untouched
  - new term: row created with count = 1

Each attempt runs in its own transaction. When two requests create the same new
term at once, the loser's insert hits the unique constraint; that attempt is rolled
back and retried, and the retry takes the increment path.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.movie_search import POSTER_URL_MAX_LENGTH, SEARCH_FIELD_MAX_LENGTH, MovieSearch
from app.repositories.movie_search import DuplicateSearchTermError, MovieSearchRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = {
    "searchTerm": "Search term is required",
    "movieId": "Movie ID is required",
}


class InvalidSearchError(ValueError):
    """Search event rejected before reaching the store."""

    def __init__(self, fields: dict[str, str]):
        super().__init__("; ".join(f"{k}: {v}" for k, v in fields.items()))
        self.fields = fields


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


class SearchTrackerService:
    """Upsert service over MovieSearchRepository with explicit transactions."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: MovieSearchRepository | None = None,
        max_attempts: int | None = None,
    ):
        self._session_factory = session_factory
        self._repository = repository or MovieSearchRepository()
        self._max_attempts = settings.upsert_max_attempts if max_attempts is None else max_attempts
        if self._max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self._max_attempts}")

    async def record_search(
        self,
        search_term: str,
        movie_id: str,
        poster_url: str | None = None,
    ) -> MovieSearch:
        """Increment the count for search_term, creating the row on first search."""
        errors = {}
        if _is_blank(search_term):
            errors["searchTerm"] = REQUIRED_FIELDS["searchTerm"]
        if _is_blank(movie_id):
            errors["movieId"] = REQUIRED_FIELDS["movieId"]
        for field, value, max_length in (
            ("searchTerm", search_term, SEARCH_FIELD_MAX_LENGTH),
            ("movieId", movie_id, SEARCH_FIELD_MAX_LENGTH),
            ("posterUrl", poster_url, POSTER_URL_MAX_LENGTH),
        ):
            if field not in errors and value is not None and len(value) > max_length:
                errors[field] = f"Must be at most {max_length} characters"
        if errors:
            raise InvalidSearchError(errors)

        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._upsert(search_term, movie_id, poster_url)
            except DuplicateSearchTermError:
                if attempt == self._max_attempts:
                    logger.error(
                        "Upsert gave up | term=%s | attempts=%d", search_term, attempt,
                    )
                    raise
                logger.info(
                    "Creation race on term, retrying as update | term=%s | attempt=%d",
                    search_term, attempt,
                )

    async def _upsert(self, search_term: str, movie_id: str, poster_url: str | None) -> MovieSearch:
        now = _utcnow()
        async with self._session_factory() as session:
            async with session.begin():
                existing = await self._repository.find_by_term(session, search_term)
                if existing is not None:
                    record = await self._repository.update(session, existing, now)
                    logger.info("Search recorded | term=%s | count=%d", search_term, record.count)
                    return record

                record = MovieSearch(
                    search_term=search_term,
                    movie_id=movie_id,
                    count=1,
                    poster_url=poster_url,
                    created_at=now,
                    updated_at=now,
                )
                record = await self._repository.insert(session, record)
                logger.info("New search term | term=%s | movie_id=%s", search_term, movie_id)
                return record

    async def get_trending(self, limit: int | None = None) -> list[MovieSearch]:
        """Top searched records, highest count first."""
        if limit is None:
            limit = settings.trending_limit
        async with self._session_factory() as session:
            return await self._repository.find_top(session, limit)
