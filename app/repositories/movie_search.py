"""Record store and query layer for MovieSearch rows.

The repository never opens or commits transactions itself: every method takes the
caller's AsyncSession, so the service decides the transaction boundaries.
"""

import logging
from datetime import datetime

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.movie_search import MovieSearch

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION_SQLSTATE = "23505"


class DuplicateSearchTermError(Exception):
    """Insert rejected because a row for the search term already exists."""

    def __init__(self, search_term: str):
        super().__init__(f"Search term already recorded: {search_term!r}")
        self.search_term = search_term


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == UNIQUE_VIOLATION_SQLSTATE:
        return True
    message = str(orig).lower()
    return "unique" in message or "duplicate key" in message


class MovieSearchRepository:
    """Insert, increment and lookup operations over the movie_searches table."""

    async def insert(self, session: AsyncSession, record: MovieSearch) -> MovieSearch:
        session.add(record)
        try:
            await session.flush()
        except IntegrityError as e:
            if _is_unique_violation(e):
                logger.info("Insert conflict | term=%s", record.search_term)
                raise DuplicateSearchTermError(record.search_term) from e
            raise
        await session.refresh(record)
        return record

    async def update(self, session: AsyncSession, record: MovieSearch, now: datetime) -> MovieSearch:
        """Increment the stored count by one and stamp updated_at.

        The increment is evaluated by the database (count = count + 1), so concurrent
        updates of the same row never overwrite each other. updated_at only moves
        forward: a request that took its timestamp earlier but reaches the row later
        keeps the newer stored value.
        """
        stmt = (
            update(MovieSearch)
            .where(MovieSearch.id == record.id)
            .values(
                count=MovieSearch.count + 1,
                updated_at=case(
                    (MovieSearch.updated_at > now, MovieSearch.updated_at),
                    else_=now,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        await session.execute(stmt)
        await session.refresh(record)
        return record

    async def find_by_term(self, session: AsyncSession, search_term: str) -> MovieSearch | None:
        """Exact, case-sensitive lookup."""
        stmt = select(MovieSearch).where(MovieSearch.search_term == search_term)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_top(self, session: AsyncSession, limit: int = 5) -> list[MovieSearch]:
        """Most-searched rows first; equal counts keep creation order (lowest id first)."""
        stmt = (
            select(MovieSearch)
            .order_by(MovieSearch.count.desc(), MovieSearch.id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
