"""MovieSearch model — one row per distinct search term with a running count."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base

SEARCH_FIELD_MAX_LENGTH = 255
POSTER_URL_MAX_LENGTH = 500


class MovieSearch(Base):
    """How often a search term was entered, and the movie it resolved to."""

    __tablename__ = "movie_searches"
    __table_args__ = (
        CheckConstraint("count >= 1", name="ck_movie_searches_count_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    search_term: Mapped[str] = mapped_column(
        String(SEARCH_FIELD_MAX_LENGTH), unique=True, nullable=False, index=True,
    )
    movie_id: Mapped[str] = mapped_column(String(SEARCH_FIELD_MAX_LENGTH), nullable=False)
    count: Mapped[int] = mapped_column(Integer, nullable=False, insert_default=1)
    poster_url: Mapped[str | None] = mapped_column(
        String(POSTER_URL_MAX_LENGTH), nullable=True,
    )
    # Timestamps are assigned by SearchTrackerService, not by column defaults.
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<MovieSearch(id={self.id}, term='{self.search_term}', count={self.count})>"
