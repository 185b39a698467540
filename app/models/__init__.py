"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.movie_search import MovieSearch

__all__ = ["Base", "MovieSearch"]
