"""Pydantic models for the movie search API.

JSON on the wire is camelCase (searchTerm, movieId, posterUrl, ...);
Python attributes stay snake_case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from app.models.movie_search import POSTER_URL_MAX_LENGTH, SEARCH_FIELD_MAX_LENGTH
from app.services.search_tracker import REQUIRED_FIELDS


class MovieSearchRequest(BaseModel):
    """Body of POST /api/movies/search.

    A missing or null searchTerm / movieId fails with pydantic's own error type;
    the API error handler maps those to the REQUIRED_FIELDS messages.
    """

    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    search_term: str = Field(max_length=SEARCH_FIELD_MAX_LENGTH)
    movie_id: str = Field(max_length=SEARCH_FIELD_MAX_LENGTH)
    poster_url: str | None = Field(default=None, max_length=POSTER_URL_MAX_LENGTH)

    @field_validator("search_term", "movie_id")
    @classmethod
    def _not_blank(cls, value: str, info) -> str:
        if not value.strip():
            raise ValueError(REQUIRED_FIELDS[cls.model_fields[info.field_name].alias])
        return value

    @classmethod
    def wire_name(cls, name: str) -> str:
        """camelCase JSON key for a field, given either its Python name or its alias."""
        field = cls.model_fields.get(name)
        return field.alias if field is not None and field.alias else name


class MovieSearchResponse(BaseModel):
    """A stored search record as returned by both endpoints."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }

    id: int
    search_term: str
    movie_id: str
    count: int
    poster_url: str | None = None
    created_at: datetime
    updated_at: datetime | None = None


class ValidationErrorResponse(BaseModel):
    error: str = "Validation failed"
    fields: dict[str, str] = Field(default_factory=dict)
