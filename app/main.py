"""Movie search trends backend — FastAPI application entry point.

Provides /api/movies/search and /api/movies/trending for the frontend.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import settings
from app.cors import ApiCORSMiddleware, cors_options
from app.movies.router import router as movies_router
from app.movies.schemas import MovieSearchRequest
from app.repositories.movie_search import DuplicateSearchTermError
from app.services.search_tracker import REQUIRED_FIELDS, InvalidSearchError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("movie_trends")

# Absent or null required fields
REQUIRED_ERROR_TYPES = {"missing", "string_type"}


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Movie trends backend starting | frontend_url=%s", settings.frontend_url)

    # Initialize database (graceful degradation if unavailable)
    from app.database import close_db, init_db
    db_ok = await init_db()
    logger.info("Database: %s", "connected" if db_ok else "unavailable (requests will fail)")

    yield

    await close_db()
    logger.info("Movie trends backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Movie Trends API",
    description="Counts movie searches and serves the top trending titles",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(ApiCORSMiddleware, **cors_options(settings))

app.include_router(movies_router)


# ═══════════════ ERROR HANDLERS ═══════════════

def _validation_response(fields: dict[str, str]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "fields": fields},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    fields = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        if len(loc) > 1 and isinstance(loc[-1], str):
            field = MovieSearchRequest.wire_name(loc[-1])
        else:
            field = "body"
        ctx_error = (err.get("ctx") or {}).get("error")
        if field in REQUIRED_FIELDS and err.get("type") in REQUIRED_ERROR_TYPES:
            message = REQUIRED_FIELDS[field]
        elif ctx_error:
            message = str(ctx_error)
        else:
            message = err.get("msg", "Invalid value")
        fields.setdefault(field, message)
    logger.info("Rejected request | path=%s | fields=%s", request.url.path, sorted(fields))
    return _validation_response(fields)


@app.exception_handler(InvalidSearchError)
async def invalid_search_handler(request: Request, exc: InvalidSearchError):
    logger.info("Rejected search | fields=%s", sorted(exc.fields))
    return _validation_response(exc.fields)


@app.exception_handler(DuplicateSearchTermError)
@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: Exception):
    logger.error("Database error | path=%s | %s", request.url.path, str(exc)[:300])
    return JSONResponse(
        status_code=500,
        content={"error": "Database error. Please try again later."},
    )


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    from app.database import ping_db

    db_ok = await ping_db()
    return {
        "status": "ok",
        "database": "connected" if db_ok else "unavailable",
    }
