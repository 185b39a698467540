"""Cross-origin policy limited to the /api/ path prefix."""

from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

from app.config import Settings

API_PATH_PREFIX = "/api/"
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]


class ApiCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that only handles requests under path_prefix.

    Other paths (e.g. /health) pass through without any CORS headers.
    """

    def __init__(self, app: ASGIApp, path_prefix: str = API_PATH_PREFIX, **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.path_prefix = path_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and not scope["path"].startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


def cors_options(settings: Settings) -> dict:
    """Keyword arguments for ApiCORSMiddleware built from settings."""
    return {
        "allow_origins": settings.cors_origins,
        "allow_origin_regex": settings.cors_origin_regex,
        "allow_methods": ALLOWED_METHODS,
        "allow_headers": ["*"],
        "allow_credentials": True,
    }
