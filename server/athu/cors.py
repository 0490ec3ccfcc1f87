# ─────────────────────────────────────────────────────────────────────────────
# CORS Policy — allow-list resolution, preflight, headers on every response
# ─────────────────────────────────────────────────────────────────────────────
# Starlette's CORSMiddleware omits the allow-origin header for unknown
# origins. This policy never omits it: an unknown origin is answered with
# the default (first) allow-listed origin, and the browser blocks the
# response on its side. The handler itself never rejects on origin.
# ─────────────────────────────────────────────────────────────────────────────


from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from athu.exceptions import INTERNAL_ERROR_MESSAGE

logger = structlog.get_logger(__name__)

ALLOWED_ORIGINS: tuple[str, ...] = (
    "https://athumoz.github.io",
)

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type"
MAX_AGE_SECONDS = 86400


class CORSPolicy:
    """Static allow-list of exact origins; the first entry is the default."""

    def __init__(self, allowed_origins: Sequence[str] = ALLOWED_ORIGINS) -> None:
        if not allowed_origins:
            raise ValueError("CORS allow-list needs at least one origin")
        self.allowed_origins = tuple(allowed_origins)
        self._allowed = frozenset(self.allowed_origins)

    @property
    def default_origin(self) -> str:
        return self.allowed_origins[0]

    def resolve_origin(self, origin: str | None) -> str:
        """Echo an allow-listed origin; anything else gets the default."""
        if origin and origin in self._allowed:
            return origin
        return self.default_origin

    def headers(self, origin: str | None) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.resolve_origin(origin),
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Access-Control-Max-Age": str(MAX_AGE_SECONDS),
            "Vary": "Origin",
        }

    def preflight(self, origin: str | None) -> Response:
        """204, no body, CORS headers. Valid for any path."""
        return Response(status_code=204, headers=self.headers(origin))


class CORSPolicyMiddleware(BaseHTTPMiddleware):
    """Answers preflights and stamps CORS headers on every other response.

    Outermost middleware, so it also covers 404s, handled errors and
    unexpected exceptions (converted here to a JSON 500).
    """

    def __init__(self, app: Any, *, policy: CORSPolicy | None = None) -> None:
        super().__init__(app)
        self.policy = policy or CORSPolicy()

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        origin = request.headers.get("origin")

        if request.method == "OPTIONS":
            return self.policy.preflight(origin)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "unhandled_error",
                method=request.method,
                path=request.url.path,
            )
            response = JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})

        _apply_headers(response, self.policy.headers(origin))
        return response


def _apply_headers(response: Response, headers: Mapping[str, str]) -> None:
    for name, value in headers.items():
        response.headers[name] = value
