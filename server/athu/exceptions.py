# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions + FastAPI Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────
# Services raise AthuError subclasses; the handlers below are the only place
# an error becomes an HTTP response. Messages are user-facing (Portuguese);
# `detail` is diagnostic and only ever logged.
# ─────────────────────────────────────────────────────────────────────────────


import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger(__name__)

NOT_FOUND_MESSAGE = "Not found"
RATE_LIMITED_MESSAGE = "Demasiados pedidos. Tente novamente em 1 minuto."
INVALID_QUERY_MESSAGE = "Pergunta inválida ou ausente."
UPSTREAM_FAILURE_MESSAGE = "Erro ao processar a pergunta. Tente novamente."
UNEXPECTED_UPSTREAM_MESSAGE = "Resposta inesperada do servidor."
UNPARSEABLE_RESPONSE_MESSAGE = "Não foi possível interpretar a resposta. Tente novamente."
INTERNAL_ERROR_MESSAGE = "Erro interno do servidor."


# ── Exception hierarchy ──────────────────────────────────────────────────────


class AthuError(Exception):
    """Base exception for every failure the proxy reports to a client."""

    def __init__(self, message: str, status_code: int = 500, detail: str | None = None):
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NotFoundError(AthuError):
    """Unsupported method or path."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(NOT_FOUND_MESSAGE, status_code=404, detail=detail)


class RateLimitedError(AthuError):
    """Client exceeded its admissions for the current window.

    retry_after_seconds becomes the Retry-After header on the 429.
    """

    def __init__(self, client_key: str, retry_after_seconds: float = 60.0):
        self.client_key = client_key
        self.retry_after_seconds = retry_after_seconds
        super().__init__(RATE_LIMITED_MESSAGE, status_code=429)


class InvalidQueryError(AthuError):
    """Body is not JSON, has no usable `query`, or the query is empty."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(INVALID_QUERY_MESSAGE, status_code=400, detail=detail)


class UpstreamFailureError(AthuError):
    """Gemini call failed: non-2xx status or transport error."""

    def __init__(
        self,
        detail: str | None = None,
        upstream_status: int | None = None,
        message: str = UPSTREAM_FAILURE_MESSAGE,
    ):
        self.upstream_status = upstream_status
        super().__init__(message, status_code=502, detail=detail)


class UnexpectedUpstreamResponseError(UpstreamFailureError):
    """Gemini answered 2xx but the envelope lacks candidate text."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, message=UNEXPECTED_UPSTREAM_MESSAGE)


class UnparseableResponseError(AthuError):
    """Candidate text is not valid JSON after fence stripping."""

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(UNPARSEABLE_RESPONSE_MESSAGE, status_code=502, detail=detail)


def error_response(exc: AthuError) -> JSONResponse:
    """Render an AthuError as the `{"error": ...}` JSON contract."""
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(max(1, int(exc.retry_after_seconds)))}
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=headers,
    )


# ── Handler registration ────────────────────────────────────────────────────


def register_exception_handlers(app: FastAPI) -> None:
    """Register all custom exception handlers on the FastAPI app.

    Endpoints raise AthuError subclasses; these handlers catch them and
    return structured JSON -- no inline try/except in endpoints. CORS
    headers are added afterwards by CORSPolicyMiddleware.
    """

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError) -> JSONResponse:
        logger.warning(
            "rate_limited",
            client_key=exc.client_key,
            retry_after=exc.retry_after_seconds,
        )
        return error_response(exc)

    @app.exception_handler(AthuError)
    async def athu_error_handler(request: Request, exc: AthuError) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.warning
        log(
            "request_failed",
            error=exc.message,
            error_type=type(exc).__name__,
            status=exc.status_code,
            detail=exc.detail,
        )
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        # The router raises 404 for unknown paths and 405 for a known path
        # with the wrong method; both are "Not found" to clients.
        if exc.status_code in (404, 405):
            return error_response(
                NotFoundError(detail=f"{request.method} {request.url.path}")
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )
