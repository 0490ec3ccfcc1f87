# Query pipeline: rate limit → validate → Gemini → parse.
# Each step raises an AthuError; exception handlers turn it into a response.


import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from opentelemetry import trace
from pydantic import ValidationError

from athu.config import Settings
from athu.exceptions import InvalidQueryError, RateLimitedError
from athu.rate_limit import FixedWindowRateLimiter
from athu.schemas import QueryRequest
from athu.services.gemini import GeminiClient
from athu.services.parsing import extract_payload

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


def parse_query(body: bytes) -> str:
    """Validated query from a raw request body (trimmed, at most 500 chars)."""
    try:
        return QueryRequest.model_validate_json(body).query
    except ValidationError as e:
        reasons = sorted({err["type"] for err in e.errors()})
        raise InvalidQueryError(detail=", ".join(reasons)) from e


class QueryService:
    """Answers one civic query for one client."""

    def __init__(
        self,
        limiter: FixedWindowRateLimiter,
        gemini: GeminiClient,
        settings: Settings,
    ) -> None:
        self._limiter = limiter
        self._gemini = gemini
        self._settings = settings

    async def answer(self, client_key: str, read_body: Callable[[], Awaitable[bytes]]) -> Any:
        """Run the pipeline. The body is read only once the client is admitted."""
        with tracer.start_as_current_span("answer_query") as span:
            if not self._limiter.admit(client_key):
                raise RateLimitedError(client_key, self._limiter.retry_after(client_key))

            query = parse_query(await read_body())
            span.set_attribute("query.length", len(query))

            start = time.perf_counter()
            text = await self._gemini.generate(query)
            upstream_ms = round((time.perf_counter() - start) * 1000, 1)

            payload = extract_payload(text, strict=self._settings.strict_payload_schema)
            logger.info(
                "query_answered",
                query_length=len(query),
                upstream_ms=upstream_ms,
                response_chars=len(text),
            )
            return payload
