# Gemini generateContent client: one POST per query, no retry.
# Upstream status and error bodies are logged here and never reach clients.


import httpx
import structlog
from opentelemetry import trace
from pydantic import SecretStr, ValidationError

from athu.exceptions import UnexpectedUpstreamResponseError, UpstreamFailureError
from athu.prompts import build_generation_request
from athu.schemas import GenerateContentResponse

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

GEMINI_MODEL = "gemini-2.0-flash"
GEMINI_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/"
    f"{GEMINI_MODEL}:generateContent"
)

_MAX_LOGGED_BODY_CHARS = 2000


class GeminiClient:
    """Sends a query with the fixed system instruction; returns the candidate text."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_key: SecretStr,
        endpoint: str = GEMINI_ENDPOINT,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._endpoint = endpoint

    async def generate(self, query: str) -> str:
        """Raw text of candidates[0].content.parts[0], whitespace-trimmed.

        Raises UpstreamFailureError on transport errors and non-2xx
        statuses, UnexpectedUpstreamResponseError when a 2xx body has no
        candidate text.
        """
        with tracer.start_as_current_span("gemini_generate") as span:
            span.set_attribute("gemini.model", GEMINI_MODEL)
            try:
                response = await self._http.post(
                    self._endpoint,
                    params={"key": self._api_key.get_secret_value()},
                    json=build_generation_request(query),
                )
            except httpx.HTTPError as e:
                logger.error("upstream_unreachable", error_type=type(e).__name__, error=str(e))
                raise UpstreamFailureError(detail=f"{type(e).__name__}: {e}") from e

            span.set_attribute("http.status_code", response.status_code)

            if not response.is_success:
                logger.error(
                    "upstream_error",
                    status=response.status_code,
                    body=_error_body(response),
                )
                raise UpstreamFailureError(
                    detail=f"Gemini returned HTTP {response.status_code}",
                    upstream_status=response.status_code,
                )

            try:
                envelope = GenerateContentResponse.model_validate_json(response.content)
                text = envelope.first_text()
            except ValidationError as e:
                logger.error("upstream_envelope_invalid", errors=e.error_count())
                raise UnexpectedUpstreamResponseError(detail=str(e)) from e

            if text is None:
                finish_reason = envelope.first_finish_reason()
                logger.error("upstream_no_candidate_text", finish_reason=finish_reason)
                raise UnexpectedUpstreamResponseError(
                    detail=f"no candidate text (finish_reason={finish_reason})"
                )

            return text.strip()


def _error_body(response: httpx.Response) -> object:
    """Upstream error body for the log: parsed JSON if possible, else truncated text."""
    try:
        return response.json()
    except ValueError:
        return response.text[:_MAX_LOGGED_BODY_CHARS]
