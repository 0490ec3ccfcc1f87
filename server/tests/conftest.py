# ─────────────────────────────────────────────────────────────────────────────
# Test Fixtures — shared across all tests
# ─────────────────────────────────────────────────────────────────────────────
# The app is driven through httpx ASGITransport, which does not run the
# lifespan, so app.state is initialized here. Outbound Gemini calls go
# through a real httpx.AsyncClient intercepted by respx.
# ─────────────────────────────────────────────────────────────────────────────

import os
from collections.abc import AsyncIterator, Iterator
from typing import Any

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient
from polyfactory.factories.pydantic_factory import ModelFactory
from pydantic import SecretStr

from athu.config import Settings, get_settings
from athu.main import build_query_service, create_app
from athu.schemas import ResponsePayload
from athu.services.gemini import GEMINI_ENDPOINT
from athu.services.query import QueryService

TEST_API_KEY = "test-gemini-key"


def candidate_envelope(text: str) -> dict[str, Any]:
    """A generateContent success body carrying `text` as the first candidate."""
    return {
        "candidates": [
            {
                "content": {"parts": [{"text": text}], "role": "model"},
                "finishReason": "STOP",
                "index": 0,
            }
        ],
        "modelVersion": "gemini-2.0-flash",
    }


class GeminiStub:
    """One respx route standing in for the generateContent endpoint."""

    def __init__(self, router: respx.MockRouter) -> None:
        self.route = router.post(url__startswith=GEMINI_ENDPOINT)

    def reply_text(self, text: str) -> None:
        self.route.mock(return_value=httpx.Response(200, json=candidate_envelope(text)))

    def reply(self, response: httpx.Response) -> None:
        self.route.mock(return_value=response)

    def raise_error(self, exc: Exception) -> None:
        self.route.mock(side_effect=exc)

    @property
    def last_request(self) -> httpx.Request:
        return self.route.calls.last.request


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests: fake key, console logs."""
    return Settings(
        gemini_api_key=SecretStr(TEST_API_KEY),
        log_json=False,
        log_level="DEBUG",
    )


@pytest.fixture
def gemini() -> Iterator[GeminiStub]:
    with respx.mock(assert_all_called=False) as router:
        yield GeminiStub(router)


@pytest.fixture
async def upstream_http() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient() as http:
        yield http


@pytest.fixture
def query_service(test_settings: Settings, upstream_http: httpx.AsyncClient) -> QueryService:
    return build_query_service(test_settings, upstream_http)


@pytest.fixture
def app(test_settings: Settings, query_service: QueryService):
    """FastAPI app with test settings and a fresh query service.

    The settings cache is cleared and env vars set so create_app() sees
    test-safe values, then restored so tests don't leak state.
    """
    get_settings.cache_clear()

    env_overrides = {
        "GEMINI_API_KEY": TEST_API_KEY,
        "LOG_JSON": "false",
        "LOG_LEVEL": "DEBUG",
    }
    for k, v in env_overrides.items():
        os.environ[k] = v

    try:
        app = create_app()
        app.state.query_service = query_service
        return app
    finally:
        for k in env_overrides:
            os.environ.pop(k, None)
        get_settings.cache_clear()


@pytest.fixture
async def client(app) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# ─── Answer payloads ─────────────────────────────────────────────────────────
# polyfactory reads ResponsePayload's constraints (confidence 0-100, label
# enum, nested facts) and builds instances that pass strict validation.


class ResponsePayloadFactory(ModelFactory[ResponsePayload]):
    __model__ = ResponsePayload


@pytest.fixture
def answer_factory() -> type[ResponsePayloadFactory]:
    return ResponsePayloadFactory


@pytest.fixture
def answer() -> dict[str, Any]:
    """One contract-conforming answer, as the JSON the model would send."""
    return ResponsePayloadFactory.build().model_dump(mode="json")
