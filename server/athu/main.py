# FastAPI application factory with lifespan management.
# Entrypoint: uvicorn athu.main:create_app --factory --host 0.0.0.0 --port 8080

import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx
import structlog
from fastapi import FastAPI

from athu.config import Settings, get_settings
from athu.cors import CORSPolicy, CORSPolicyMiddleware
from athu.exceptions import register_exception_handlers
from athu.logging_config import configure_logging
from athu.middleware import RequestContextMiddleware
from athu.rate_limit import FixedWindowRateLimiter
from athu.routes import query
from athu.services.gemini import GeminiClient
from athu.services.query import QueryService

logger = structlog.get_logger(__name__)


if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider


def _configure_otel(exporter_type: str) -> "TracerProvider | None":
    """Configure OpenTelemetry tracing (console or gcp)."""
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider()

    if exporter_type == "console":
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter

        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
    elif exporter_type == "gcp":
        try:
            from opentelemetry.exporter.cloud_trace import CloudTraceSpanExporter

            provider.add_span_processor(BatchSpanProcessor(CloudTraceSpanExporter()))  # type: ignore[no-untyped-call]
        except ImportError:
            logger.warning("gcp_trace_exporter_not_available")
            return None
    else:
        logger.warning("unknown_otel_exporter", exporter=exporter_type)
        return None

    from opentelemetry import trace

    trace.set_tracer_provider(provider)
    logger.info("otel_configured", exporter=exporter_type)
    return provider


def build_query_service(settings: Settings, http: httpx.AsyncClient) -> QueryService:
    """Wire limiter + Gemini client into the query pipeline."""
    limiter = FixedWindowRateLimiter(max_clients=settings.rate_limit_max_clients)
    gemini = GeminiClient(http, api_key=settings.gemini_api_key)
    return QueryService(limiter, gemini, settings)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared HTTP client and query service; close on shutdown."""
    settings = get_settings()

    otel_provider = None
    otel_exporter = os.environ.get("OTEL_EXPORTER", "")
    if otel_exporter:
        otel_provider = _configure_otel(otel_exporter)

    if not settings.gemini_api_key.get_secret_value():
        logger.warning(
            "gemini_api_key_missing",
            hint="Set GEMINI_API_KEY. Every query will fail with 502 until then.",
        )

    http = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    app.state.query_service = build_query_service(settings, http)

    yield

    await http.aclose()

    if otel_provider is not None:
        otel_provider.shutdown()


def create_app() -> FastAPI:
    """Application factory. Invoked by: uvicorn athu.main:create_app --factory"""
    settings = get_settings()
    configure_logging(log_level=settings.log_level, json_output=settings.log_json)

    # Only POST /api/query exists: no docs, no schema, no slash redirects.
    app = FastAPI(
        title="athu proxy",
        description="Civic-query proxy in front of the Gemini API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        redirect_slashes=False,
    )

    # Middleware order (Starlette applies in reverse): CORS → RequestContext
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(CORSPolicyMiddleware, policy=CORSPolicy())

    register_exception_handlers(app)

    app.include_router(query.router, tags=["query"])

    return app
