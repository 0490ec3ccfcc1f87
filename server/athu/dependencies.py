# ─────────────────────────────────────────────────────────────────────────────
# Dependency Injection — FastAPI Depends() providers
# ─────────────────────────────────────────────────────────────────────────────
# State flows: lifespan creates → app.state stores → Depends() injects.
# ─────────────────────────────────────────────────────────────────────────────


from fastapi import Request

from athu.services.query import QueryService


def get_query_service(request: Request) -> QueryService:
    """Inject QueryService into endpoints via Depends()."""
    return request.app.state.query_service  # type: ignore[no-any-return]

