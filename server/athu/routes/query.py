# ─────────────────────────────────────────────────────────────────────────────
# POST /api/query — civic query endpoint (THIN)
# ─────────────────────────────────────────────────────────────────────────────


import json
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from athu.dependencies import get_query_service
from athu.rate_limit import client_key_for
from athu.services.query import QueryService

router = APIRouter()


class PayloadResponse(JSONResponse):
    """JSONResponse that survives lone surrogates in model output.

    JSON allows escapes like "\\ud800" that decode to strings UTF-8 cannot
    encode. Such payloads are rendered with ASCII escapes instead, so the
    client still receives the value as parsed.
    """

    def render(self, content: Any) -> bytes:
        try:
            return super().render(content)
        except UnicodeEncodeError:
            return json.dumps(
                content,
                ensure_ascii=True,
                allow_nan=False,
                separators=(",", ":"),
            ).encode("ascii")


@router.post("/api/query")
async def query(
    request: Request,
    service: QueryService = Depends(get_query_service),
) -> PayloadResponse:
    """Answer a civic question as the structured JSON the client renders.

    The body is read raw, and only after the rate limit admits the client.
    Errors are exceptions; this is wiring.
    """
    payload = await service.answer(client_key_for(request), request.body)
    return PayloadResponse(content=payload)
