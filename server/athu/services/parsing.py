# Turns the model's candidate text into the JSON answer returned to clients.
# Models sometimes wrap JSON in ```json fences despite the instruction.


import json
import re
from typing import Any

from pydantic import ValidationError

from athu.exceptions import UnparseableResponseError
from athu.schemas import ResponsePayload

_LEADING_JSON_FENCE = re.compile(r"^```json\s*", re.IGNORECASE)
_LEADING_FENCE = re.compile(r"^```\s*")
_TRAILING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Drop one leading ``` / ```json marker and one trailing ``` marker."""
    cleaned = text.strip()
    cleaned = _LEADING_JSON_FENCE.sub("", cleaned, count=1)
    cleaned = _LEADING_FENCE.sub("", cleaned, count=1)
    cleaned = _TRAILING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def extract_payload(text: str, *, strict: bool = False) -> Any:
    """Parse candidate text as JSON.

    Any JSON value is accepted unless strict is set, in which case it must
    also validate as ResponsePayload. The parsed value is returned as-is
    either way.
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned, parse_constant=_reject_constant)
    except ValueError as e:
        raise UnparseableResponseError(detail=str(e)) from e

    if strict:
        try:
            ResponsePayload.model_validate(parsed)
        except ValidationError as e:
            raise UnparseableResponseError(
                detail=f"payload failed schema validation: {e.error_count()} errors"
            ) from e

    return parsed


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON and cannot be re-serialized for the client.
    raise ValueError(f"non-standard JSON constant {name}")
