# ─────────────────────────────────────────────────────────────────────────────
# Pydantic v2 Request / Response / Upstream Schemas
# ─────────────────────────────────────────────────────────────────────────────


from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_QUERY_LENGTH = 500


class QueryRequest(BaseModel):
    """Incoming body of POST /api/query.

    Over-long queries are truncated, not rejected. Numbers are accepted and
    coerced to strings; null, booleans, lists and objects are not.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    query: str

    @field_validator("query")
    @classmethod
    def trim_and_truncate(cls, v: str) -> str:
        v = v.strip()[:MAX_QUERY_LENGTH]
        if not v:
            raise ValueError("query is empty")
        return v


# ── Answer contract (requested of the model, validated only in strict mode) ──


class ConfidenceLabel(StrEnum):
    moderada = "Moderada"
    alta = "Alta"
    muito_alta = "Muito Alta"


class Fact(BaseModel):
    key: str
    value: str


class ResponsePayload(BaseModel):
    """The JSON object the browser client renders."""

    chips: list[str] = Field(..., description="Short source/category labels")
    summary: str = Field(..., description="2-4 factual sentences, may contain <strong>")
    facts: list[Fact]
    sources: list[str]
    confidence: int = Field(..., ge=0, le=100)
    confidence_label: ConfidenceLabel


# ── Gemini generateContent envelope (only the fields we read) ───────────────
# Only candidates[0] is validated; later candidates are never inspected.


class Part(BaseModel):
    text: str | None = None


class Content(BaseModel):
    parts: list[Part] = Field(default_factory=list)


class Candidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: Content | None = None
    finish_reason: str | None = Field(None, alias="finishReason")


class GenerateContentResponse(BaseModel):
    """Success envelope returned by models/{model}:generateContent."""

    candidates: list[Any] = Field(default_factory=list)

    def first_candidate(self) -> Candidate | None:
        """candidates[0] validated as a Candidate. Raises ValidationError if malformed."""
        if not self.candidates:
            return None
        return Candidate.model_validate(self.candidates[0])

    def first_text(self) -> str | None:
        """candidates[0].content.parts[0].text, or None if any level is missing."""
        candidate = self.first_candidate()
        if candidate is None or candidate.content is None or not candidate.content.parts:
            return None
        return candidate.content.parts[0].text

    def first_finish_reason(self) -> str | None:
        candidate = self.first_candidate()
        return candidate.finish_reason if candidate is not None else None
