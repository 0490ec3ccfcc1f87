# ─────────────────────────────────────────────────────────────────────────────
# Inline Snapshot Tests — inline-snapshot
# ─────────────────────────────────────────────────────────────────────────────
# Expected values live next to the assertions. To refresh after an
# intentional change:
#   pytest server/tests/test_snapshots.py --inline-snapshot=fix
# ─────────────────────────────────────────────────────────────────────────────

from inline_snapshot import snapshot

from athu.exceptions import (
    InvalidQueryError,
    NotFoundError,
    RateLimitedError,
    UnexpectedUpstreamResponseError,
    UnparseableResponseError,
    UpstreamFailureError,
)
from athu.prompts import SYSTEM_INSTRUCTION, build_generation_request


class TestGenerationRequestSnapshot:
    """The outbound generateContent body, minus the long instruction text."""

    def test_request_body(self):
        body = build_generation_request("Quantas escolas há em Nampula?")
        assert body.pop("system_instruction") == {"parts": [{"text": SYSTEM_INSTRUCTION}]}
        assert body == snapshot(
            {
                "contents": [{"parts": [{"text": "Quantas escolas há em Nampula?"}]}],
                "generationConfig": {"temperature": 0.3, "maxOutputTokens": 1024},
            }
        )

    def test_instruction_opening(self):
        assert SYSTEM_INSTRUCTION.splitlines()[:2] == snapshot(
            [
                "Tu és athu, um assistente de inteligência cívica especializado em governação de Moçambique.",
                "Responde APENAS em JSON válido, sem texto fora do JSON e sem blocos de código markdown.",
            ]
        )


class TestErrorMessageSnapshot:
    """Client-facing error strings, one per failure kind."""

    def test_messages(self):
        messages = {
            type(exc).__name__: (exc.status_code, exc.message)
            for exc in (
                NotFoundError(),
                RateLimitedError("41.220.1.1"),
                InvalidQueryError(),
                UpstreamFailureError(),
                UnexpectedUpstreamResponseError(),
                UnparseableResponseError(),
            )
        }
        assert messages == snapshot(
            {
                "NotFoundError": (404, "Not found"),
                "RateLimitedError": (429, "Demasiados pedidos. Tente novamente em 1 minuto."),
                "InvalidQueryError": (400, "Pergunta inválida ou ausente."),
                "UpstreamFailureError": (502, "Erro ao processar a pergunta. Tente novamente."),
                "UnexpectedUpstreamResponseError": (502, "Resposta inesperada do servidor."),
                "UnparseableResponseError": (
                    502,
                    "Não foi possível interpretar a resposta. Tente novamente.",
                ),
            }
        )
