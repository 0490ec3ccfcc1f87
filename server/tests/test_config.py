# ─────────────────────────────────────────────────────────────────────────────
# Tests — Settings from environment
# ─────────────────────────────────────────────────────────────────────────────

from athu.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    settings = Settings(_env_file=None)
    assert settings.gemini_api_key.get_secret_value() == ""
    assert settings.upstream_timeout_seconds is None
    assert settings.rate_limit_max_clients is None
    assert settings.strict_payload_schema is False


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-from-env")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_SECONDS", "25")
    monkeypatch.setenv("RATE_LIMIT_MAX_CLIENTS", "10000")
    settings = Settings(_env_file=None)
    assert settings.gemini_api_key.get_secret_value() == "AIza-from-env"
    assert settings.upstream_timeout_seconds == 25.0
    assert settings.rate_limit_max_clients == 10000


def test_api_key_hidden_from_repr(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "AIza-from-env")
    settings = Settings(_env_file=None)
    assert "AIza-from-env" not in repr(settings)
    assert "AIza-from-env" not in str(settings.model_dump())
