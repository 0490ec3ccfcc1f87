# ─────────────────────────────────────────────────────────────────────────────
# Settings — Pydantic v2 BaseSettings
# ─────────────────────────────────────────────────────────────────────────────


from functools import lru_cache

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Proxy configuration sourced from environment variables.

    The CORS allow-list, rate-limit window and upstream endpoint are code
    constants (see athu.cors, athu.rate_limit, athu.services.gemini).
    """

    model_config = SettingsConfigDict(env_prefix="", env_file=".env")

    # ── Security ─────────────────────────────────────────────────────────────
    # Injected by the hosting platform as a secret. SecretStr keeps it out of
    # logs and repr(); read via settings.gemini_api_key.get_secret_value().
    gemini_api_key: SecretStr = SecretStr("")

    # ── Upstream ─────────────────────────────────────────────────────────────
    # None = no client-side timeout; the platform's request lifetime applies.
    upstream_timeout_seconds: float | None = None

    # Validate parsed answers against ResponsePayload before returning them.
    strict_payload_schema: bool = False

    # ── Limits ───────────────────────────────────────────────────────────────
    # None = unbounded client table. A number caps it with LRU eviction.
    rate_limit_max_clients: int | None = None

    # ── Logging ──────────────────────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool = True  # JSON logs for the platform log collector


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
