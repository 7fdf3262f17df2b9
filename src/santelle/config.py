"""
Santelle - Configuration and settings.

Read from environment / .env. Supabase credentials are only required when
the Supabase-backed store is used; the in-memory backend runs without them.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str | None = None
    supabase_service_role_key: str = ""

    # Where quiz records and waitlist entries go
    store_backend: Literal["supabase", "memory"] = "supabase"

    # Application
    santelle_env: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Email domain validation (DNS-over-HTTPS)
    dns_resolver_url: str = "https://dns.google/resolve"
    dns_timeout_seconds: float = 5.0
    email_debounce_ms: int = 500

    # Email submission rate limiting (per quiz session)
    rate_limit_max_attempts: int = 3
    rate_limit_window_seconds: float = 60.0
    rate_limit_lockout_seconds: float = 300.0

    # Quiz sessions held in memory by the web app
    session_expire_hours: int = 24

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class _SettingsProxy:
    """Lazy proxy for settings to avoid loading .env at import time."""

    _instance: Settings | None = None

    def __getattr__(self, name: str):
        if self._instance is None:
            self._instance = get_settings()
        return getattr(self._instance, name)


settings = _SettingsProxy()
