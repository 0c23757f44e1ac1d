"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

The tracer public base URL fallback is read once here (JOBOPS_PUBLIC_BASE_URL)
and injected into the services that build tracer links, so nothing below the
app factory reads the process environment directly.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "jobops"


class RedisSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Optional; without Redis every redirect lookup goes to MongoDB
    redis_uri: Optional[str] = None


class TracerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Fallback origin for generated links when no request origin is available
    jobops_public_base_url: Optional[str] = None

    tracer_token_length: int = 10
    tracer_create_max_attempts: int = 5
    tracer_link_cache_ttl_seconds: int = 300


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production

    # Sampling rates (0.0–1.0)
    sample_rate_redirect: float = 0.05
    sample_rate_analytics: float = 0.20


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "jobops-tracer"

    cors_origins: list[str] = ["*"]

    # When False the socket peer address is used and proxy headers are ignored
    trust_proxy_headers: bool = True

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    redis: Optional[RedisSettings] = None
    tracer: Optional[TracerSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.redis is None:
            self.redis = RedisSettings()
        if self.tracer is None:
            self.tracer = TracerSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
