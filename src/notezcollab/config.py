"""Centralised application configuration using pydantic-settings.

All environment variables are read through the Settings class.
Consumers call ``get_settings()`` to obtain a cached, validated instance.
Tests construct ``Settings(_env_file=None, ...)`` directly for isolation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/notezcollab/config.py  ->  parent x3  ->  project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


# ---------------------------------------------------------------------------
# Sub-models (one per configuration domain)
# ---------------------------------------------------------------------------
class DatabaseConfig(BaseModel):
    """Database connection and pool configuration.

    The collaboration server holds one pool for its whole lifetime; idle
    connections are recycled after ``pool_recycle_seconds``.
    """

    url: str | None = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle_seconds: int = 3600
    connect_timeout_seconds: float = 10
    statement_timeout_seconds: float = 30


class AuthConfig(BaseModel):
    """Access token verification settings.

    Only verification happens here; tokens are issued by the REST backend
    with the same secret.
    """

    jwt_access_secret: SecretStr = SecretStr("")
    jwt_algorithm: str = "HS256"
    leeway_seconds: int = 0


class CollabConfig(BaseModel):
    """Timing options handed to the collaboration server."""

    server_name: str = "notez-collaboration"
    timeout_ms: int = 30000
    debounce_ms: int = 2000
    max_debounce_ms: int = 10000

    @model_validator(mode="after")
    def max_debounce_not_below_debounce(self) -> CollabConfig:
        if self.max_debounce_ms < self.debounce_ms:
            msg = "COLLAB__MAX_DEBOUNCE_MS must be >= COLLAB__DEBOUNCE_MS"
            raise ValueError(msg)
        return self


class AppConfig(BaseModel):
    """Application runtime configuration."""

    log_dir: Path = Path("logs")


class DevConfig(BaseModel):
    """Development and testing toggles."""

    auth_mock: bool = False
    database_echo: bool = False
    test_database_url: str | None = None


# ---------------------------------------------------------------------------
# Root settings
# ---------------------------------------------------------------------------
class Settings(BaseSettings):
    """Application settings with automatic .env loading and type validation.

    Environment variables use double-underscore delimiter for nesting:
    ``DATABASE__URL``, ``AUTH__JWT_ACCESS_SECRET``, ``COLLAB__DEBOUNCE_MS``, etc.
    """

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseConfig = DatabaseConfig()
    auth: AuthConfig = AuthConfig()
    collab: CollabConfig = CollabConfig()
    app: AppConfig = AppConfig()
    dev: DevConfig = DevConfig()


# ---------------------------------------------------------------------------
# Singleton access
# ---------------------------------------------------------------------------
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    settings = Settings()

    env_file = settings.model_config.get("env_file")
    if env_file is not None and Path(str(env_file)).is_file():
        logger.info("Settings loaded .env from: %s", env_file)
    else:
        logger.info("Settings: no .env file found, using env vars and defaults")

    return settings
