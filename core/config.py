"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Shopfront happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, client_domain -> CLIENT_DOMAIN).

  @model_validator(mode="after"): dev mode generates a SECRET_KEY with a
      warning, production mode refuses to start without one.

Link bases:
  DOMAIN is where this API is served. Verification links point straight at
  the API (GET /api/users/verify-email/{id}/{token}).
  CLIENT_DOMAIN is the browser frontend. Reset-password links point at the
  client, which renders the form and then calls the API.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
catalog/, cache/, mail/, or uploads/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("shopfront.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured".
    secret_key: str = ""
    database_url: str = "sqlite:///shopfront.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # 30 days
    token_expire_seconds: int = 30 * 24 * 3600
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"
    forgot_password_rate_limit: str = "5/minute"
    # Email a sign-in notice after each successful login (best effort)
    login_notifications: bool = False

    # ------------------------------------------------------------------
    # Links embedded in transactional email
    # ------------------------------------------------------------------

    domain: str = "http://localhost:5000"
    client_domain: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Mail (empty smtp_host -> log-only mailer)
    # ------------------------------------------------------------------

    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout_seconds: int = 10
    mail_from: str = "Shopfront <noreply@shopfront.local>"

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    cache_db_path: str = "shopfront_cache.db"
    # 0 = entries live until invalidated
    cache_ttl_seconds: int = 0

    # ------------------------------------------------------------------
    # Uploads and HTTP
    # ------------------------------------------------------------------

    uploads_dir: str = "images"
    cors_origins: list[str] = ["http://localhost:3000"]
    # Host header allow-list for TrustedHostMiddleware
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Issued tokens will not survive a restart.

        Production mode: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not survive restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
