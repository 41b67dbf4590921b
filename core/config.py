"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Chirpy happen here. No module should call
os.getenv() or os.environ.get() directly -- import get_settings() instead.

The Settings instance is built once by get_settings() and then handed to
components explicitly: api/main.py stores it on app.state.settings and the
auth/ functions receive the secret, issuer and TTL as arguments. Nothing in
auth/ reads configuration at import time.

Security notes:
  JWT_SECRET shorter than 32 chars is rejected outright. HMAC-SHA256 signing
  relies on key entropy -- a short key weakens every issued token.

  In production mode (DEBUG not set or false), a missing JWT_SECRET is a hard
  startup failure. Rotating the secret revokes every outstanding access token
  at once, so a random per-process key must never be used silently.

  ACCESS_TOKEN_TTL_SECONDS is capped at one hour. Access tokens cannot be
  revoked individually; the TTL bounds the exposure window.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or chirps/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("chirpy.config")

_DATA_DIR = Path(__file__).resolve().parent.parent

MAX_ACCESS_TOKEN_TTL_SECONDS = 3600


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
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
    # "dev" enables POST /admin/reset. Anything else disables it.
    platform: str = "prod"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_secret: str = ""
    jwt_issuer: str = "chirpy"
    access_token_ttl_seconds: int = Field(default=3600, ge=1, le=MAX_ACCESS_TOKEN_TTL_SECONDS)
    refresh_token_days: int = Field(default=60, ge=1)
    bcrypt_rounds: int = Field(default=10, ge=4, le=16)

    # Shared key for the Polka billing webhook. Empty disables the webhook.
    polka_key: str = ""

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_DATA_DIR / 'chirpy_auth.db'}"
    chirps_db_url: str = f"sqlite:///{_DATA_DIR / 'chirpy_chirps.db'}"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_secret(self) -> "Settings":
        """Enforce the JWT_SECRET policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Access tokens will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if JWT_SECRET is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.jwt_secret:
            if self.debug:
                self.jwt_secret = secrets.token_hex(32)
                logger.warning("Using auto-generated JWT_SECRET. Access tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_SECRET is required in production mode. "
                    "Set JWT_SECRET in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
