"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the Bucketlist API happen here. No module
should call os.getenv() or os.environ.get() directly -- import get_settings()
instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_access_secret -> JWT_ACCESS_SECRET).

  @model_validator(mode="after"): Cross-field validation after all fields are
      resolved. Implements the DEBUG-conditional signing secret logic: dev mode
      generates secrets with a warning, production mode refuses to start.

Security notes:
  [S1] Signing secrets shorter than 32 chars are rejected outright.
  [S2] Access and refresh tokens must be signed with different secrets. If the
       two were equal, a refresh token would verify as an access token and the
       other way round.
  [S3] Outside DEBUG mode a missing secret is a hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("bucketlist.config")

_MIN_SECRET_LENGTH = 32


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
    log_level: str = "INFO"
    # Empty string means "SQLite file next to auth/store.py".
    database_url: str = ""

    # ------------------------------------------------------------------
    # Token signing
    # ------------------------------------------------------------------

    # Empty string is the sentinel for "not configured". The validator below
    # either generates a dev secret or raises, so callers never see "".
    jwt_access_secret: str = ""
    jwt_refresh_secret: str = ""

    access_token_expire_seconds: int = 15 * 60
    refresh_token_expire_seconds: int = 7 * 24 * 60 * 60

    # ------------------------------------------------------------------
    # Argon2id cost parameters (argon2-cffi defaults)
    # ------------------------------------------------------------------

    hash_time_cost: int = 3
    hash_memory_cost: int = 65536  # KiB
    hash_parallelism: int = 4

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    auth_rate_limit: str = "10/minute"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_signing_secrets(self) -> "Settings":
        """Enforce the signing secret policy [S1] [S2] [S3].

        Dev mode (DEBUG=true): auto-generate each missing secret with a warning.
            Tokens will not survive a restart -- acceptable for local dev.

        Production mode: refuse to start if either secret is missing.
        """
        for field in ("jwt_access_secret", "jwt_refresh_secret"):
            if not getattr(self, field):
                if not self.debug:
                    raise ValueError(
                        f"{field.upper()} is required in production mode. "
                        "Set it in your environment or .env file. "
                        "To run in development mode, set DEBUG=true."
                    )
                setattr(self, field, secrets.token_hex(32))
                logger.warning(
                    "WARNING: Using auto-generated %s. Tokens will not persist across restarts.",
                    field.upper(),
                )
            if len(getattr(self, field)) < _MIN_SECRET_LENGTH:
                raise ValueError(f"{field.upper()} must be at least {_MIN_SECRET_LENGTH} characters.")
        if self.jwt_access_secret == self.jwt_refresh_secret:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")
        if self.access_token_expire_seconds <= 0 or self.refresh_token_expire_seconds <= 0:
            raise ValueError("Token lifetimes must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
