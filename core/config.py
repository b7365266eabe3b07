"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for JobPortal happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() and
hand the Settings object to the component that needs it.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, google_client_id -> GOOGLE_CLIENT_ID).

  @model_validator(mode="after"): dev mode generates a SECRET_KEY with a
      warning, production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. Session JWTs are
  HS256-signed with it.

  secure_cookies is derived from ENVIRONMENT, not configured separately, so a
  production deployment cannot forget to set the Secure flag on the session
  cookie.

Layer rule: core/ is the kernel. This module may not import from api/, auth/
or media/.
"""

import logging
import secrets
from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("jobportal.config")


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
    environment: str = "development"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///jobportal.db"

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    token_expire_seconds: int = 24 * 60 * 60
    cookie_name: str = "token"

    # ------------------------------------------------------------------
    # Google sign-in (empty client id means Google sign-in is disabled)
    # ------------------------------------------------------------------

    google_client_id: str = ""
    google_certs_url: str = "https://www.googleapis.com/oauth2/v3/certs"

    # ------------------------------------------------------------------
    # Media host (Cloudinary)
    # ------------------------------------------------------------------

    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    upload_timeout_seconds: int = 30

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    login_rate_limit: str = "10/minute"
    # memory:// counts per process; use redis://host:6379 when running several workers
    rate_limit_storage_uri: str = "memory://"
    cors_origins: list[str] = ["http://localhost:5173"]
    allowed_hosts: list[str] = ["*"]

    @property
    def secure_cookies(self) -> bool:
        return self.environment.lower() == "production"

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Apply the SECRET_KEY policy.

        DEBUG=true with no key: a throwaway key is generated and a warning is
            logged. Every restart signs users out, which is fine locally.

        Otherwise a missing key stops the process before it can issue
            sessions signed with an empty secret.

        Any key under 32 characters is refused regardless of mode.
        """
        if not self.secret_key:
            if not self.debug:
                raise ValueError(
                    "SECRET_KEY is not set. Export SECRET_KEY (32+ characters) "
                    "or set DEBUG=true to run with a generated development key."
                )
            self.secret_key = secrets.token_hex(32)
            logger.warning("SECRET_KEY not set; generated a temporary key. Sessions end on restart.")
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings, built on first call.

    Components receive the returned object explicitly; tests that need other
    values construct Settings(...) directly instead of patching the cache.
    """
    return Settings()
