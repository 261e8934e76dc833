"""
Runtime settings for the chat backend.

Everything is read from environment variables (a local `.env` file is
honoured too) through pydantic-settings, so a bad value fails at startup
with a validation error naming the variable.
"""

import logging
from typing import Dict, List, Literal, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AppSettings(BaseSettings):
    """All backend settings; field docs name the environment variable where it differs."""

    # Application settings
    app_name: str = "Chatvault"
    port: int = 3000
    host: str = Field(default="127.0.0.1", validation_alias="CHATVAULT_HOST")
    debug_mode: bool = False
    environment: str = Field(default="production", validation_alias="ENVIRONMENT")

    # Logging settings
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR
    app_log_dir: Optional[str] = Field(default=None, validation_alias="APP_LOG_DIR")
    feature_metrics_logging_enabled: bool = Field(
        False,
        description="Emit [METRIC] log lines for chat and upload activity",
        validation_alias=AliasChoices("FEATURE_METRICS_LOGGING_ENABLED"),
    )

    # CORS
    client_url: str = Field(
        default="http://localhost:5173",
        description="Origin of the frontend allowed by CORS (credentials enabled)",
        validation_alias="CLIENT_URL",
    )

    # Chat storage
    chat_db_url: str = Field(
        default="duckdb:///data/chatvault.db",
        description="Database URL. Use duckdb:///path for local, postgresql://... for production",
        validation_alias=AliasChoices("CHAT_DB_URL", "DATABASE_URL"),
    )
    use_in_memory_store: bool = Field(
        default=False,
        description="Keep chats in process memory instead of a database (development and tests)",
        validation_alias="USE_IN_MEMORY_STORE",
    )
    db_connect_max_retries: int = Field(
        default=5,
        description="Connection attempts at startup before giving up",
        validation_alias="DB_CONNECT_MAX_RETRIES",
    )
    db_connect_retry_interval: float = Field(
        default=1.0,
        description="Base delay in seconds between connection attempts",
        validation_alias="DB_CONNECT_RETRY_INTERVAL",
    )
    db_connect_retry_max_interval: float = Field(
        default=30.0,
        description="Maximum delay in seconds between connection attempts (caps exponential backoff)",
        validation_alias="DB_CONNECT_RETRY_MAX_INTERVAL",
    )
    db_connect_backoff_multiplier: float = Field(
        default=2.0,
        description="Multiplier for exponential backoff between connection attempts",
        validation_alias="DB_CONNECT_BACKOFF_MULTIPLIER",
    )

    # Authentication
    auth_provider: Literal["clerk", "header"] = Field(
        default="clerk",
        description="'clerk' verifies session JWTs against the provider JWKS; "
                    "'header' trusts a user id header set by a reverse proxy",
        validation_alias="AUTH_PROVIDER",
    )
    auth_user_header: str = Field(
        default="X-User-Id",
        description="HTTP header carrying the user id when AUTH_PROVIDER=header",
        validation_alias="AUTH_USER_HEADER",
    )
    clerk_jwks_url: Optional[str] = Field(
        default=None,
        description="JWKS endpoint of the identity provider instance",
        validation_alias="CLERK_JWKS_URL",
    )
    clerk_issuer: Optional[str] = Field(default=None, validation_alias="CLERK_ISSUER")
    clerk_authorized_parties_raw: str = Field(
        default="",
        description="Comma separated 'azp' claim values (frontend origins); empty disables the check",
        validation_alias="CLERK_AUTHORIZED_PARTIES",
    )
    clerk_jwks_cache_ttl: int = Field(default=3600, validation_alias="CLERK_JWKS_CACHE_TTL")
    test_user: str = "user_test"  # Fallback identity in debug mode
    feature_upload_auth_required: bool = Field(
        default=True,
        description="Require an authenticated caller for GET /api/upload",
        validation_alias="FEATURE_UPLOAD_AUTH_REQUIRED",
    )

    # Image CDN
    image_kit_endpoint: Optional[str] = Field(default=None, validation_alias="IMAGE_KIT_ENDPOINT")
    image_kit_public_key: Optional[str] = Field(default=None, validation_alias="IMAGE_KIT_PUBLIC_KEY")
    image_kit_private_key: Optional[str] = Field(default=None, validation_alias="IMAGE_KIT_PRIVATE_KEY")
    upload_token_ttl_seconds: int = Field(
        default=1800,
        description="Lifetime of issued upload signatures; the CDN rejects anything over one hour",
        validation_alias="UPLOAD_TOKEN_TTL_SECONDS",
    )

    @property
    def clerk_authorized_parties(self) -> List[str]:
        return [p.strip() for p in self.clerk_authorized_parties_raw.split(",") if p.strip()]

    @field_validator("upload_token_ttl_seconds")
    @classmethod
    def validate_upload_ttl(cls, v: int) -> int:
        if v <= 0 or v > 3600:
            raise ValueError("upload_token_ttl_seconds must be between 1 and 3600")
        return v

    @model_validator(mode="after")
    def validate_retry_config(self):
        if self.db_connect_max_retries < 1:
            raise ValueError("db_connect_max_retries must be at least 1")
        if self.db_connect_backoff_multiplier < 1.0:
            raise ValueError("db_connect_backoff_multiplier must be >= 1.0")
        return self

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_prefix": "",
        "populate_by_name": True,
    }


class ConfigManager:
    """Loads settings once and hands out the cached instance."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._app_settings: Optional[AppSettings] = settings

    @property
    def app_settings(self) -> AppSettings:
        """Settings, loaded from the environment on first access."""
        if self._app_settings is None:
            try:
                self._app_settings = AppSettings()
                logger.info("Settings loaded (auth provider: %s)", self._app_settings.auth_provider)
            except Exception as e:
                logger.error(f"Invalid chat backend settings: {e}")
                raise
        return self._app_settings

    def reload_configs(self) -> None:
        """Drop cached settings so the next access re-reads the environment."""
        self._app_settings = None
        logger.info("Settings cache dropped")

    def validate_config(self) -> Dict[str, bool]:
        """Check that the integrations the app depends on are configured."""
        settings = self.app_settings
        status = {
            "app_settings": True,
            "database": settings.use_in_memory_store or bool(settings.chat_db_url),
            "auth": settings.auth_provider == "header" or bool(settings.clerk_jwks_url),
            "image_cdn": bool(settings.image_kit_private_key),
        }
        for name, ok in status.items():
            if not ok:
                logger.warning("Configuration for %s is incomplete", name)
        return status


# Shared by the app factory and the metrics logger
config_manager = ConfigManager()
