# python
# app/core/config.py
"""Configuration settings for the Push Campaign Manager API.

Uses Pydantic BaseSettings for environment variable management.
"""
from enum import Enum

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormatEnum(str, Enum):
    simple = "simple"
    json = "json"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Push Campaign Manager API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    db_pool_size: int = Field(default=20, description="Database connection pool size")
    db_max_overflow: int = Field(default=0, description="Database max overflow connections")

    # Test database URL
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Authentication (Clerk) =====
    clerk_jwks_url: str | None = Field(
        default=None, description="Clerk JWKS URL; tokens are decoded unverified when unset"
    )

    # ===== Web Push (VAPID) =====
    vapid_public_key: str | None = Field(default=None, description="VAPID public key (base64url)")
    vapid_private_key: str | None = Field(default=None, description="VAPID private key")
    vapid_subject: str = Field(
        default="mailto:admin@example.com", description="VAPID subject claim (mailto: or https:)"
    )
    push_ttl_seconds: int = Field(default=43200, description="Push message TTL in seconds")
    push_timeout_seconds: float = Field(default=10.0, description="Per-delivery timeout in seconds")
    push_max_concurrency: int = Field(default=50, description="Concurrent deliveries per batch")
    # 4096 byte record minus aes128gcm header, tag and padding delimiter
    push_max_payload_bytes: int = Field(default=3993, description="Maximum plaintext payload size")

    # ===== RSS Feeds =====
    feed_poll_enabled: bool = Field(default=True, description="Enable scheduled feed polling")
    feed_poll_minute: int = Field(default=0, ge=0, le=59, description="Minute past the hour for the feed poll")
    feed_fetch_timeout_seconds: float = Field(default=15.0, description="Feed fetch timeout")
    feed_fetch_retries: int = Field(default=2, description="Fetch attempts per feed and tick")
    feed_user_agent: str = Field(
        default="PushCampaignManager/1.0 (+feed poller)", description="User-Agent for feed fetches"
    )

    # ===== Campaigns =====
    campaign_stale_after_minutes: int = Field(
        default=30, description="Minutes before a campaign stuck in sending is reconciled"
    )
    campaign_reconcile_interval_minutes: int = Field(
        default=15, ge=1, le=59, description="How often stuck campaigns are looked for"
    )

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080,http://127.0.0.1:3000",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        if isinstance(self.allowed_origins, str):
            return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]
        return self.allowed_origins if isinstance(self.allowed_origins, list) else []

    # ===== Background Tasks (Celery) =====
    celery_broker_url: str = Field(
        default="redis://localhost:6379/1", description="Celery broker URL"
    )
    celery_result_backend: str = Field(
        default="redis://localhost:6379/2", description="Celery result backend"
    )

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")
    log_format: LogFormatEnum = Field(default=LogFormatEnum.json, description="Log format")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_push_enabled(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)

    @property
    def vapid_claims(self) -> dict[str, str]:
        return {"sub": self.vapid_subject}

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
        return v

    @field_validator("push_max_concurrency")
    @classmethod
    def validate_push_concurrency(cls, v):
        if v < 1 or v > 500:
            raise ValueError("Push concurrency must be between 1 and 500")
        return v

    @field_validator("push_max_payload_bytes")
    @classmethod
    def validate_payload_limit(cls, v):
        if v > 4096:
            raise ValueError("Push payload limit cannot exceed 4096 bytes")
        return v

    @field_validator("vapid_subject")
    @classmethod
    def validate_vapid_subject(cls, v):
        if not v.startswith(("mailto:", "https://")):
            raise ValueError("VAPID subject must start with 'mailto:' or 'https://'")
        return v


settings = Settings()


class ConfigValidator:
    @staticmethod
    def validate_required_settings():
        errors = []
        if not settings.database_url:
            errors.append("DATABASE_URL is required")
        if settings.is_production:
            # Without a key set, bearer tokens are accepted unverified
            if not settings.clerk_jwks_url:
                errors.append("CLERK_JWKS_URL is required in production")
            if not settings.has_push_enabled:
                errors.append("VAPID_PUBLIC_KEY and VAPID_PRIVATE_KEY are required in production")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status() -> dict:
        return {
            "push_enabled": settings.has_push_enabled,
            "feed_polling_enabled": settings.feed_poll_enabled,
            "push_max_concurrency": settings.push_max_concurrency,
            "environment": settings.environment,
        }


def get_config_summary() -> dict:
    return {
        "app_name": settings.app_name,
        "version": settings.version,
        "environment": settings.environment,
        "debug": settings.debug,
        "features": ConfigValidator.get_feature_status(),
        "database_configured": bool(settings.database_url),
        "token_verification": bool(settings.clerk_jwks_url),
    }


__all__ = [
    "settings",
    "Settings",
    "ConfigValidator",
    "get_config_summary",
    "EnvironmentEnum",
    "LogLevelEnum",
    "LogFormatEnum",
]
