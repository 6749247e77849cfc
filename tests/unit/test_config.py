"""
Unit tests for Configuration module.

Covers defaults, validators and computed properties of the settings object.
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from app.core.config import (
    ConfigValidator,
    EnvironmentEnum,
    LogFormatEnum,
    LogLevelEnum,
    Settings,
    get_config_summary,
)


def make_settings(**overrides) -> Settings:
    """Settings isolated from any .env file."""
    return Settings(_env_file=None, **overrides)


class TestSettings:
    """Test cases for Settings configuration."""

    def test_default_settings(self):
        test_settings = make_settings()

        assert test_settings.app_name == "Push Campaign Manager API"
        assert test_settings.version == "1.0.0"
        assert test_settings.push_max_concurrency == 50
        assert test_settings.push_max_payload_bytes == 3993
        assert test_settings.push_ttl_seconds == 43200
        assert test_settings.feed_fetch_retries == 2
        assert test_settings.campaign_stale_after_minutes == 30

    def test_environment_aliases(self):
        assert make_settings(environment="dev").environment == EnvironmentEnum.development
        assert make_settings(environment="prod").environment == EnvironmentEnum.production
        assert make_settings(environment="testing").is_testing is True

        with pytest.raises(ValidationError):
            make_settings(environment="qa")

    def test_allowed_origins_list(self):
        test_settings = make_settings(allowed_origins="https://a.example.com, https://b.example.com,")

        assert test_settings.allowed_origins_list == [
            "https://a.example.com",
            "https://b.example.com",
        ]

    def test_has_push_enabled(self):
        assert make_settings(vapid_public_key="pub", vapid_private_key="priv").has_push_enabled
        assert not make_settings(vapid_public_key="pub", vapid_private_key="").has_push_enabled
        assert not make_settings(vapid_public_key=None, vapid_private_key="priv").has_push_enabled

    def test_vapid_claims(self):
        test_settings = make_settings(vapid_subject="mailto:ops@example.com")

        assert test_settings.vapid_claims == {"sub": "mailto:ops@example.com"}

    @pytest.mark.parametrize("subject", ["ops@example.com", "http://example.com"])
    def test_vapid_subject_validation(self, subject):
        with pytest.raises(ValidationError) as exc_info:
            make_settings(vapid_subject=subject)
        assert "VAPID subject" in str(exc_info.value)

    @pytest.mark.parametrize("value", [0, 501])
    def test_push_concurrency_validation(self, value):
        with pytest.raises(ValidationError):
            make_settings(push_max_concurrency=value)

    def test_payload_limit_validation(self):
        assert make_settings(push_max_payload_bytes=4096).push_max_payload_bytes == 4096

        with pytest.raises(ValidationError) as exc_info:
            make_settings(push_max_payload_bytes=5000)
        assert "cannot exceed 4096" in str(exc_info.value)

    def test_environment_variables_loading(self):
        with patch.dict(
            os.environ,
            {
                "APP_NAME": "Campaigns",
                "ENVIRONMENT": "production",
                "VAPID_PUBLIC_KEY": "env-public",
                "VAPID_PRIVATE_KEY": "env-private",
                "PUSH_MAX_CONCURRENCY": "10",
                "FEED_POLL_ENABLED": "false",
            },
        ):
            test_settings = make_settings()

        assert test_settings.app_name == "Campaigns"
        assert test_settings.is_production is True
        assert test_settings.has_push_enabled is True
        assert test_settings.push_max_concurrency == 10
        assert test_settings.feed_poll_enabled is False


class TestConfigValidator:
    """Test cases for ConfigValidator."""

    def test_validate_required_settings_success(self):
        configured = make_settings(
            database_url="postgresql+asyncpg://localhost/campaigns",
            clerk_jwks_url="https://clerk.example.com/.well-known/jwks.json",
            environment="production",
            vapid_public_key="pub",
            vapid_private_key="priv",
        )
        with patch("app.core.config.settings", configured):
            ConfigValidator.validate_required_settings()

    def test_validate_required_settings_production_without_vapid(self):
        configured = make_settings(
            database_url="postgresql+asyncpg://localhost/campaigns",
            clerk_jwks_url="https://clerk.example.com/.well-known/jwks.json",
            environment="production",
            vapid_public_key=None,
            vapid_private_key=None,
        )
        with patch("app.core.config.settings", configured):
            with pytest.raises(ValueError) as exc_info:
                ConfigValidator.validate_required_settings()
        assert "VAPID_PUBLIC_KEY" in str(exc_info.value)

    def test_validate_required_settings_missing_database(self):
        configured = make_settings(database_url=None)
        with patch("app.core.config.settings", configured):
            with pytest.raises(ValueError) as exc_info:
                ConfigValidator.validate_required_settings()
        assert "DATABASE_URL is required" in str(exc_info.value)

    def test_production_requires_token_verification(self):
        configured = make_settings(
            database_url="postgresql+asyncpg://localhost/campaigns",
            environment="production",
            clerk_jwks_url=None,
            vapid_public_key="pub",
            vapid_private_key="priv",
        )
        with patch("app.core.config.settings", configured):
            with pytest.raises(ValueError) as exc_info:
                ConfigValidator.validate_required_settings()
        assert "CLERK_JWKS_URL" in str(exc_info.value)

    def test_development_allows_unverified_tokens(self):
        configured = make_settings(
            database_url="sqlite+aiosqlite:///./dev.db", environment="development", clerk_jwks_url=None
        )
        with patch("app.core.config.settings", configured):
            ConfigValidator.validate_required_settings()

    def test_get_feature_status(self):
        configured = make_settings(
            vapid_public_key="pub", vapid_private_key="priv", feed_poll_enabled=False
        )
        with patch("app.core.config.settings", configured):
            status = ConfigValidator.get_feature_status()

        assert status["push_enabled"] is True
        assert status["feed_polling_enabled"] is False
        assert status["push_max_concurrency"] == 50


class TestEnums:
    """Test cases for configuration enums."""

    def test_log_level_enum(self):
        assert LogLevelEnum("DEBUG") == LogLevelEnum.DEBUG

    def test_log_format_enum(self):
        assert {item.value for item in LogFormatEnum} == {"simple", "json"}


def test_get_config_summary():
    summary = get_config_summary()

    assert summary["app_name"]
    assert set(summary["features"]) == {
        "push_enabled",
        "feed_polling_enabled",
        "push_max_concurrency",
        "environment",
    }
