"""Tests for settings parsing and startup checks."""
import pytest

from core.config import Settings, check_settings
from core.exceptions import ConfigurationError


def test_defaults_and_derived_values():
    settings = Settings(_env_file=None, DATABASE_URL="postgres://u:p@db/app", CORS_ORIGINS="http://a, http://b")
    assert settings.write_database_url == "postgresql://u:p@db/app"
    assert settings.read_database_url == "postgresql://u:p@db/app"
    assert settings.ai_daily_limits == {"FREE": 2, "BASIC": 5, "PREMIUM": 20}
    assert settings.cors_origins == ["http://a", "http://b"]


def test_ai_disabled_without_key():
    assert not Settings(_env_file=None, OPENAI_API_KEY="  ").ai_enabled
    assert Settings(_env_file=None, OPENAI_API_KEY="sk-test").ai_enabled


def test_check_settings_rejects_bad_values():
    with pytest.raises(ConfigurationError) as exc_info:
        check_settings(Settings(_env_file=None, JWT_SECRET=""))
    assert exc_info.value.details == {"config_key": "JWT_SECRET"}
    with pytest.raises(ConfigurationError):
        check_settings(Settings(_env_file=None, AI_DAILY_LIMIT_BASIC=-1))
    check_settings(Settings(_env_file=None, JWT_SECRET="s3cret"))
