import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from practicebase.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings(_env_file=None)

    assert settings.app_name == "PracticeBase"
    assert settings.environment == "development"
    assert settings.debug is False
    assert settings.host == "0.0.0.0"
    assert settings.port == 3030
    assert settings.default_page_size == 10
    assert settings.identity_field == "email"
    assert settings.auth_header == "X-Authorization"
    assert settings.admin_header == "X-Admin"
    assert settings.seed_data_path is None
    assert settings.throttle_enabled is False
    assert settings.is_development is True
    assert settings.is_production is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "PRACTICEBASE_ENVIRONMENT": "production",
        "PRACTICEBASE_PORT": "9000",
        "PRACTICEBASE_IDENTITY_FIELD": "username",
        "PRACTICEBASE_THROTTLE_ENABLED": "true",
    }):
        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.port == 9000
        assert settings.identity_field == "username"
        assert settings.throttle_enabled is True
        assert settings.is_production is True


def test_cors_origins_parsing():
    """Test CORS origins parsing from a comma-separated value."""
    settings = Settings(_env_file=None, cors_origins="http://a.test, http://b.test")

    assert settings.cors_origins == ["http://a.test", "http://b.test"]


@pytest.mark.parametrize("field", ["default_page_size", "max_id_attempts"])
def test_non_positive_limits_rejected(field):
    """Test that zero limits fail validation."""
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{field: 0})


def test_get_settings_is_cached():
    """Test that get_settings returns the same instance."""
    get_settings.cache_clear()

    assert get_settings() is get_settings()
    get_settings.cache_clear()
