"""
Unit tests for settings, avatar URLs and the error taxonomy.

Tests cover:
- Environment overrides and validation of settings
- Derived cookie attributes per deployment mode
- Gravatar URL derivation
- Error response bodies
"""

import pytest
from pydantic import ValidationError as SettingsValidationError

from backend.src.config import Settings, clear_settings_cache, get_settings
from backend.src.errors import (
    AlreadyAuthenticatedError,
    AuthenticationError,
    FieldValidationError,
    InternalError,
    UpstreamRequestError,
)
from backend.src.utils.gravatar import derive_avatar_url

VALID_SECRET = "s" * 32


class TestSettings:
    """Test configuration loading."""

    def test_defaults(self):
        settings = Settings(jwt_secret=VALID_SECRET)

        assert settings.artsy_api_base == "https://api.artsy.net/api"
        assert settings.port == 8080
        assert settings.artsy_token_ttl_seconds == 3600

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("ARTSY_API_BASE", "https://example.test/api/")
        monkeypatch.setenv("PORT", "9000")
        monkeypatch.setenv("JWT_SECRET", VALID_SECRET)
        clear_settings_cache()
        try:
            settings = get_settings()
            assert settings.artsy_api_base == "https://example.test/api"
            assert settings.port == 9000
        finally:
            clear_settings_cache()

    def test_short_secret_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(jwt_secret="short")

    def test_unknown_environment_rejected(self):
        with pytest.raises(SettingsValidationError):
            Settings(jwt_secret=VALID_SECRET, environment="qa")

    def test_development_cookies(self):
        settings = Settings(jwt_secret=VALID_SECRET, environment="development")

        assert settings.cookie_secure is False
        assert settings.cookie_samesite == "lax"

    def test_production_cookies(self):
        settings = Settings(jwt_secret=VALID_SECRET, environment="PRODUCTION")

        assert settings.is_production
        assert settings.cookie_secure is True
        assert settings.cookie_samesite == "none"

    def test_session_age_follows_token_expiry(self):
        settings = Settings(jwt_secret=VALID_SECRET, jwt_access_token_expire_minutes=30)

        assert settings.session_max_age_seconds == 1800


class TestGravatar:
    """Test avatar URL derivation."""

    def test_known_hash(self):
        # md5("myemailaddress@example.com")
        assert derive_avatar_url("MyEmailAddress@example.com ") == (
            "https://www.gravatar.com/avatar/0bc83cb571cd1c50ba6f3e8a78ef1346?s=200&d=identicon"
        )

    def test_case_and_whitespace_insensitive(self):
        assert derive_avatar_url(" Ada@Example.com") == derive_avatar_url("ada@example.com")

    def test_size(self):
        assert derive_avatar_url("ada@example.com", size=80).endswith("?s=80&d=identicon")

    def test_empty(self):
        assert derive_avatar_url("") is None
        assert derive_avatar_url(None) is None


class TestErrorBodies:
    """Test client-facing error payloads."""

    def test_message_shape(self):
        assert AlreadyAuthenticatedError().to_response() == {"message": "You are already authenticated"}
        assert AuthenticationError().status_code == 401

    def test_field_errors(self):
        error = FieldValidationError([{"param": "email", "msg": "Please include a valid email"}])

        assert error.status_code == 400
        assert error.to_response() == {"errors": [{"param": "email", "msg": "Please include a valid email"}]}

    def test_upstream_detail_not_exposed(self):
        error = UpstreamRequestError("search_artists", "503 Service Unavailable")

        assert "503" in str(error)
        assert error.to_response() == {"message": "Server error"}

    def test_internal_error_body(self):
        error = InternalError()

        assert error.status_code == 500
        assert error.to_response() == {"message": "Something went wrong!"}
