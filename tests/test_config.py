"""
Unit tests for settings, secrets and startup checks
"""
import pytest
from pydantic import ValidationError

from tenant_gate.config import DEV_JWT_SECRET, Settings
from tenant_gate.exceptions import ConfigurationError
from tenant_gate.main import check_jwt_secret
from tenant_gate.secrets import load_secret, validate_secret_strength

from conftest import TEST_SECRET


def test_defaults():
    settings = Settings(jwt_secret_key=TEST_SECRET)

    assert settings.default_locale == "es"
    assert settings.supported_locales == ["en", "es", "de"]
    assert settings.tenant_header == "X-Tenant-ID"
    assert settings.auth_cookie_names == ["auth-token", "session-token"]
    assert settings.default_role == "TenantUser"


def test_app_domain_normalized():
    assert Settings(app_domain=" App.Example. ", jwt_secret_key=TEST_SECRET).app_domain == "app.example"


def test_default_locale_must_be_supported():
    with pytest.raises(ValidationError):
        Settings(default_locale="fr", supported_locales=["en", "es"], jwt_secret_key=TEST_SECRET)


def test_invalid_environment():
    with pytest.raises(ValidationError):
        Settings(environment="qa", jwt_secret_key=TEST_SECRET)


def test_only_hmac_algorithms():
    with pytest.raises(ValidationError):
        Settings(jwt_algorithm="RS256", jwt_secret_key=TEST_SECRET)


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("APP_DOMAIN", "tenants.example")
    monkeypatch.setenv("DEFAULT_LOCALE", "en")

    settings = Settings(jwt_secret_key=TEST_SECRET)

    assert settings.app_domain == "tenants.example"
    assert settings.default_locale == "en"


def test_load_secret_chain(tmp_path, monkeypatch):
    monkeypatch.delenv("API_SIGNING_KEY", raising=False)
    monkeypatch.delenv("API_SIGNING_KEY_FILE", raising=False)
    assert load_secret("api_signing_key", default="fallback", secrets_dir=tmp_path) == "fallback"

    monkeypatch.setenv("API_SIGNING_KEY", "from-env")
    assert load_secret("api_signing_key", secrets_dir=tmp_path) == "from-env"

    secret_file = tmp_path / "elsewhere.txt"
    secret_file.write_text("from-file\n")
    monkeypatch.setenv("API_SIGNING_KEY_FILE", str(secret_file))
    assert load_secret("api_signing_key", secrets_dir=tmp_path) == "from-file"

    (tmp_path / "api_signing_key").write_text("from-mount\n")
    assert load_secret("api_signing_key", secrets_dir=tmp_path) == "from-mount"


def test_load_required_secret_missing(tmp_path, monkeypatch):
    monkeypatch.delenv("MISSING_KEY", raising=False)
    monkeypatch.delenv("MISSING_KEY_FILE", raising=False)

    with pytest.raises(ValueError):
        load_secret("missing_key", required=True, secrets_dir=tmp_path)


def test_validate_secret_strength():
    assert validate_secret_strength("x" * 32)
    with pytest.raises(ValueError):
        validate_secret_strength("short")
    with pytest.raises(ValueError):
        validate_secret_strength("")


def test_dev_secret_rejected_in_production():
    with pytest.raises(ConfigurationError):
        check_jwt_secret(Settings(environment="production", jwt_secret_key=DEV_JWT_SECRET))


def test_dev_secret_allowed_in_development():
    check_jwt_secret(Settings(environment="development", jwt_secret_key=DEV_JWT_SECRET))


def test_short_secret_rejected():
    with pytest.raises(ConfigurationError):
        check_jwt_secret(Settings(environment="test", jwt_secret_key="tiny"))
